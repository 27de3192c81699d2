"""Presentation surface description supplied by the result consumer."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Tuple, Union


class FillMode(Enum):
    """How a frame is laid onto a surface of a different size or aspect ratio."""

    STRETCH = "stretch"
    ASPECT_FIT = "aspect_fit"
    ASPECT_FILL = "aspect_fill"

    @classmethod
    def parse(cls, value: Union["FillMode", str]) -> "FillMode":
        """Accept an enum member, its name/value, or a capture-layer gravity string."""
        if isinstance(value, FillMode):
            return value
        key = str(value).strip()
        mode = _ALIASES.get(key) or _ALIASES.get(key.lower())
        if mode is None:
            raise ValueError(f"Unknown fill mode: {value!r}")
        return mode


_ALIASES = {
    "stretch": FillMode.STRETCH,
    "resize": FillMode.STRETCH,
    "aspect_fit": FillMode.ASPECT_FIT,
    "aspectfit": FillMode.ASPECT_FIT,
    "resize_aspect": FillMode.ASPECT_FIT,
    "aspect_fill": FillMode.ASPECT_FILL,
    "aspectfill": FillMode.ASPECT_FILL,
    "resize_aspect_fill": FillMode.ASPECT_FILL,
    "AVLayerVideoGravityResize": FillMode.STRETCH,
    "AVLayerVideoGravityResizeAspect": FillMode.ASPECT_FIT,
    "AVLayerVideoGravityResizeAspectFill": FillMode.ASPECT_FILL,
}


@dataclass(frozen=True)
class Size:
    """Width/height pair."""

    width: float
    height: float

    @classmethod
    def of(cls, value) -> "Size":
        if isinstance(value, Size):
            return value
        width, height = value
        return cls(float(width), float(height))

    def as_tuple(self) -> Tuple[float, float]:
        return self.width, self.height


@dataclass(frozen=True)
class PresentationContext:
    """Surface size and fill mode captured once for a single detection cycle."""

    surface_size: Size
    fill_mode: FillMode = FillMode.ASPECT_FIT

    @classmethod
    def create(cls, surface_size, fill_mode: Union[FillMode, str] = FillMode.ASPECT_FIT) -> "PresentationContext":
        return cls(surface_size=Size.of(surface_size), fill_mode=FillMode.parse(fill_mode))
