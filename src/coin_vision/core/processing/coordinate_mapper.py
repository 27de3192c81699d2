"""Pixel space to presentation space mapping."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List

from coin_vision.core.entities import FillMode, PixelRegion, PresentationContext, PresentationRegion, Size
from coin_vision.infra.errors import InvalidSurfaceSize


@dataclass(frozen=True)
class ViewTransform:
    """Affine scale + offset taking frame pixels onto the presentation surface."""

    scale_x: float
    scale_y: float
    offset_x: float
    offset_y: float

    def apply(self, region: PixelRegion) -> PresentationRegion:
        return PresentationRegion(
            x=region.x * self.scale_x + self.offset_x,
            y=region.y * self.scale_y + self.offset_y,
            width=region.width * self.scale_x,
            height=region.height * self.scale_y,
        )

    def invert(self, region: PresentationRegion) -> PixelRegion:
        return PixelRegion(
            x=(region.x - self.offset_x) / self.scale_x,
            y=(region.y - self.offset_y) / self.scale_y,
            width=region.width / self.scale_x,
            height=region.height / self.scale_y,
        )


class CoordinateMapper:
    """Maps detector output onto a surface under the Stretch/AspectFit/AspectFill modes.

    AspectFill offsets are negative when the scaled frame overflows the
    surface; regions falling outside the surface are returned as is.
    """

    def transform(self, frame_size, context: PresentationContext) -> ViewTransform:
        frame = Size.of(frame_size)
        surface = context.surface_size
        if surface.width <= 0 or surface.height <= 0:
            raise InvalidSurfaceSize(surface.width, surface.height)
        if frame.width <= 0 or frame.height <= 0:
            raise ValueError(f"Frame size must be positive, got {frame.width}x{frame.height}")

        ratio_x = surface.width / frame.width
        ratio_y = surface.height / frame.height
        mode = context.fill_mode

        if mode is FillMode.STRETCH:
            return ViewTransform(ratio_x, ratio_y, 0.0, 0.0)
        if mode is FillMode.ASPECT_FIT:
            scale = min(ratio_x, ratio_y)
        elif mode is FillMode.ASPECT_FILL:
            scale = max(ratio_x, ratio_y)
        else:
            raise ValueError(f"Unsupported fill mode: {mode!r}")

        offset_x = (surface.width - frame.width * scale) / 2.0
        offset_y = (surface.height - frame.height * scale) / 2.0
        return ViewTransform(scale, scale, offset_x, offset_y)

    def map(self, region: PixelRegion, frame_size, context: PresentationContext) -> PresentationRegion:
        return self.transform(frame_size, context).apply(region)

    def map_batch(
        self,
        regions: Iterable[PixelRegion],
        frame_size,
        context: PresentationContext,
    ) -> List[PresentationRegion]:
        """Map every region with a single transform derived from ``context``."""
        transform = self.transform(frame_size, context)
        return [transform.apply(region) for region in regions]

    def unmap(self, region: PresentationRegion, frame_size, context: PresentationContext) -> PixelRegion:
        """Inverse of :meth:`map`; useful for hit-testing taps on the surface."""
        return self.transform(frame_size, context).invert(region)
