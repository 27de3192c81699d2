"""Configuration loader utilities."""

from __future__ import annotations

import json
from dataclasses import fields
from pathlib import Path
from typing import Any, Dict

import yaml

from .models import CameraConfig, Config, DetectorConfig, DisplayConfig, LoggingConfig, ProcessorConfig

_SECTIONS = {
    "camera": CameraConfig,
    "processor": ProcessorConfig,
    "detector": DetectorConfig,
    "display": DisplayConfig,
    "logging": LoggingConfig,
}


def _normalize_path(path: Path | str) -> Path:
    return path if isinstance(path, Path) else Path(path)


def _load_raw_config(config_path: Path) -> Dict[str, Any]:
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found at {config_path}")

    suffix = config_path.suffix.lower()
    with config_path.open("r", encoding="utf-8") as stream:
        if suffix in {".yaml", ".yml"}:
            return yaml.safe_load(stream) or {}
        if suffix == ".json":
            return json.load(stream)
        raise ValueError(f"Unsupported config format: {suffix}")


def _build_section(name: str, raw: Any):
    model = _SECTIONS[name]
    if raw is None:
        return model()
    if not isinstance(raw, dict):
        raise ValueError(f"Section '{name}' must be a mapping, got {type(raw).__name__}")
    known = {item.name for item in fields(model)}
    unknown = sorted(set(raw) - known)
    if unknown:
        raise ValueError(f"Unknown keys in section '{name}': {', '.join(unknown)}")
    return model(**raw)


def load_config(config_path: Path | str) -> Config:
    """Load configuration file and construct Config dataclass."""

    config_path = _normalize_path(config_path)
    raw = _load_raw_config(config_path)
    if not isinstance(raw, dict):
        raise ValueError("Configuration root must be a mapping")

    unknown = sorted(set(raw) - set(_SECTIONS))
    if unknown:
        raise ValueError(f"Unknown configuration sections: {', '.join(unknown)}")

    logging_raw = dict(raw.get("logging") or {})
    log_path = logging_raw.get("filepath")
    if log_path:
        # Relative log paths follow the config file, not the working directory.
        logging_raw["filepath"] = (config_path.parent / log_path).resolve()
    if "levels" in logging_raw:
        levels = logging_raw["levels"] or {}
        if not isinstance(levels, dict):
            raise ValueError("logging.levels must map logger names to levels")
        logging_raw["levels"] = {str(name): str(level) for name, level in levels.items()}

    camera_raw = dict(raw.get("camera") or {})
    if "resolution" in camera_raw:
        camera_raw["resolution"] = tuple(int(v) for v in camera_raw["resolution"])
    display_raw = dict(raw.get("display") or {})
    if "surface_size" in display_raw:
        display_raw["surface_size"] = tuple(int(v) for v in display_raw["surface_size"])

    return Config(
        camera=_build_section("camera", camera_raw),
        processor=_build_section("processor", raw.get("processor")),
        detector=_build_section("detector", raw.get("detector")),
        display=_build_section("display", display_raw),
        logging=_build_section("logging", logging_raw),
    )
