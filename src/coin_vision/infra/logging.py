"""Logging configuration helpers."""

from __future__ import annotations

import logging
import logging.handlers
from typing import Mapping

from coin_vision.config.models import LoggingConfig

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Loggers used across the package, configurable through ``logging.levels``.
KNOWN_LOGGERS = (
    "app.main",
    "app.exceptions",
    "detector.hough",
    "pipeline",
    "processing.rate_limiter",
    "services.dispatcher",
    "services.frame_source",
    "ui.overlay",
)


def configure_logging(config: LoggingConfig) -> None:
    """Setup Python logging according to provided configuration.

    The root level gates everything; entries in ``config.levels`` raise or
    lower individual loggers (e.g. ``detector.hough: DEBUG`` to trace the
    detector while the rest of the app stays at INFO).
    """

    log_level = _parse_level(config.level, "root")
    overrides = _parse_overrides(config.levels)
    logging.captureWarnings(True)

    handlers: list[logging.Handler] = []
    log_path = config.resolved_path()
    log_path.parent.mkdir(parents=True, exist_ok=True)

    # Handlers stay at NOTSET so per-logger overrides below the root level get through.
    file_handler = logging.handlers.RotatingFileHandler(
        filename=log_path,
        maxBytes=config.max_bytes,
        backupCount=config.backup_count,
        encoding="utf-8",
    )
    file_handler.setFormatter(_build_formatter())
    handlers.append(file_handler)

    if config.console:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(_build_formatter())
        handlers.append(console_handler)

    logging.basicConfig(level=log_level, handlers=handlers, force=True)
    for name, level in overrides.items():
        logging.getLogger(name).setLevel(level)
    unknown = sorted(name for name in overrides if not _is_known(name))
    if unknown:
        logging.getLogger("app.main").warning("Level set for unused logger(s): %s", ", ".join(unknown))


def _parse_level(level: str, name: str) -> int:
    value = logging.getLevelName(str(level).upper())
    if not isinstance(value, int):
        raise ValueError(f"Unknown log level {level!r} for logger '{name}'")
    return value


def _is_known(name: str) -> bool:
    return any(known == name or known.startswith(name + ".") for known in KNOWN_LOGGERS)


def _parse_overrides(levels: Mapping[str, str]) -> dict[str, int]:
    if not isinstance(levels, Mapping):
        raise ValueError(f"logging.levels must be a mapping, got {type(levels).__name__}")
    return {name: _parse_level(level, name) for name, level in levels.items()}


def _build_formatter() -> logging.Formatter:
    return logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)
