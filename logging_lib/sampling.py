"""Level filtering."""

from __future__ import annotations

from .config import LoggingSettings

_LEVEL_NUMERIC = {
    "DEBUG": 10,
    "INFO": 20,
    "WARNING": 30,
    "WARN": 30,
    "ERROR": 40,
    "CRITICAL": 50,
}


def should_emit(level: str, settings: LoggingSettings) -> bool:
    """Determine if a record should be emitted for a given log level."""

    numeric_level = _LEVEL_NUMERIC.get(level.upper(), 20)
    configured_threshold = _LEVEL_NUMERIC.get(settings.level.upper(), 20)

    return numeric_level >= configured_threshold
