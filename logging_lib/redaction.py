"""Redaction helpers for structured logging."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Mapping

from .config import RedactionSettings


Redactor = Callable[[str, Any], Any]


def _normalize_key(key: str) -> str:
    return key.lower()


@dataclass
class RedactionRegistry:
    """Registry of per-field redaction callables."""

    enabled: bool = True
    _redactors: Dict[str, Redactor] = field(default_factory=dict)

    def register(self, key: str, fn: Redactor) -> None:
        """Register a redaction function for a given key."""

        self._redactors[_normalize_key(key)] = fn

    def apply(self, record: Mapping[str, Any]) -> Dict[str, Any]:
        """Apply redaction to a record."""

        if not self.enabled:
            return dict(record)

        sanitized: Dict[str, Any] = {}

        for key, value in record.items():
            if key == "context" and isinstance(value, Mapping):
                sanitized["context"] = {k: self._redact(k, v) for k, v in value.items()}
            else:
                sanitized[key] = self._redact(key, value)

        return sanitized

    def _redact(self, key: str, value: Any) -> Any:
        redactor = self._redactors.get(_normalize_key(key))
        if redactor is None or value is None:
            return value
        return redactor(key, value)


def mask_secret(_key: str, value: Any) -> str:
    text = str(value)
    if len(text) <= 8:
        return "***"
    return f"{text[:4]}…{text[-4:]}"


def drop_value(_key: str, _value: Any) -> str:
    return "[REDACTED]"


def build_registry(settings: RedactionSettings) -> RedactionRegistry:
    """Build a registry from the configured denylist.

    Passwords and secrets are replaced outright; token-like values keep a
    short prefix and suffix so operators can still correlate them.
    """

    registry = RedactionRegistry(enabled=settings.enabled)

    for key in settings.denylist:
        normalized = _normalize_key(key)
        if "password" in normalized or "secret" in normalized:
            registry.register(key, drop_value)
        else:
            registry.register(key, mask_secret)

    return registry
