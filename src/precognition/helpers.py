"""Small helpers shared by callers that build requests from form state."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any

from precognition.config import METHODS
from precognition.errors import ConfigError


def resolve_method(method: str | Callable[[], str]) -> str:
    """Return the lower-cased verb for a string or zero-argument callable."""
    raw = method() if callable(method) else method
    resolved = str(raw).strip().lower()
    if resolved not in METHODS:
        raise ConfigError(f"unsupported request method: {raw!r}")
    return resolved


def resolve_url(url: str | Callable[[], str]) -> str:
    return url() if callable(url) else url


def to_simple_validation_errors(errors: Mapping[str, Any]) -> dict[str, str]:
    """Collapse `{field: [messages]}` to `{field: first_message}`.

    Accepts a full 422 payload as well (`{"message": ..., "errors": {...}}`);
    a payload carrying only a `message` has no field errors.
    """
    nested = errors.get("errors")
    if isinstance(nested, Mapping):
        errors = nested
    elif "message" in errors:
        return {}
    simple: dict[str, str] = {}
    for name, value in errors.items():
        if isinstance(value, (list, tuple)):
            if value:
                simple[name] = str(value[0])
            continue
        simple[name] = str(value)
    return simple
