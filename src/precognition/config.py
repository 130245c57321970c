"""Per-request configuration record and merge rules."""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field, fields, replace
from typing import TYPE_CHECKING, Any, Final

import httpx

if TYPE_CHECKING:
    from precognition.abort import AbortSignal

METHODS: Final = ("get", "post", "patch", "put", "delete")


class _Unset:
    """Marker for a fingerprint that should be computed by the resolver."""

    _instance: _Unset | None = None

    def __new__(cls) -> _Unset:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET: Final = _Unset()

Fingerprint = str | None | _Unset
Callback = Callable[[], Any]
StatusHandler = Callable[[httpx.Response, Exception | None], Any]
AfterHandler = Callable[[asyncio.Future[Any]], Any]


@dataclass(frozen=True)
class RequestConfig:
    """Options for one precognitive request.

    Every field is optional. `fingerprint` is three-state: `UNSET` asks the
    client's resolver for a key, `None` opts the request out of supersession,
    and a string is used as the key verbatim.
    """

    method: str = "get"
    url: str = ""
    data: Any = None
    headers: Mapping[str, str] = field(default_factory=dict)
    params: Mapping[str, Any] | None = None
    base_url: str | None = None
    timeout: float | None = None
    validate: Sequence[str] | None = None
    fingerprint: Fingerprint = UNSET
    auto_validate_parent_keys: bool | None = None
    signal: AbortSignal | None = None
    cancel_token: asyncio.Event | None = None
    on_before: Callback | None = None
    on_start: Callback | None = None
    on_finish: Callback | None = None
    on_after: AfterHandler | None = None
    on_precognition_success: StatusHandler | None = None
    on_unauthorized: StatusHandler | None = None
    on_forbidden: StatusHandler | None = None
    on_not_found: StatusHandler | None = None
    on_conflict: StatusHandler | None = None
    on_validation_error: StatusHandler | None = None
    on_locked: StatusHandler | None = None


_DEFAULTS: Final = RequestConfig()
_FIELD_NAMES: Final = frozenset(item.name for item in fields(RequestConfig))


def _is_default(name: str, value: Any) -> bool:
    default = getattr(_DEFAULTS, name)
    if name == "headers":
        return not value
    return value is default or (type(value) is type(default) and value == default)


def merge_config(
    base: RequestConfig | None = None,
    override: RequestConfig | None = None,
    **values: Any,
) -> RequestConfig:
    """Layer request options into a new config.

    Precedence, lowest to highest: `base`, then `override`, then keyword
    `values`. A field from a higher layer wins only when it is set, meaning it
    differs from the dataclass default; explicit `fingerprint=None` therefore
    beats an inherited string. Keyword values are always applied as given.
    `headers` merge key-wise with higher layers replacing individual keys.
    """
    unknown = sorted(set(values) - _FIELD_NAMES)
    if unknown:
        raise TypeError(f"unknown request option(s): {', '.join(unknown)}")

    merged = base or _DEFAULTS
    headers: dict[str, str] = dict(merged.headers)
    if override is not None:
        changes: dict[str, Any] = {}
        for item in fields(RequestConfig):
            value = getattr(override, item.name)
            if item.name == "headers":
                headers.update(value)
            elif not _is_default(item.name, value):
                changes[item.name] = value
        merged = replace(merged, **changes)
    extra_headers = values.pop("headers", None)
    if extra_headers:
        headers.update(extra_headers)
    return replace(merged, headers=headers, **values)
