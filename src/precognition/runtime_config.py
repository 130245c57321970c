"""Runtime configuration loader (config-first, flag-overrides)."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

from precognition.errors import ConfigError

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class RuntimeConfig:
    """Materialized runtime configuration."""

    config_path: Path | None = None
    base_url: str = ""
    timeout_s: float = 10.0
    auto_validate_parent_keys: bool = False
    follow_redirects: bool = True
    headers: dict[str, str] = field(default_factory=dict)
    log_level: str = "WARNING"

    def with_overrides(
        self,
        *,
        base_url: str | None = None,
        log_level: str | None = None,
    ) -> RuntimeConfig:
        """Return copy with explicit CLI overrides applied."""
        return replace(
            self,
            base_url=self.base_url if base_url is None else base_url,
            log_level=self.log_level if log_level is None else log_level,
        )


def _read_toml(path: Path) -> dict[str, Any]:
    try:
        payload = tomllib.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ConfigError(f"failed reading runtime config: {path}") from exc
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"invalid runtime config TOML: {path}") from exc
    return payload


def _as_table(payload: dict[str, Any], key: str) -> dict[str, Any]:
    value = payload.get(key, {})
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigError(f"runtime config section [{key}] must be a table")
    return value


def _as_str(value: Any, *, default: str) -> str:
    if isinstance(value, str):
        stripped = value.strip()
        if stripped:
            return stripped
    return default


def _as_bool(value: Any, *, default: bool) -> bool:
    if isinstance(value, bool):
        return value
    return default


def _as_float(value: Any, *, default: float) -> float:
    if isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return default
    return default


def _as_headers(value: Any) -> dict[str, str]:
    if not isinstance(value, dict):
        return {}
    return {str(name): str(item) for name, item in value.items() if not isinstance(item, dict)}


def _as_log_level(value: Any) -> str:
    level = _as_str(value, default="WARNING").upper()
    if level not in LOG_LEVELS:
        raise ConfigError(f"unknown log level: {value!r}")
    return level


def load_runtime_config(config_path: Path | None = None) -> RuntimeConfig:
    """Load runtime config from a TOML file; defaults when no path is given."""
    if config_path is None:
        return RuntimeConfig()
    source = config_path.expanduser().resolve()
    if not source.exists():
        raise ConfigError(f"runtime config file not found: {source}")

    payload = _read_toml(source)
    client = _as_table(payload, "client")
    logging_table = _as_table(payload, "logging")

    return RuntimeConfig(
        config_path=source,
        base_url=_as_str(client.get("base_url"), default=""),
        timeout_s=_as_float(client.get("timeout_s"), default=10.0),
        auto_validate_parent_keys=_as_bool(
            client.get("auto_validate_parent_keys"),
            default=False,
        ),
        follow_redirects=_as_bool(client.get("follow_redirects"), default=True),
        headers=_as_headers(client.get("headers")),
        log_level=_as_log_level(logging_table.get("level")),
    )
