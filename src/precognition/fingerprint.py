"""Request fingerprint resolvers used for supersession."""

from __future__ import annotations

from collections.abc import Callable

from precognition.config import RequestConfig
from precognition.transport import Transport

FingerprintResolver = Callable[[RequestConfig, Transport], str | None]


def default_fingerprint(config: RequestConfig, transport: Transport) -> str:
    """Key requests by `method:base_url+url`.

    The per-request base URL wins over the transport's default one.
    """
    base_url = config.base_url if config.base_url is not None else transport.base_url
    return f"{config.method}:{base_url or ''}{config.url}"


def no_fingerprint(config: RequestConfig, transport: Transport) -> None:
    del config, transport
    return None
