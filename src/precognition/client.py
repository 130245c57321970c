"""Precognitive HTTP client and its request pipeline."""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from typing import Any

import httpx

from precognition.abort import AbortRegistry
from precognition.config import UNSET, RequestConfig, merge_config
from precognition.dispatch import resolve_status_handler
from precognition.errors import ProtocolViolationError, is_not_server_generated
from precognition.fingerprint import FingerprintResolver, default_fingerprint, no_fingerprint
from precognition.scope import VALIDATE_ONLY_HEADER, validate_only_header
from precognition.settings import Settings
from precognition.transport import HttpxTransport, Transport

logger = logging.getLogger(__name__)

PRECOGNITION_HEADER = "Precognition"


async def _settle(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


def ensure_precognition_response(response: httpx.Response) -> None:
    """Raise unless the response carries `Precognition: true`."""
    if response.headers.get("precognition") != "true":
        raise ProtocolViolationError(response)


@dataclass
class ClientContext:
    """Mutable, per-client configuration shared by every request it sends."""

    transport: Transport
    fingerprint_resolver: FingerprintResolver = default_fingerprint
    auto_validate_parent_keys: bool = False
    abort_registry: AbortRegistry = field(default_factory=AbortRegistry)


class PrecognitionClient:
    """HTTP client that asks the server to validate before it acts.

    Requests sharing a fingerprint supersede each other: sending a new one
    aborts the one still in flight.
    """

    def __init__(
        self,
        transport: Transport | httpx.AsyncClient | None = None,
        *,
        defaults: RequestConfig | None = None,
        auto_validate_parent_keys: bool = False,
    ) -> None:
        self.context = ClientContext(
            transport=_as_transport(transport),
            auto_validate_parent_keys=auto_validate_parent_keys,
        )
        self.defaults = defaults or RequestConfig()

    @property
    def transport(self) -> Transport:
        return self.context.transport

    def use(self, transport: Transport | httpx.AsyncClient) -> PrecognitionClient:
        self.context.transport = _as_transport(transport)
        return self

    def fingerprint_requests_using(
        self, resolver: FingerprintResolver | None
    ) -> PrecognitionClient:
        """Replace the fingerprint resolver; `None` disables fingerprints entirely."""
        self.context.fingerprint_resolver = no_fingerprint if resolver is None else resolver
        return self

    def auto_validate_parent_keys(self, value: bool = True) -> PrecognitionClient:
        self.context.auto_validate_parent_keys = value
        return self

    async def aclose(self) -> None:
        close = getattr(self.context.transport, "aclose", None)
        if close is not None:
            await close()

    async def __aenter__(self) -> PrecognitionClient:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def get(self, url: str, config: RequestConfig | None = None, **options: Any) -> Any:
        return await self.request(config, **options, url=url, method="get")

    async def post(
        self, url: str, data: Any = None, config: RequestConfig | None = None, **options: Any
    ) -> Any:
        return await self.request(config, **options, url=url, data=_body(data), method="post")

    async def patch(
        self, url: str, data: Any = None, config: RequestConfig | None = None, **options: Any
    ) -> Any:
        return await self.request(config, **options, url=url, data=_body(data), method="patch")

    async def put(
        self, url: str, data: Any = None, config: RequestConfig | None = None, **options: Any
    ) -> Any:
        return await self.request(config, **options, url=url, data=_body(data), method="put")

    async def delete(self, url: str, config: RequestConfig | None = None, **options: Any) -> Any:
        return await self.request(config, **options, url=url, method="delete")

    async def request(self, config: RequestConfig | None = None, **options: Any) -> Any:
        """Send one request through the pipeline and return its settled outcome."""
        config = merge_config(self.defaults, config, **options)
        config = self.resolve_config(config)
        registry = self.context.abort_registry
        registry.cancel_if_present(config.fingerprint)
        config = registry.register_if_needed(config)

        outcome: Any = None
        error: Exception | None = None
        try:
            if config.on_before is not None:
                await _settle(config.on_before())
            try:
                outcome = await self._send_and_dispatch(config)
            except Exception as exc:
                if config.on_after is None:
                    raise
                error = exc
        finally:
            registry.release(config)

        if config.on_after is None:
            return outcome
        return await _settle(config.on_after(_settled_future(value=outcome, error=error)))

    def resolve_config(self, config: RequestConfig) -> RequestConfig:
        """Fill in the fingerprint and precognition headers."""
        fingerprint = config.fingerprint
        if fingerprint is UNSET:
            fingerprint = self.context.fingerprint_resolver(config, self.context.transport)
            logger.debug(
                "resolved fingerprint",
                extra={"fingerprint": fingerprint, "method": config.method, "url": config.url},
            )

        replaced = {PRECOGNITION_HEADER.lower()}
        if config.validate is not None:
            replaced.add(VALIDATE_ONLY_HEADER.lower())
        # Header names match case-insensitively.
        headers: dict[str, str] = {
            name: value for name, value in config.headers.items() if name.lower() not in replaced
        }
        headers[PRECOGNITION_HEADER] = "true"
        if config.validate is not None:
            expand = config.auto_validate_parent_keys
            if expand is None:
                expand = self.context.auto_validate_parent_keys
            headers[VALIDATE_ONLY_HEADER] = validate_only_header(
                config.validate, expand_parents=expand
            )
        return replace(config, fingerprint=fingerprint, headers=headers)

    async def _send_and_dispatch(self, config: RequestConfig) -> Any:
        try:
            response = await self.context.transport.send(config)
        except Exception as exc:
            if is_not_server_generated(exc):
                raise
            error_response: httpx.Response = exc.response  # type: ignore[attr-defined]
            ensure_precognition_response(error_response)
            handler = resolve_status_handler(config, error_response.status_code)
            if handler is None:
                raise
            return await _settle(handler(error_response, exc))

        ensure_precognition_response(response)
        handler = resolve_status_handler(config, response.status_code)
        if handler is None:
            return response
        return await _settle(handler(response, None))


def _as_transport(transport: Transport | httpx.AsyncClient | None) -> Transport:
    if transport is None:
        return HttpxTransport()
    if isinstance(transport, httpx.AsyncClient):
        return HttpxTransport(transport)
    return transport


def _body(data: Any) -> Any:
    return {} if data is None else data


def _settled_future(*, value: Any = None, error: BaseException | None = None) -> asyncio.Future:
    future = asyncio.get_running_loop().create_future()
    if error is not None:
        future.set_exception(error)
    else:
        future.set_result(value)
    return future


def create_client(
    settings: Settings | None = None,
    *,
    default_headers: Mapping[str, str] | None = None,
    transport: Transport | httpx.AsyncClient | None = None,
) -> PrecognitionClient:
    """Build a client from settings, or from the environment when none are given."""
    settings = settings or Settings()
    if transport is None:
        transport = HttpxTransport(
            base_url=settings.base_url,
            timeout_s=settings.timeout_s,
            headers=default_headers,
            follow_redirects=settings.follow_redirects,
        )
    return PrecognitionClient(
        transport,
        auto_validate_parent_keys=settings.auto_validate_parent_keys,
    )
