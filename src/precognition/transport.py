"""Transport adapter around `httpx.AsyncClient`."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from contextlib import suppress
from typing import Protocol, runtime_checkable

import httpx

from precognition.config import RequestConfig
from precognition.errors import RequestCancelledError

logger = logging.getLogger(__name__)


@runtime_checkable
class Transport(Protocol):
    """What the request pipeline needs from an HTTP library."""

    @property
    def base_url(self) -> str: ...

    async def send(self, config: RequestConfig) -> httpx.Response: ...


def _is_cancelled(config: RequestConfig) -> bool:
    if config.signal is not None and config.signal.aborted:
        return True
    return config.cancel_token is not None and config.cancel_token.is_set()


class HttpxTransport:
    """Send resolved request configs through an `httpx.AsyncClient`.

    Non-2xx responses raise `httpx.HTTPStatusError` with the response attached,
    and a tripped `signal` or `cancel_token` raises `RequestCancelledError`.
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        *,
        base_url: str | None = None,
        timeout_s: float = 10.0,
        headers: Mapping[str, str] | None = None,
        follow_redirects: bool = True,
    ) -> None:
        if client is None:
            client = httpx.AsyncClient(
                base_url=base_url or "",
                timeout=timeout_s,
                headers=dict(headers or {}),
                follow_redirects=follow_redirects,
            )
        self._http = client
        resolved = base_url if base_url is not None else str(client.base_url)
        self._base_url = resolved.rstrip("/")

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def http(self) -> httpx.AsyncClient:
        return self._http

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> HttpxTransport:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    def build_request(self, config: RequestConfig) -> httpx.Request:
        url = config.url
        if config.base_url is not None and not httpx.URL(url).is_absolute_url:
            url = f"{config.base_url.rstrip('/')}/{url.lstrip('/')}"
        extra: dict[str, object] = {}
        if config.data is not None:
            extra["json"] = config.data
        if config.timeout is not None:
            extra["timeout"] = config.timeout
        return self._http.build_request(
            config.method.upper(),
            url,
            headers=dict(config.headers),
            params=dict(config.params) if config.params is not None else None,
            **extra,
        )

    async def send(self, config: RequestConfig) -> httpx.Response:
        request = self.build_request(config)
        if _is_cancelled(config):
            raise RequestCancelledError("request cancelled before send", request=request)

        logger.debug(
            "sending request",
            extra={"method": request.method, "url": str(request.url)},
        )
        waiters = [waiter for waiter in (config.signal, config.cancel_token) if waiter is not None]
        if waiters:
            response = await self._send_cancellable(request, waiters)
        else:
            response = await self._http.send(request)

        if not response.is_success:
            raise httpx.HTTPStatusError(
                f"{request.method} {request.url} failed with status {response.status_code}",
                request=request,
                response=response,
            )
        return response

    async def _send_cancellable(self, request: httpx.Request, waiters: list) -> httpx.Response:
        send_task = asyncio.ensure_future(self._http.send(request))
        abort_tasks = [asyncio.ensure_future(waiter.wait()) for waiter in waiters]
        try:
            await asyncio.wait([send_task, *abort_tasks], return_when=asyncio.FIRST_COMPLETED)
        finally:
            for task in abort_tasks:
                task.cancel()
            if not send_task.done():
                send_task.cancel()
                with suppress(asyncio.CancelledError):
                    await send_task

        if send_task.cancelled():
            logger.debug(
                "request cancelled in flight",
                extra={"method": request.method, "url": str(request.url)},
            )
            raise RequestCancelledError("request cancelled", request=request)
        return send_task.result()
