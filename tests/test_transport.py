import asyncio
import json

import httpx
import pytest

from precognition.abort import AbortController
from precognition.config import RequestConfig
from precognition.errors import RequestCancelledError
from precognition.transport import HttpxTransport, Transport


def _transport(handler, *, base_url: str = "https://example.test") -> HttpxTransport:
    return HttpxTransport(
        httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url=base_url)
    )


def test_httpx_transport_satisfies_protocol() -> None:
    assert isinstance(HttpxTransport(), Transport)


def test_build_request_joins_request_base_url() -> None:
    transport = _transport(lambda request: httpx.Response(204))
    config = RequestConfig(
        method="patch",
        url="/users/1",
        base_url="https://forge.example.test/api/",
        data={"name": "Taylor"},
        params={"draft": "1"},
        headers={"Precognition": "true"},
    )

    request = transport.build_request(config)

    assert request.method == "PATCH"
    assert str(request.url) == "https://forge.example.test/api/users/1?draft=1"
    assert request.headers["precognition"] == "true"
    assert json.loads(request.content) == {"name": "Taylor"}


def test_build_request_keeps_absolute_urls() -> None:
    transport = _transport(lambda request: httpx.Response(204))
    config = RequestConfig(url="https://other.test/ping", base_url="https://forge.test")

    assert str(transport.build_request(config).url) == "https://other.test/ping"


@pytest.mark.asyncio
async def test_send_returns_successful_response() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/users"
        return httpx.Response(204, headers={"Precognition": "true"})

    transport = _transport(handler)

    response = await transport.send(RequestConfig(method="post", url="/users", data={}))

    assert response.status_code == 204
    await transport.aclose()


@pytest.mark.asyncio
async def test_send_raises_status_error_outside_2xx() -> None:
    transport = _transport(
        lambda request: httpx.Response(422, json={"errors": {"email": ["required"]}})
    )

    with pytest.raises(httpx.HTTPStatusError) as excinfo:
        await transport.send(RequestConfig(method="post", url="/users"))

    assert excinfo.value.response.status_code == 422
    await transport.aclose()


@pytest.mark.asyncio
async def test_send_fails_fast_on_aborted_signal() -> None:
    calls = {"count": 0}

    def handler(request: httpx.Request) -> httpx.Response:
        calls["count"] += 1
        return httpx.Response(204)

    transport = _transport(handler)
    controller = AbortController()
    controller.abort()

    with pytest.raises(RequestCancelledError):
        await transport.send(RequestConfig(url="/users", signal=controller.signal))

    assert calls["count"] == 0
    await transport.aclose()


@pytest.mark.asyncio
async def test_signal_cancels_in_flight_request() -> None:
    started = asyncio.Event()

    async def handler(request: httpx.Request) -> httpx.Response:
        started.set()
        await asyncio.sleep(30)
        return httpx.Response(204)

    transport = _transport(handler)
    controller = AbortController()
    task = asyncio.create_task(transport.send(RequestConfig(url="/slow", signal=controller.signal)))
    await started.wait()

    controller.abort()

    with pytest.raises(RequestCancelledError):
        await task
    await transport.aclose()


@pytest.mark.asyncio
async def test_cancel_token_cancels_in_flight_request() -> None:
    started = asyncio.Event()

    async def handler(request: httpx.Request) -> httpx.Response:
        started.set()
        await asyncio.sleep(30)
        return httpx.Response(204)

    transport = _transport(handler)
    token = asyncio.Event()
    task = asyncio.create_task(transport.send(RequestConfig(url="/slow", cancel_token=token)))
    await started.wait()

    token.set()

    with pytest.raises(RequestCancelledError):
        await task
    await transport.aclose()
