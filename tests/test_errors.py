import httpx

from precognition.errors import (
    PROTOCOL_VIOLATION_MESSAGE,
    PrecognitionError,
    ProtocolViolationError,
    RequestCancelledError,
    is_cancel,
    is_not_server_generated,
)


def _status_error(status_code: int) -> httpx.HTTPStatusError:
    request = httpx.Request("POST", "https://example.test/users")
    response = httpx.Response(status_code, request=request)
    return httpx.HTTPStatusError("failed", request=request, response=response)


def test_protocol_violation_has_fixed_message() -> None:
    error = ProtocolViolationError()

    assert isinstance(error, PrecognitionError)
    assert str(error) == PROTOCOL_VIOLATION_MESSAGE
    assert error.response is None


def test_non_httpx_errors_are_not_server_generated() -> None:
    assert is_not_server_generated(ValueError("boom")) is True


def test_cancellation_is_not_server_generated() -> None:
    error = RequestCancelledError("cancelled")

    assert is_cancel(error) is True
    assert is_not_server_generated(error) is True


def test_transport_errors_without_response_are_not_server_generated() -> None:
    request = httpx.Request("GET", "https://example.test")

    assert is_not_server_generated(httpx.ConnectError("refused", request=request)) is True
    assert is_not_server_generated(httpx.ReadTimeout("slow", request=request)) is True


def test_status_errors_are_server_generated() -> None:
    assert is_not_server_generated(_status_error(422)) is False
    assert is_not_server_generated(_status_error(500)) is False
