"""Status-code dispatch table for precognitive responses."""

from __future__ import annotations

from enum import IntEnum

from precognition.config import RequestConfig, StatusHandler


class DispatchStatus(IntEnum):
    """HTTP statuses that route to a caller-supplied handler."""

    PRECOGNITION_SUCCESS = 204
    UNAUTHORIZED = 401
    FORBIDDEN = 403
    NOT_FOUND = 404
    CONFLICT = 409
    VALIDATION_ERROR = 422
    LOCKED = 423


HANDLER_FIELDS: dict[DispatchStatus, str] = {
    DispatchStatus.PRECOGNITION_SUCCESS: "on_precognition_success",
    DispatchStatus.UNAUTHORIZED: "on_unauthorized",
    DispatchStatus.FORBIDDEN: "on_forbidden",
    DispatchStatus.NOT_FOUND: "on_not_found",
    DispatchStatus.CONFLICT: "on_conflict",
    DispatchStatus.VALIDATION_ERROR: "on_validation_error",
    DispatchStatus.LOCKED: "on_locked",
}


def resolve_status_handler(config: RequestConfig, status_code: int) -> StatusHandler | None:
    try:
        status = DispatchStatus(status_code)
    except ValueError:
        return None
    return getattr(config, HANDLER_FIELDS[status])
