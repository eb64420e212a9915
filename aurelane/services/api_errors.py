"""Aurelane API exception definitions and response error mapping."""

from __future__ import annotations

from typing import Any

import httpx

NETWORK_ERROR_MESSAGE = "Network error. Please check your connection."
GENERIC_ERROR_MESSAGE = "Something went wrong"
VALIDATION_ERROR_MESSAGE = "Validation failed"


class APIError(Exception):
    """Base class for failures talking to the Aurelane backend."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        payload: Any | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload


class NetworkError(APIError):
    """Raised when no response was received from the backend."""

    def __init__(self, message: str = NETWORK_ERROR_MESSAGE) -> None:
        super().__init__(message)


class ServerError(APIError):
    """Non-2xx response carrying only a top-level message."""


class ValidationFailedError(APIError):
    """Non-2xx response with field-level validation detail."""

    def __init__(
        self,
        message: str,
        field_errors: dict[str, str],
        status_code: int | None = None,
        payload: Any | None = None,
    ) -> None:
        super().__init__(message, status_code=status_code, payload=payload)
        self.field_errors = field_errors


class RequestCancelledError(APIError):
    """Raised to every caller sharing a request that was cancelled or superseded."""

    def __init__(self, cache_key: str) -> None:
        super().__init__(f"Request for '{cache_key}' was cancelled.")
        self.cache_key = cache_key


def _normalize_field_errors(errors: Any) -> dict[str, str]:
    """Flatten both backend validation formats into ``{field: message}``."""
    field_errors: dict[str, str] = {}
    if isinstance(errors, list):
        # express-validator style: [{"path": "name", "msg": "Required"}]
        for item in errors:
            if not isinstance(item, dict):
                continue
            path = item.get("path")
            message = item.get("msg") or item.get("message")
            if path and message:
                field_errors[str(path)] = str(message)
    elif isinstance(errors, dict):
        # {"name": "Required"} or {"name": {"message": "Required"}}
        for field, detail in errors.items():
            if isinstance(detail, dict):
                detail = detail.get("message")
            if detail:
                field_errors[str(field)] = str(detail)
    return field_errors


def error_from_response(response: httpx.Response) -> APIError:
    """Map an error response onto the client exception taxonomy."""
    try:
        body = response.json()
    except ValueError:
        body = None

    message = None
    if isinstance(body, dict):
        message = body.get("message")
        errors = body.get("errors")
        if errors:
            field_errors = _normalize_field_errors(errors)
            if field_errors:
                return ValidationFailedError(
                    message or VALIDATION_ERROR_MESSAGE,
                    field_errors,
                    status_code=response.status_code,
                    payload=body,
                )

    return ServerError(
        message or GENERIC_ERROR_MESSAGE,
        status_code=response.status_code,
        payload=body,
    )


__all__ = [
    "APIError",
    "NetworkError",
    "RequestCancelledError",
    "ServerError",
    "ValidationFailedError",
    "error_from_response",
]
