"""
Error types raised by the transport gateway.

HTTP failures are mapped to a single ``GatewayError`` carrying a
user-presentable message; the server-supplied message wins over the
status-specific fallback.
"""

from typing import Any, Optional

NETWORK_ERROR_MESSAGE = "Network error. Please check your connection."
GENERIC_ERROR_MESSAGE = "An unexpected error occurred. Please try again."

# Fallbacks used when the server body carries no message of its own.
STATUS_MESSAGES: dict[int, str] = {
    400: "Invalid request. Please check your input.",
    401: "Your session has expired. Please log in again.",
    403: "You don't have permission to perform this action.",
    404: "Content not found.",
    429: "Too many requests. Please try again later.",
    500: "Server error. Please try again.",
}

# Gateway-level failures: the body is never trusted for these.
FIXED_STATUS_MESSAGES: dict[int, str] = {
    502: "Bad gateway. The server is temporarily unavailable.",
    503: "Service unavailable. Please try again later.",
    504: "Gateway timeout. The request took too long.",
}


class GatewayError(Exception):
    """Raised when a gateway call fails for any reason."""

    def __init__(
        self,
        message: str,
        status: Optional[int] = None,
        payload: Any = None,
    ):
        super().__init__(message)
        self.message = message
        self.status = status
        self.payload = payload

    @property
    def is_network_error(self) -> bool:
        """True when no HTTP response was received."""
        return self.status is None

    @property
    def is_auth_error(self) -> bool:
        return self.status == 401


def extract_server_message(payload: Any) -> Optional[str]:
    """Pull ``error.message`` or ``message`` out of a JSON error body."""
    if not isinstance(payload, dict):
        return None

    error = payload.get("error")
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    if isinstance(error, str) and error:
        return error
    if payload.get("message"):
        return str(payload["message"])
    return None


def error_for_status(status: int, payload: Any) -> GatewayError:
    """Build the GatewayError for an HTTP error response."""
    if status in FIXED_STATUS_MESSAGES:
        return GatewayError(FIXED_STATUS_MESSAGES[status], status, payload)

    message = extract_server_message(payload) or STATUS_MESSAGES.get(
        status, GENERIC_ERROR_MESSAGE
    )
    return GatewayError(message, status, payload)


def describe_failure(exc: BaseException, fallback: str) -> str:
    """Message to surface for a failed action."""
    if isinstance(exc, GatewayError) and exc.message:
        return exc.message
    return str(exc) or fallback
