"""
Exceptions for the CTF Arena client with user-friendly error messages.

Every failure that can reach a panel carries a ``user_message`` that is safe to
show verbatim in the transient message area.
"""

from typing import Any, Optional

# Payload keys inspected, in order, for a server-supplied message
ERROR_MESSAGE_KEYS = ('detail', 'error', 'message', 'msg', 'non_field_errors')

CONNECTIVITY_MESSAGE = "Connectivity error. Check your connection and try again."

STATUS_MESSAGES = {
    400: "Invalid input. Please check and try again.",
    401: "Session expired. Please log in again.",
    403: "Forbidden. You don't have permission to do that.",
    404: "Not found.",
    409: "Conflict. Please refresh and try again.",
    429: "Too many requests. Try again shortly.",
}

SERVER_ERROR_MESSAGE = "Server error. Please try again."
GENERIC_MESSAGE = "Something went wrong. Please try again."


def _first_message(value: Any) -> Optional[str]:
    if isinstance(value, str):
        return value if value.strip() else None
    if isinstance(value, (list, tuple)) and value:
        return _first_message(value[0])
    return None


def extract_error_message(payload: Any, status: Optional[int], fallback: str = GENERIC_MESSAGE) -> str:
    """
    Pick the message to show for a failed request.

    A server-supplied message wins and is used verbatim. Otherwise the HTTP
    status decides; ``status=None`` means no response arrived at all.

    Args:
        payload: Decoded response body (any JSON value) or None
        status: HTTP status code, None when there was no response
        fallback: Message for statuses without a dedicated text

    Returns:
        Message string, never empty
    """
    if isinstance(payload, dict):
        for key in ERROR_MESSAGE_KEYS:
            message = _first_message(payload.get(key))
            if message:
                return message

    if status is None:
        return CONNECTIVITY_MESSAGE
    if status in STATUS_MESSAGES:
        return STATUS_MESSAGES[status]
    if status >= 500:
        return SERVER_ERROR_MESSAGE
    return fallback


class CTFBotException(Exception):
    """Base exception for client errors."""
    def __init__(self, message: str, user_message: str = None):
        super().__init__(message)
        self.user_message = user_message or message


class ValidationError(CTFBotException):
    """Raised before any optimistic apply when local input is unusable."""
    def __init__(self, field: str, reason: str):
        super().__init__(
            f"Validation failed for {field}: {reason}",
            reason
        )
        self.field = field


class ApiError(CTFBotException):
    """Raised when the platform API answers with an error or not at all."""
    def __init__(self, message: str, user_message: str, status: Optional[int] = None, payload: Any = None):
        super().__init__(message, user_message)
        self.status = status
        self.payload = payload


class NetworkError(ApiError):
    """Raised when no response arrived (connection failure or timeout)."""
    def __init__(self, operation: str, details: str = None):
        super().__init__(
            f"No response during {operation}: {details}",
            CONNECTIVITY_MESSAGE
        )


class ServerError(ApiError):
    """Raised for error responses that are not authorization failures."""
    def __init__(self, operation: str, status: int, payload: Any = None):
        super().__init__(
            f"{operation} failed with HTTP {status}",
            extract_error_message(payload, status),
            status=status,
            payload=payload
        )


class AuthError(ApiError):
    """Raised on 401/403; panels answer with an access panel instead of a banner."""
    def __init__(self, operation: str, status: int, payload: Any = None):
        super().__init__(
            f"{operation} rejected with HTTP {status}",
            extract_error_message(payload, status),
            status=status,
            payload=payload
        )


class UnrecognizedEnvelopeError(ApiError):
    """Raised when a list payload matches none of the known envelope shapes."""
    def __init__(self, resource: str, payload: Any = None):
        super().__init__(
            f"Unrecognized response shape for {resource}: {type(payload).__name__}",
            "The server sent data this client doesn't understand.",
            payload=payload
        )


class StaleResponseDiscarded(CTFBotException):
    """Raised internally for a reply superseded by a newer request; never shown."""
    def __init__(self, resource: str, sequence: int, latest: int):
        super().__init__(
            f"Discarded response #{sequence} for {resource}; latest is #{latest}"
        )
        self.resource = resource
        self.sequence = sequence
        self.latest = latest
