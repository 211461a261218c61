"""
Error taxonomy and HTTP error classification for the Leanvox client.

Every failure surfaced by the client is a single exception type,
:class:`LeanvoxError`, whose ``kind`` field discriminates between the
closed set of error kinds. Callers branch on ``kind`` rather than on
subclasses:

    >>> try:
    ...     await client.generate(text="Hello")
    ... except LeanvoxError as e:
    ...     if e.kind is ErrorKind.RATE_LIMIT:
    ...         print(f"retry in {e.retry_after}s")
"""

from __future__ import annotations

import json
from enum import Enum
from typing import Any
from typing import Optional


class ErrorKind(str, Enum):
    """Discriminant for :class:`LeanvoxError`."""

    INVALID_REQUEST = "invalid_request"
    AUTHENTICATION = "authentication"
    INSUFFICIENT_BALANCE = "insufficient_balance"
    NOT_FOUND = "not_found"
    RATE_LIMIT = "rate_limit"
    SERVER_ERROR = "server_error"
    HTTP_ERROR = "http_error"
    NETWORK_ERROR = "network_error"
    RETRIES_EXHAUSTED = "max_retries"


STATUS_KINDS: dict[int, ErrorKind] = {
    400: ErrorKind.INVALID_REQUEST,
    401: ErrorKind.AUTHENTICATION,
    402: ErrorKind.INSUFFICIENT_BALANCE,
    404: ErrorKind.NOT_FOUND,
    429: ErrorKind.RATE_LIMIT,
    500: ErrorKind.SERVER_ERROR,
}


class LeanvoxError(Exception):
    """
    Base exception for all Leanvox client errors.

    Attributes:
        kind: Error kind discriminant.
        message: Human readable error message.
        code: Machine readable error code from the API, or a client-side code.
        status_code: HTTP status of the failed response. Always 0 for
            network-level and retry-exhaustion errors.
        body: Parsed response body (or raw text when it was not JSON).
        balance_cents: Remaining balance, only for ``INSUFFICIENT_BALANCE``.
        retry_after: Server suggested wait in seconds, only for ``RATE_LIMIT``.
    """

    def __init__(
        self,
        message: str,
        *,
        kind: ErrorKind = ErrorKind.HTTP_ERROR,
        code: str = "unknown",
        status_code: int = 0,
        body: Any = None,
        balance_cents: Optional[float] = None,
        retry_after: Optional[float] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.kind = kind
        self.code = code
        self.status_code = status_code
        self.body = body
        self.balance_cents = balance_cents if kind is ErrorKind.INSUFFICIENT_BALANCE else None
        self.retry_after = retry_after if kind is ErrorKind.RATE_LIMIT else None

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(kind={self.kind.value!r}, code={self.code!r}, "
            f"status_code={self.status_code}, message={self.message!r})"
        )

    @classmethod
    def invalid_request(cls, message: str, code: str = "invalid_request") -> LeanvoxError:
        """Client-side validation failure, reported like an HTTP 400."""
        return cls(message, kind=ErrorKind.INVALID_REQUEST, code=code, status_code=400)

    @classmethod
    def authentication(cls, message: str, code: str = "invalid_api_key") -> LeanvoxError:
        """Missing or malformed credential, reported like an HTTP 401."""
        return cls(message, kind=ErrorKind.AUTHENTICATION, code=code, status_code=401)

    @classmethod
    def network(cls, reason: str) -> LeanvoxError:
        return cls(f"Network error: {reason}", kind=ErrorKind.NETWORK_ERROR, code="network_error")

    @classmethod
    def retries_exhausted(cls, message: str = "Max retries exceeded", code: str = "max_retries") -> LeanvoxError:
        return cls(message, kind=ErrorKind.RETRIES_EXHAUSTED, code=code)


class StreamingFormatError(LeanvoxError):
    """Raised when streaming is requested for a format other than MP3."""

    def __init__(self, message: str = "Streaming is only supported for MP3 format") -> None:
        super().__init__(
            message,
            kind=ErrorKind.INVALID_REQUEST,
            code="streaming_format_error",
            status_code=400,
        )


def parse_error_body(raw: Optional[bytes]) -> Any:
    """
    Decode an error response body.

    Returns the decoded JSON value, the raw text when the body is not JSON,
    or None for an empty body. Never raises.
    """
    if not raw:
        return None
    try:
        return json.loads(raw)
    except ValueError:
        return raw.decode("utf-8", errors="replace")


def classify_error(status: int, body: Any) -> LeanvoxError:
    """
    Map an HTTP status and parsed response body to a :class:`LeanvoxError`.

    The body is expected to look like
    ``{"error": {"message": ..., "code": ..., "balance_cents": ..., "retry_after": ...}}``
    but anything else (including None or plain text) is tolerated and
    treated as an empty object.

    Args:
        status: HTTP status code of the response.
        body: Parsed response body.

    Returns:
        The classified error. It is returned, not raised.
    """
    payload = body if isinstance(body, dict) else {}
    error = payload.get("error")
    if not isinstance(error, dict):
        error = {}

    message = error.get("message")
    if not isinstance(message, str) or not message:
        message = f"API error (status {status})"
    code = error.get("code")
    if not isinstance(code, str) or not code:
        code = "unknown"

    kind = STATUS_KINDS.get(status, ErrorKind.HTTP_ERROR)
    return LeanvoxError(
        message,
        kind=kind,
        code=code,
        status_code=status,
        body=body,
        balance_cents=_number(error.get("balance_cents")),
        retry_after=_number(error.get("retry_after")),
    )


def _number(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return value
