# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Error taxonomy and exception helpers.

Every failure a request can end in is a ``RequestError``:

- ``TransportError``: no response arrived (DNS, connect, TLS, timeout, oversized body).
- ``HttpStatusError``: a response arrived with a non-2xx status; its body is kept.
- ``DecodingError``: a 2xx body did not match the requested output shape.

Cancelling a request is not a failure: the handle raises ``asyncio.CancelledError``.
"""

from __future__ import annotations

import json
import socket
import ssl as ssl_module
from collections.abc import Iterator
from enum import Enum
from typing import Any

import httpx


class ErrorCategory(str, Enum):
    TIMEOUT = "TIMEOUT"
    CONNECTION_ERROR = "CONNECTION_ERROR"
    DNS_ERROR = "DNS_ERROR"
    SSL_ERROR = "SSL_ERROR"
    BODY_TOO_LARGE = "BODY_TOO_LARGE"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


class RequestError(Exception):
    """Base class for every terminal request failure."""


class TransportError(RequestError):
    """The transport could not produce a response."""

    def __init__(self, message: str, category: ErrorCategory = ErrorCategory.UNKNOWN_ERROR):
        super().__init__(message)
        self.message = message
        self.category = category

    @property
    def reason(self) -> str:
        return error_category_to_reason(self.category)

    def __repr__(self) -> str:
        return f"TransportError({self.message!r}, category={self.category.value})"


class HttpStatusError(RequestError):
    """A non-2xx status was returned; the body is preserved undecoded."""

    def __init__(self, status_code: int, body: bytes = b""):
        super().__init__(f"HTTP status {status_code}")
        self.status_code = status_code
        self.body = body

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")

    def json_payload(self) -> Any | None:
        """Return the body parsed as JSON, or None when it is not JSON."""
        if not self.body:
            return None
        try:
            return json.loads(self.body)
        except ValueError:
            return None

    def __repr__(self) -> str:
        return f"HttpStatusError(status_code={self.status_code}, body_bytes={len(self.body)})"


class DecodingError(RequestError):
    """The response body did not match the requested shape."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


def _exception_chain(exc: BaseException) -> Iterator[BaseException]:
    seen: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        yield current
        current = current.__cause__ or current.__context__


def categorize_exception(exc: BaseException) -> ErrorCategory:
    """
    Map Python/httpx exceptions to ErrorCategory.

    httpx wraps the socket/ssl failure in ConnectError, so the cause chain is searched
    for the more specific DNS/TLS error before falling back to the httpx class.
    """
    for item in _exception_chain(exc):
        if isinstance(item, (ssl_module.SSLError, ssl_module.CertificateError)):
            return ErrorCategory.SSL_ERROR
        if isinstance(item, (socket.gaierror, socket.herror)):
            return ErrorCategory.DNS_ERROR

    if isinstance(exc, (httpx.TimeoutException, TimeoutError)):
        return ErrorCategory.TIMEOUT

    if isinstance(
        exc, (httpx.ConnectError, httpx.RemoteProtocolError, httpx.NetworkError, httpx.ProxyError)
    ):
        return ErrorCategory.CONNECTION_ERROR

    if isinstance(exc, (ConnectionError, ConnectionRefusedError, ConnectionResetError)):
        return ErrorCategory.CONNECTION_ERROR

    return ErrorCategory.UNKNOWN_ERROR


def error_category_to_reason(category: ErrorCategory | None) -> str:
    """User-facing reason string."""
    mapping = {
        ErrorCategory.TIMEOUT: "Network timeout",
        ErrorCategory.CONNECTION_ERROR: "Network connectivity issue",
        ErrorCategory.DNS_ERROR: "DNS resolution failure",
        ErrorCategory.SSL_ERROR: "TLS/certificate issue",
        ErrorCategory.BODY_TOO_LARGE: "Response body exceeds the configured limit",
        ErrorCategory.UNKNOWN_ERROR: "Network error",
        None: "",
    }
    return mapping.get(category, "Request failed due to network error")


def describe_error(error: RequestError) -> str:
    """One-line description suitable for CLI output and logs."""
    if isinstance(error, TransportError):
        return f"{error.reason}: {error.message}"
    if isinstance(error, HttpStatusError):
        snippet = error.text[:200]
        return f"HTTP {error.status_code}" + (f": {snippet}" if snippet else "")
    if isinstance(error, DecodingError):
        return f"Decoding failed: {error.reason}"
    return str(error)


__all__ = [
    "DecodingError",
    "ErrorCategory",
    "HttpStatusError",
    "RequestError",
    "TransportError",
    "categorize_exception",
    "describe_error",
    "error_category_to_reason",
]
