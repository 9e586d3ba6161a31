# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
restshape package entrypoint.

A small asynchronous HTTP client that resolves every response into an explicitly
requested output shape (nothing, raw bytes, untyped JSON, one record or a list of
records). Transport and record decoding sit behind narrow interfaces, and every
failure surfaces as a RequestError subclass.
"""

from .client import RequestClient
from .config import ClientSettings, load_client_settings
from .decoding import Decoder, PydanticDecoder
from .errors import (
    DecodingError,
    ErrorCategory,
    HttpStatusError,
    RequestError,
    TransportError,
)
from .handle import RequestHandle
from .http import (
    HttpMethod,
    HttpRequest,
    HttpxTransport,
    RawResponse,
    RetryConfig,
    RetryingTransport,
    StubTransport,
    Transport,
    create_default_transport,
    json_body,
)
from .log import setup_logging
from .outcome import Failure, Outcome, Success
from .shapes import EMPTY, RAW_BYTES, UNTYPED_JSON, OutputShape, Record, RecordList
from .utils.context import request_context
from .version import __version__

__all__ = [
    "EMPTY",
    "RAW_BYTES",
    "UNTYPED_JSON",
    "ClientSettings",
    "Decoder",
    "DecodingError",
    "ErrorCategory",
    "Failure",
    "HttpMethod",
    "HttpRequest",
    "HttpStatusError",
    "HttpxTransport",
    "Outcome",
    "OutputShape",
    "RawResponse",
    "Record",
    "RecordList",
    "RequestClient",
    "RequestError",
    "RequestHandle",
    "RetryConfig",
    "RetryingTransport",
    "StubTransport",
    "Success",
    "Transport",
    "TransportError",
    "PydanticDecoder",
    "create_default_transport",
    "json_body",
    "load_client_settings",
    "request_context",
    "setup_logging",
    "__version__",
]
