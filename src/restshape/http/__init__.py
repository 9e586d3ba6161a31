# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""HTTP transport exports."""

from .adapters import StubTransport
from .headers import header_value, merge_headers, normalize_headers
from .httpx_transport import HttpxTransport
from .models import Headers, HttpMethod, HttpRequest, RawResponse
from .retry import RetryConfig, RetryingTransport
from .transport import Transport, create_default_transport
from .url import join_url, with_query
from .utils import CONTENT_TYPE_FORM, CONTENT_TYPE_JSON, form_body, json_body

__all__ = [
    "CONTENT_TYPE_FORM",
    "CONTENT_TYPE_JSON",
    "Headers",
    "HttpMethod",
    "HttpRequest",
    "HttpxTransport",
    "RawResponse",
    "RetryConfig",
    "RetryingTransport",
    "StubTransport",
    "Transport",
    "create_default_transport",
    "form_body",
    "header_value",
    "join_url",
    "json_body",
    "merge_headers",
    "normalize_headers",
    "with_query",
]
