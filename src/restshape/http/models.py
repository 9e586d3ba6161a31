# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""HTTP request/response data models exchanged between the client and its transport."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from .headers import header_value

Headers = dict[str, str]


class HttpMethod(str, Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"
    PATCH = "PATCH"

    @property
    def allows_body(self) -> bool:
        return self in (HttpMethod.POST, HttpMethod.PUT, HttpMethod.PATCH)

    @classmethod
    def coerce(cls, value: HttpMethod | str) -> HttpMethod:
        """Accept enum members or case-insensitive method names."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            raise ValueError(f"Unsupported HTTP method: {value!r}") from None


@dataclass(frozen=True)
class HttpRequest:
    """Absolute request handed to a Transport. Built once per call and never shared."""

    method: HttpMethod
    url: str
    headers: Headers = field(default_factory=dict)
    body: bytes | None = None
    timeout: float | None = None


@dataclass(frozen=True)
class RawResponse:
    """Status code and body bytes produced by a Transport for a single request."""

    status_code: int
    content: bytes = b""
    headers: Headers = field(default_factory=dict)
    url: str | None = None

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code <= 299

    def header(self, name: str, default: str = "") -> str:
        return header_value(self.headers, name, default)
