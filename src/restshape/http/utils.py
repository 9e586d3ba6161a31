# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Request body helpers.

The client only ever sends raw bytes; these helpers produce them for the common cases
without the client guessing an encoding convention.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any
from urllib.parse import urlencode

CONTENT_TYPE_JSON = "application/json"
CONTENT_TYPE_FORM = "application/x-www-form-urlencoded"


def json_body(value: Any) -> bytes:
    """Serialize a JSON-compatible value to compact UTF-8 bytes."""
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def form_body(fields: Mapping[str, Any]) -> bytes:
    """URL-encode a flat mapping as an application/x-www-form-urlencoded body."""
    return urlencode([(str(k), "" if v is None else str(v)) for k, v in fields.items()]).encode("ascii")


def coerce_body(body: bytes | bytearray | memoryview | str | None) -> bytes | None:
    """Normalize a caller-supplied body to bytes; text is encoded as UTF-8."""
    if body is None:
        return None
    if isinstance(body, str):
        return body.encode("utf-8")
    if isinstance(body, (bytes, bytearray, memoryview)):
        return bytes(body)
    raise TypeError(f"Request body must be bytes or str, not {type(body).__name__}")


__all__ = ["CONTENT_TYPE_FORM", "CONTENT_TYPE_JSON", "coerce_body", "form_body", "json_body"]
