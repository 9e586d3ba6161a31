# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""URL helpers for turning a base URL and a relative path into an absolute request URL."""

from __future__ import annotations

from collections.abc import Mapping
from urllib.parse import urlencode, urlsplit


def validate_base_url(base_url: str) -> str:
    """Return the base URL unchanged when it is absolute, raise ValueError otherwise."""
    raw = str(base_url or "").strip()
    parts = urlsplit(raw)
    if not parts.scheme or not parts.netloc:
        raise ValueError(f"Base URL must be absolute (scheme://host): {base_url!r}")
    return raw


def join_url(base_url: str, path: str) -> str:
    """
    Join a base URL and a relative path with exactly one "/" between them.

    Example:
      join_url("https://api.test/v1/", "/users") -> "https://api.test/v1/users"

    Only the boundary is normalized; slashes inside the path are kept as given.
    """
    base = str(base_url or "").rstrip("/")
    raw_path = str(path or "").lstrip("/")
    if not raw_path:
        return base
    return f"{base}/{raw_path}"


def with_query(url: str, params: Mapping[str, object] | None) -> str:
    """Append URL-encoded query parameters; None values are skipped."""
    if not params:
        return url
    pairs = [(str(key), _query_value(value)) for key, value in params.items() if value is not None]
    if not pairs:
        return url
    if url.endswith(("?", "&")):
        separator = ""
    else:
        separator = "&" if urlsplit(url).query else "?"
    return f"{url}{separator}{urlencode(pairs)}"


def _query_value(value: object) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


__all__ = ["join_url", "validate_base_url", "with_query"]
