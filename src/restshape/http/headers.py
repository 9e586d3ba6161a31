# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Header normalization utilities.

HTTP header field names are case-insensitive (RFC 9110). Client defaults, ambient context
headers and per-call overrides are merged so that a later layer replaces an earlier one
regardless of the casing either side used.
"""

from __future__ import annotations

from collections.abc import Mapping


def normalize_headers(headers: Mapping[str, str] | None) -> dict[str, str]:
    """Return a lowercase-keyed copy of a header mapping."""
    if not headers:
        return {}
    out: dict[str, str] = {}
    for key, value in headers.items():
        if key is None:
            continue
        name = str(key).strip().lower()
        if not name:
            continue
        out[name] = "" if value is None else str(value)
    return out


def merge_headers(*layers: Mapping[str, str] | None) -> dict[str, str]:
    """
    Merge header layers left to right with case-insensitive replacement.

    The casing of the last layer that set a header is kept.
    """
    merged: dict[str, str] = {}
    names: dict[str, str] = {}
    for layer in layers:
        if not layer:
            continue
        for key, value in layer.items():
            if key is None:
                continue
            name = str(key).strip()
            if not name:
                continue
            lower = name.lower()
            previous = names.get(lower)
            if previous is not None:
                merged.pop(previous, None)
            names[lower] = name
            merged[name] = "" if value is None else str(value)
    return merged


def header_value(headers: Mapping[str, str] | None, name: str, default: str = "") -> str:
    """Return a header value using case-insensitive key matching."""
    if not headers or not name:
        return default
    if name in headers:
        value = headers[name]
        return default if value is None else str(value).strip()
    lower = name.lower()
    for key, value in headers.items():
        if key is not None and str(key).lower() == lower:
            return default if value is None else str(value).strip()
    return default


__all__ = ["header_value", "merge_headers", "normalize_headers"]
