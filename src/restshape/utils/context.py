# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
Per-task ambient request context.

This module provides a ContextVar-backed RequestContext that carries per-call plumbing
(timeout, extra headers, correlation id). The client reads it when building a request,
so a block of calls can share overrides without threading arguments through each one.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field, replace
from typing import Any

from ..http.headers import merge_headers


@dataclass(frozen=True)
class RequestContext:
    timeout: float | None = None
    headers: dict[str, str] = field(default_factory=dict)
    correlation_id: str | None = None


_current_request_context: ContextVar[RequestContext | None] = ContextVar("restshape_request_context", default=None)


def get_request_context() -> RequestContext:
    """Return the current ambient request context."""
    return _current_request_context.get() or RequestContext()


@contextmanager
def request_context(**overrides: Any) -> Iterator[RequestContext]:
    """
    Context manager that layers overrides onto the ambient RequestContext.

    None-valued overrides are ignored to preserve outer context values. Headers are
    merged onto the outer headers instead of replacing them.
    """
    current = get_request_context()
    filtered = {key: value for key, value in overrides.items() if value is not None}
    if "headers" in filtered:
        filtered["headers"] = merge_headers(current.headers, filtered["headers"])
    new_context = replace(current, **filtered) if filtered else current
    token = _current_request_context.set(new_context)
    try:
        yield new_context
    finally:
        _current_request_context.reset(token)


__all__ = ["RequestContext", "get_request_context", "request_context"]
