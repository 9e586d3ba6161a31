# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Logging helpers for restshape."""

from __future__ import annotations

import logging
import os

DEFAULT_LOG_LEVEL = os.getenv("RESTSHAPE_LOG_LEVEL", "WARNING").upper()

# Per-request INFO lines from these duplicate the client's own request log.
_NOISY_LOGGERS = ("httpx", "httpcore")


def setup_logging(level: str | None = None) -> int:
    """Configure standard logging for CLI/library use and return the effective level."""
    effective_level = getattr(logging, (level or DEFAULT_LOG_LEVEL).upper(), logging.WARNING)
    if not isinstance(effective_level, int):
        effective_level = logging.WARNING
    logging.basicConfig(
        level=effective_level,
        format="%(levelname)s %(name)s: %(message)s",
    )
    if effective_level > logging.DEBUG:
        for name in _NOISY_LOGGERS:
            logging.getLogger(name).setLevel(max(effective_level, logging.WARNING))
    return effective_level


__all__ = ["setup_logging"]
