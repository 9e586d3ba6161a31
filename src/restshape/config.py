# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Configuration helpers for restshape."""

import os
from dataclasses import dataclass

from .version import __version__

DEFAULT_USER_AGENT = f"restshape/{__version__}"


def _float_env(name: str, default: float) -> float:
    try:
        value = os.getenv(name)
        return float(value) if value is not None else default
    except ValueError:
        return default


def _int_env(name: str, default: int) -> int:
    try:
        value = os.getenv(name)
        return int(value) if value is not None else default
    except ValueError:
        return default


def _bool_env(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


@dataclass
class ClientSettings:
    """Transport and client defaults."""

    timeout: float = 30.0
    user_agent: str = DEFAULT_USER_AGENT
    allow_redirects: bool = True
    verify_ssl: bool = True
    max_body_bytes: int = 16 * 1024 * 1024
    max_retries: int = 0
    backoff_factor: float = 2.0
    initial_delay: float = 0.5

    @classmethod
    def from_env(cls) -> "ClientSettings":
        """Create settings from environment variables (evaluated at call time)."""
        max_body_bytes = _int_env("RESTSHAPE_HTTP_MAX_BODY_BYTES", cls.max_body_bytes)
        if max_body_bytes <= 0:
            max_body_bytes = cls.max_body_bytes
        return cls(
            timeout=_float_env("RESTSHAPE_HTTP_TIMEOUT", cls.timeout),
            user_agent=os.getenv("RESTSHAPE_USER_AGENT", cls.user_agent),
            allow_redirects=_bool_env("RESTSHAPE_HTTP_REDIRECTS", cls.allow_redirects),
            verify_ssl=_bool_env("RESTSHAPE_HTTP_VERIFY_SSL", cls.verify_ssl),
            max_body_bytes=max_body_bytes,
            max_retries=max(0, _int_env("RESTSHAPE_HTTP_RETRIES", cls.max_retries)),
            backoff_factor=_float_env("RESTSHAPE_HTTP_BACKOFF", cls.backoff_factor),
            initial_delay=_float_env("RESTSHAPE_HTTP_INITIAL_DELAY", cls.initial_delay),
        )


def load_client_settings() -> ClientSettings:
    """Load client settings from environment with sensible defaults."""
    return ClientSettings.from_env()
