# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Retry wrapper for Transport implementations."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from ..config import ClientSettings
from ..errors import ErrorCategory, TransportError
from .models import HttpRequest, RawResponse
from .transport import Transport

logger = logging.getLogger(__name__)

_NON_RETRYABLE = {ErrorCategory.BODY_TOO_LARGE}


@dataclass
class RetryConfig:
    """Retry policy for transport failures derived from ClientSettings."""

    max_attempts: int = 2
    backoff_factor: float = 2.0
    initial_delay: float = 0.5

    @classmethod
    def from_settings(cls, settings: ClientSettings) -> RetryConfig:
        """Build a retry config from the shared ClientSettings."""
        return cls(
            max_attempts=max(1, settings.max_retries + 1),
            backoff_factor=settings.backoff_factor,
            initial_delay=settings.initial_delay,
        )


class RetryingTransport(Transport):
    """
    Re-send a request when the wrapped transport fails before producing a response.

    Responses are returned as soon as one arrives, whatever their status code; HTTP
    status failures are never retried.
    """

    def __init__(self, transport: Transport, retry_config: RetryConfig | None = None):
        self.transport = transport
        self.retry_config = retry_config or RetryConfig()

    async def send(self, request: HttpRequest) -> RawResponse:
        cfg = self.retry_config
        attempts = max(1, cfg.max_attempts)
        delay = cfg.initial_delay

        for attempt in range(1, attempts + 1):
            try:
                return await self.transport.send(request)
            except TransportError as exc:
                if exc.category in _NON_RETRYABLE or attempt >= attempts:
                    raise
                logger.debug(
                    "Transport failure on %s %s (attempt %d/%d, %s); retrying in %.2fs",
                    request.method.value,
                    request.url,
                    attempt,
                    attempts,
                    exc.category.value,
                    delay,
                )
            if delay > 0:
                await asyncio.sleep(delay)
            delay *= cfg.backoff_factor

        raise AssertionError("unreachable")  # pragma: no cover

    async def aclose(self) -> None:
        await self.transport.aclose()
