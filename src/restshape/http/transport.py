# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Transport abstraction and factory."""

from typing import Protocol

from ..config import ClientSettings, load_client_settings
from .models import HttpRequest, RawResponse


class Transport(Protocol):
    """Performs one request and returns the raw response, or raises TransportError."""

    async def send(self, request: HttpRequest) -> RawResponse: ...

    async def aclose(self) -> None:  # pragma: no cover - optional for adapters
        ...


def create_default_transport(settings: ClientSettings | None = None) -> Transport:
    """Factory for the default httpx-backed transport, wrapped for retries when configured."""
    from .httpx_transport import HttpxTransport
    from .retry import RetryConfig, RetryingTransport

    settings = settings or load_client_settings()
    transport: Transport = HttpxTransport(settings)
    if settings.max_retries > 0:
        transport = RetryingTransport(transport, RetryConfig.from_settings(settings))
    return transport
