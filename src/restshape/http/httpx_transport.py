# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""httpx-backed Transport implementation."""

from __future__ import annotations

import httpx

from ..config import ClientSettings, load_client_settings
from ..errors import ErrorCategory, TransportError, categorize_exception
from .headers import normalize_headers
from .models import HttpRequest, RawResponse
from .transport import Transport


class HttpxTransport(Transport):
    """Asynchronous httpx client wrapper."""

    def __init__(self, settings: ClientSettings | None = None, client: httpx.AsyncClient | None = None):
        self.settings = settings or load_client_settings()
        self._client = client or httpx.AsyncClient(
            follow_redirects=self.settings.allow_redirects,
            timeout=self.settings.timeout,
            verify=self.settings.verify_ssl,
        )

    async def send(self, request: HttpRequest) -> RawResponse:
        max_body_bytes = self.settings.max_body_bytes
        if max_body_bytes <= 0:
            max_body_bytes = 16 * 1024 * 1024
        timeout = request.timeout if request.timeout is not None else self.settings.timeout

        try:
            async with self._client.stream(
                request.method.value,
                request.url,
                headers=request.headers,
                content=request.body,
                timeout=timeout,
            ) as resp:
                content = bytearray()
                async for chunk in resp.aiter_bytes():
                    if not chunk:
                        continue
                    if len(content) + len(chunk) > max_body_bytes:
                        raise TransportError(
                            f"Response body from {request.url} exceeds {max_body_bytes} bytes",
                            ErrorCategory.BODY_TOO_LARGE,
                        )
                    content.extend(chunk)

            return RawResponse(
                status_code=resp.status_code,
                content=bytes(content),
                headers=normalize_headers(dict(resp.headers)),
                url=str(resp.url),
            )
        except TransportError:
            raise
        except Exception as exc:  # noqa: BLE001
            raise TransportError(str(exc) or type(exc).__name__, categorize_exception(exc)) from exc

    async def aclose(self) -> None:
        await self._client.aclose()
