# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""In-memory Transport used to drive the client without a network."""

from __future__ import annotations

from ..errors import TransportError
from .models import HttpMethod, HttpRequest, RawResponse
from .transport import Transport

StubbedReply = RawResponse | Exception


class StubTransport(Transport):
    """Deterministic, programmable Transport for tests."""

    def __init__(self, responses: dict[str, StubbedReply] | None = None):
        self._responses: dict[tuple[str | None, str], StubbedReply] = {}
        for url, reply in (responses or {}).items():
            self.add(url, reply)
        self.requests: list[HttpRequest] = []
        self.closed = False

    def add(self, url: str, reply: StubbedReply, *, method: HttpMethod | str | None = None) -> None:
        """Register a reply for a URL, optionally restricted to one method."""
        key_method = HttpMethod.coerce(method).value if method is not None else None
        self._responses[(key_method, url)] = reply

    def add_json(self, url: str, body: str, *, status_code: int = 200, method: HttpMethod | str | None = None) -> None:
        self.add(
            url,
            RawResponse(status_code=status_code, content=body.encode("utf-8"), headers={"content-type": "application/json"}, url=url),
            method=method,
        )

    async def send(self, request: HttpRequest) -> RawResponse:
        self.requests.append(request)
        base_url = request.url.split("?", 1)[0]
        for key in ((request.method.value, request.url), (None, request.url), (request.method.value, base_url), (None, base_url)):
            if key in self._responses:
                reply = self._responses[key]
                if isinstance(reply, Exception):
                    raise reply
                return reply
        raise TransportError(f"No stubbed response configured for {request.method.value} {request.url}")

    async def aclose(self) -> None:
        self.closed = True
