# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Request client: base URL + method + path + output shape -> one terminal outcome."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Mapping
from typing import Any

from .config import ClientSettings, load_client_settings
from .decoding import Decoder, PydanticDecoder
from .errors import DecodingError, HttpStatusError, RequestError, TransportError, categorize_exception, describe_error
from .handle import RequestHandle
from .http.headers import merge_headers
from .http.models import HttpMethod, HttpRequest, RawResponse
from .http.transport import Transport, create_default_transport
from .http.url import join_url, validate_base_url, with_query
from .http.utils import coerce_body
from .shapes import EMPTY, OutputShape, RecordList
from .utils.context import get_request_context

logger = logging.getLogger(__name__)

Body = bytes | bytearray | memoryview | str


class RequestClient:
    """
    Issues requests against a base URL and resolves each response into the requested shape.

    Status is classified before any decoding: a non-2xx response fails with HttpStatusError
    whatever its body holds. Client configuration is snapshotted under a lock when a request
    is issued, so changing headers or the base URL never affects requests already in flight.
    """

    def __init__(
        self,
        base_url: str,
        *,
        headers: Mapping[str, str] | None = None,
        transport: Transport | None = None,
        decoder: Decoder | None = None,
        settings: ClientSettings | None = None,
    ):
        self.settings = settings or load_client_settings()
        self._lock = threading.Lock()
        self._base_url = validate_base_url(base_url)
        self._headers = merge_headers({"User-Agent": self.settings.user_agent}, headers)
        self.transport = transport or create_default_transport(self.settings)
        self.decoder = decoder or PydanticDecoder()

    @property
    def base_url(self) -> str:
        with self._lock:
            return self._base_url

    @base_url.setter
    def base_url(self, value: str) -> None:
        validated = validate_base_url(value)
        with self._lock:
            self._base_url = validated

    @property
    def default_headers(self) -> dict[str, str]:
        """Copy of the headers sent with every request."""
        with self._lock:
            return dict(self._headers)

    def set_header(self, name: str, value: str) -> None:
        with self._lock:
            self._headers = merge_headers(self._headers, {name: value})

    def remove_header(self, name: str) -> None:
        lower = name.lower()
        with self._lock:
            self._headers = {key: value for key, value in self._headers.items() if key.lower() != lower}

    def build_request(
        self,
        method: HttpMethod | str,
        path: str,
        *,
        body: Body | None = None,
        headers: Mapping[str, str] | None = None,
        params: Mapping[str, Any] | None = None,
        timeout: float | None = None,
    ) -> HttpRequest:
        """Build the absolute request a call would send, without sending it."""
        http_method = HttpMethod.coerce(method)
        payload = coerce_body(body)
        if payload is not None and not http_method.allows_body:
            raise ValueError(f"{http_method.value} requests cannot carry a body")

        context = get_request_context()
        with self._lock:
            base_url = self._base_url
            default_headers = dict(self._headers)

        return HttpRequest(
            method=http_method,
            url=with_query(join_url(base_url, path), params),
            headers=merge_headers(default_headers, context.headers, headers),
            body=payload,
            timeout=timeout if timeout is not None else context.timeout,
        )

    def request(
        self,
        method: HttpMethod | str,
        path: str,
        shape: OutputShape = EMPTY,
        *,
        keypath: str | None = None,
        body: Body | None = None,
        headers: Mapping[str, str] | None = None,
        params: Mapping[str, Any] | None = None,
        timeout: float | None = None,
    ) -> RequestHandle[Any]:
        """
        Issue a request and return a handle to its single outcome.

        ``keypath`` is only accepted together with a RecordList shape.
        """
        shape = _with_keypath(shape, keypath)
        http_request = self.build_request(method, path, body=body, headers=headers, params=params, timeout=timeout)
        correlation_id = get_request_context().correlation_id
        description = f"{http_request.method.value} {http_request.url}"
        if correlation_id:
            description = f"{description} [{correlation_id}]"
        logger.debug("Dispatching %s as %r", description, shape)
        return RequestHandle(lambda checkpoint: self._execute(http_request, shape, description, checkpoint), description=description)

    def get(self, path: str, shape: OutputShape = EMPTY, **kwargs: Any) -> RequestHandle[Any]:
        return self.request(HttpMethod.GET, path, shape, **kwargs)

    def post(self, path: str, shape: OutputShape = EMPTY, **kwargs: Any) -> RequestHandle[Any]:
        return self.request(HttpMethod.POST, path, shape, **kwargs)

    def put(self, path: str, shape: OutputShape = EMPTY, **kwargs: Any) -> RequestHandle[Any]:
        return self.request(HttpMethod.PUT, path, shape, **kwargs)

    def patch(self, path: str, shape: OutputShape = EMPTY, **kwargs: Any) -> RequestHandle[Any]:
        return self.request(HttpMethod.PATCH, path, shape, **kwargs)

    def delete(self, path: str, shape: OutputShape = EMPTY, **kwargs: Any) -> RequestHandle[Any]:
        return self.request(HttpMethod.DELETE, path, shape, **kwargs)

    async def _execute(
        self,
        request: HttpRequest,
        shape: OutputShape,
        description: str,
        checkpoint: Callable[[], None] = lambda: None,
    ) -> Any:
        try:
            response = await self._send(request)
        except RequestError as exc:
            logger.warning("%s failed: %s", description, describe_error(exc))
            raise

        checkpoint()
        logger.info("%s -> %d (%d bytes)", description, response.status_code, len(response.content))
        if not response.is_success:
            error = HttpStatusError(response.status_code, response.content)
            logger.warning("%s failed: %s", description, describe_error(error))
            raise error

        try:
            return self._resolve(shape, response)
        except DecodingError as exc:
            logger.warning("%s failed: %s", description, describe_error(exc))
            raise

    async def _send(self, request: HttpRequest) -> RawResponse:
        try:
            return await self.transport.send(request)
        except TransportError:
            raise
        except Exception as exc:  # noqa: BLE001
            raise TransportError(str(exc) or type(exc).__name__, categorize_exception(exc)) from exc

    def _resolve(self, shape: OutputShape, response: RawResponse) -> Any:
        try:
            return shape.resolve(response.content, self.decoder)
        except DecodingError:
            raise
        except Exception as exc:  # noqa: BLE001
            raise DecodingError(f"{type(exc).__name__}: {exc}") from exc

    async def aclose(self) -> None:
        close = getattr(self.transport, "aclose", None)
        if close is not None:
            await close()

    async def __aenter__(self) -> RequestClient:
        return self

    async def __aexit__(self, _exc_type, _exc, _tb) -> None:  # noqa: ANN001
        await self.aclose()


def _with_keypath(shape: OutputShape, keypath: str | None) -> OutputShape:
    if not isinstance(shape, OutputShape):
        raise TypeError(f"shape must be an OutputShape (e.g. UNTYPED_JSON, Record(Model)), not {shape!r}")
    if keypath is None:
        return shape
    if not isinstance(shape, RecordList):
        raise ValueError(f"keypath is only supported with RecordList shapes, not {shape!r}")
    if shape.keypath is not None and shape.keypath != keypath:
        raise ValueError(f"Conflicting keypaths: shape has {shape.keypath!r}, call passed {keypath!r}")
    return shape.at(keypath)


__all__ = ["RequestClient"]
