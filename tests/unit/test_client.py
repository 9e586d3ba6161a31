# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

import asyncio
import json
from dataclasses import dataclass

import pytest
from pydantic import BaseModel

from restshape import (
    EMPTY,
    RAW_BYTES,
    UNTYPED_JSON,
    ClientSettings,
    DecodingError,
    ErrorCategory,
    Failure,
    HttpStatusError,
    RawResponse,
    Record,
    RecordList,
    RequestClient,
    StubTransport,
    Success,
    TransportError,
    request_context,
)

BASE_URL = "https://mocked.com"


@dataclass
class UserJSON:
    firstname: str
    lastname: str


class Post(BaseModel):
    title: str
    content: str


USERS_BODY = """
[
    {"firstname": "John", "lastname": "Doe"},
    {"firstname": "Jimmy", "lastname": "Punchline"}
]
"""

SHAPES = [EMPTY, RAW_BYTES, UNTYPED_JSON, Record(UserJSON), RecordList(UserJSON), RecordList(UserJSON, keypath="users")]


class BlockingTransport:
    """Holds every request until release is set."""

    def __init__(self, response: RawResponse):
        self.response = response
        self.started = asyncio.Event()
        self.release = asyncio.Event()
        self.requests = []
        self.cancelled = False

    async def send(self, request):
        self.requests.append(request)
        self.started.set()
        try:
            await self.release.wait()
        except asyncio.CancelledError:
            self.cancelled = True
            raise
        return self.response

    async def aclose(self) -> None:
        return None


class SwallowingTransport:
    """Ignores cancellation: returns its response, or raises its error, anyway."""

    def __init__(self, response: RawResponse | None = None, error: Exception | None = None):
        self.response = response
        self.error = error
        self.started = asyncio.Event()
        self.release = asyncio.Event()
        self.swallowed = False

    async def send(self, request):
        self.started.set()
        try:
            await self.release.wait()
        except asyncio.CancelledError:
            self.swallowed = True
        if self.error is not None:
            raise self.error
        return self.response

    async def aclose(self) -> None:
        return None


class RecordingDecoder:
    def __init__(self):
        self.calls = []

    def decode(self, payload, target):
        self.calls.append((payload, target))
        return target(**json.loads(payload))


def _client(stub: StubTransport, **kwargs) -> RequestClient:
    return RequestClient(BASE_URL, transport=stub, settings=ClientSettings(user_agent="UA/1.0"), **kwargs)


def _call(client: RequestClient, method: str, path: str, shape=EMPTY, **kwargs):
    async def scenario():
        return await client.request(method, path, shape, **kwargs)

    return asyncio.run(scenario())


def _outcome(client: RequestClient, method: str, path: str, shape=EMPTY, **kwargs):
    async def scenario():
        return await client.request(method, path, shape, **kwargs).outcome()

    return asyncio.run(scenario())


def test_post_void_works():
    stub = StubTransport()
    stub.add_json(f"{BASE_URL}/users", '{ "response": "OK" }')
    client = _client(stub)

    assert _call(client, "POST", "/users") is None
    assert stub.requests[0].method.value == "POST"
    assert stub.requests[0].url == "https://mocked.com/users"


def test_post_data_works():
    body = '{ "response": "OK" }'
    stub = StubTransport()
    stub.add_json(f"{BASE_URL}/users", body)

    assert _call(_client(stub), "POST", "/users", RAW_BYTES) == body.encode("utf-8")


def test_post_json_works():
    stub = StubTransport()
    stub.add_json(f"{BASE_URL}/users", '{"response":"OK"}')

    value = _call(_client(stub), "POST", "/users", UNTYPED_JSON)
    assert json.dumps(value, separators=(",", ":")) == '{"response":"OK"}'


def test_post_record_works():
    stub = StubTransport()
    stub.add_json(f"{BASE_URL}/users/1", '{"firstname":"John","lastname":"Doe"}')
    stub.add_json(f"{BASE_URL}/posts/1", '{"title":"Hello","content":"World"}')
    client = _client(stub)

    user = _call(client, "POST", "/users/1", Record(UserJSON))
    post = _call(client, "POST", "/posts/1", Record(Post))

    assert (user.firstname, user.lastname) == ("John", "Doe")
    assert (post.title, post.content) == ("Hello", "World")
    assert [r.url for r in stub.requests] == ["https://mocked.com/users/1", "https://mocked.com/posts/1"]


def test_post_record_list_works():
    stub = StubTransport()
    stub.add_json(f"{BASE_URL}/users", USERS_BODY)

    users = _call(_client(stub), "POST", "/users", RecordList(UserJSON))
    assert [(u.firstname, u.lastname) for u in users] == [("John", "Doe"), ("Jimmy", "Punchline")]


def test_post_record_list_with_keypath_works():
    stub = StubTransport()
    stub.add_json(f"{BASE_URL}/users", '{"users": ' + USERS_BODY + "}")
    client = _client(stub)

    users = _call(client, "POST", "/users", RecordList(UserJSON), keypath="users")
    assert [u.firstname for u in users] == ["John", "Jimmy"]

    outcome = _outcome(client, "POST", "/users", RecordList(UserJSON), keypath="items")
    assert isinstance(outcome, Failure)
    assert isinstance(outcome.error, DecodingError)


@pytest.mark.parametrize("verb", ["get", "post", "put", "patch", "delete"])
def test_every_verb_sends_its_method(verb):
    stub = StubTransport()
    stub.add_json(f"{BASE_URL}/users", USERS_BODY)
    client = _client(stub)

    async def scenario():
        return await getattr(client, verb)("users", RecordList(UserJSON))

    users = asyncio.run(scenario())
    assert len(users) == 2
    assert stub.requests[0].method.value == verb.upper()
    assert stub.requests[0].url == "https://mocked.com/users"


@pytest.mark.parametrize("status", [400, 404, 500, 503, 302, 199])
@pytest.mark.parametrize("shape", SHAPES, ids=repr)
def test_non_2xx_fails_before_decoding(status, shape):
    body = '{"users": ' + USERS_BODY + "}" if getattr(shape, "keypath", None) else USERS_BODY
    stub = StubTransport()
    stub.add_json(f"{BASE_URL}/users", body, status_code=status)

    class ExplodingDecoder:
        def decode(self, payload, target):  # noqa: ARG002
            raise AssertionError("decoder must not run for error statuses")

    outcome = _outcome(_client(stub, decoder=ExplodingDecoder()), "GET", "/users", shape)
    assert isinstance(outcome, Failure)
    assert isinstance(outcome.error, HttpStatusError)
    assert outcome.error.status_code == status
    assert outcome.error.body == body.encode("utf-8")


@pytest.mark.parametrize("status", [200, 201, 202, 204, 299])
def test_any_2xx_resolves_empty_and_raw_bytes(status):
    stub = StubTransport()
    stub.add(f"{BASE_URL}/ping", RawResponse(status, b"<not json>"))
    client = _client(stub)

    assert _call(client, "GET", "/ping") is None
    assert _call(client, "GET", "/ping", RAW_BYTES) == b"<not json>"


def test_record_against_array_is_a_decoding_failure():
    stub = StubTransport()
    stub.add_json(f"{BASE_URL}/users", USERS_BODY)

    with pytest.raises(DecodingError):
        _call(_client(stub), "GET", "/users", Record(UserJSON))


def test_transport_failure_is_surfaced():
    stub = StubTransport()
    stub.add(f"{BASE_URL}/users", TransportError("timed out", ErrorCategory.TIMEOUT))

    outcome = _outcome(_client(stub), "GET", "/users", UNTYPED_JSON)
    assert isinstance(outcome, Failure)
    assert outcome.error.category is ErrorCategory.TIMEOUT


def test_unexpected_transport_exception_becomes_transport_error():
    class BrokenTransport:
        async def send(self, request):  # noqa: ARG002
            raise ConnectionResetError("reset by peer")

        async def aclose(self):
            return None

    client = RequestClient(BASE_URL, transport=BrokenTransport())
    with pytest.raises(TransportError) as info:
        _call(client, "GET", "/users")
    assert info.value.category is ErrorCategory.CONNECTION_ERROR


def test_unexpected_decoder_exception_becomes_decoding_error():
    class BrokenDecoder:
        def decode(self, payload, target):  # noqa: ARG002
            raise RuntimeError("decoder bug")

    stub = StubTransport()
    stub.add_json(f"{BASE_URL}/users/1", '{"firstname":"John","lastname":"Doe"}')

    with pytest.raises(DecodingError, match="decoder bug"):
        _call(_client(stub, decoder=BrokenDecoder()), "GET", "/users/1", Record(UserJSON))


def test_outcome_success_wraps_value():
    stub = StubTransport()
    stub.add_json(f"{BASE_URL}/users/1", '{"firstname":"John","lastname":"Doe"}')

    outcome = _outcome(_client(stub), "GET", "/users/1", Record(UserJSON))
    assert isinstance(outcome, Success)
    assert outcome.ok is True
    assert outcome.unwrap() == UserJSON("John", "Doe")


def test_keypath_is_rejected_for_other_shapes():
    client = _client(StubTransport())

    async def scenario():
        for shape in (EMPTY, RAW_BYTES, UNTYPED_JSON, Record(UserJSON)):
            with pytest.raises(ValueError, match="keypath"):
                client.get("/users", shape, keypath="users")
        with pytest.raises(ValueError, match="Conflicting"):
            client.get("/users", RecordList(UserJSON, keypath="a"), keypath="b")
        with pytest.raises(TypeError):
            client.get("/users", UserJSON)

    asyncio.run(scenario())


def test_body_is_rejected_for_get_and_delete():
    client = _client(StubTransport())
    with pytest.raises(ValueError, match="GET"):
        client.build_request("GET", "/users", body=b"{}")
    with pytest.raises(ValueError, match="DELETE"):
        client.build_request("DELETE", "/users", body="x")


def test_build_request_merges_headers_and_params():
    client = _client(StubTransport(), headers={"Accept": "application/json", "X-Client": "a"})
    with request_context(headers={"X-Trace": "t-1"}, timeout=4.0):
        request = client.build_request(
            "post",
            "/users",
            body='{"name":"Doe"}',
            headers={"x-client": "b", "Content-Type": "application/json"},
            params={"page": 2},
        )
    assert request.url == "https://mocked.com/users?page=2"
    assert request.body == b'{"name":"Doe"}'
    assert request.timeout == 4.0
    assert request.headers == {
        "User-Agent": "UA/1.0",
        "Accept": "application/json",
        "x-client": "b",
        "X-Trace": "t-1",
        "Content-Type": "application/json",
    }
    assert client.build_request("GET", "/users", timeout=1.0).timeout == 1.0
    assert client.build_request("GET", "/users").timeout is None


def test_nested_request_context_layers_headers():
    client = _client(StubTransport())
    with request_context(headers={"X-A": "1"}):
        with request_context(headers={"X-B": "2"}, correlation_id="abc"):
            request = client.build_request("GET", "/")
        outer = client.build_request("GET", "/")
    assert request.headers["X-A"] == "1"
    assert request.headers["X-B"] == "2"
    assert "X-B" not in outer.headers
    assert request.url == "https://mocked.com"


def test_header_configuration_is_serialized():
    client = _client(StubTransport(), headers={"Authorization": "Bearer old"})
    client.set_header("authorization", "Bearer new")
    assert client.default_headers == {"User-Agent": "UA/1.0", "authorization": "Bearer new"}
    client.remove_header("AUTHORIZATION")
    assert "authorization" not in client.default_headers

    snapshot = client.default_headers
    snapshot["X-Mutated"] = "1"
    assert "X-Mutated" not in client.default_headers

    client.base_url = "https://other.test/api"
    assert client.build_request("GET", "v2").url == "https://other.test/api/v2"
    with pytest.raises(ValueError):
        client.base_url = "not a url"


def test_in_flight_request_keeps_its_configuration():
    async def scenario():
        transport = BlockingTransport(RawResponse(200, b"{}"))
        client = RequestClient(BASE_URL, transport=transport, settings=ClientSettings())
        handle = client.get("/users", UNTYPED_JSON)
        await transport.started.wait()
        client.set_header("X-Late", "1")
        client.base_url = "https://elsewhere.test"
        transport.release.set()
        await handle
        return transport.requests[0]

    request = asyncio.run(scenario())
    assert request.url == "https://mocked.com/users"
    assert "X-Late" not in request.headers


def test_request_requires_running_loop():
    client = _client(StubTransport())
    with pytest.raises(RuntimeError, match="running event loop"):
        client.get("/users")


def test_cancel_before_transport_completes_delivers_nothing():
    async def scenario():
        transport = BlockingTransport(RawResponse(200, b'{"response":"OK"}'))
        client = RequestClient(BASE_URL, transport=transport, settings=ClientSettings())
        delivered = []
        handle = client.get("/slow", UNTYPED_JSON)
        handle.add_done_callback(delivered.append)
        await transport.started.wait()

        assert handle.cancel() is True
        transport.release.set()
        with pytest.raises(asyncio.CancelledError):
            await handle
        await asyncio.sleep(0)

        handle.add_done_callback(delivered.append)
        return transport, handle, delivered

    transport, handle, delivered = asyncio.run(scenario())
    assert delivered == []
    assert transport.cancelled is True
    assert handle.cancelled() is True
    assert handle.done() is True
    with pytest.raises(asyncio.CancelledError):
        handle.result()


def test_cancel_before_start_never_reaches_transport():
    async def scenario():
        stub = StubTransport()
        stub.add_json(f"{BASE_URL}/users", "[]")
        client = _client(stub)
        handle = client.get("/users", RecordList(UserJSON))
        assert handle.cancel() is True
        with pytest.raises(asyncio.CancelledError):
            await handle.outcome()
        return stub

    stub = asyncio.run(scenario())
    assert stub.requests == []


def test_cancel_after_completion_is_a_noop():
    async def scenario():
        stub = StubTransport()
        stub.add_json(f"{BASE_URL}/users/1", '{"firstname":"John","lastname":"Doe"}')
        client = _client(stub)
        delivered = []
        handle = client.get("/users/1", Record(UserJSON))
        handle.add_done_callback(delivered.append)
        value = await handle
        cancelled = handle.cancel()
        handle.add_done_callback(delivered.append)
        return handle, value, cancelled, delivered

    handle, value, cancelled, delivered = asyncio.run(scenario())
    assert cancelled is False
    assert handle.cancelled() is False
    assert handle.result() == value == UserJSON("John", "Doe")
    assert len(delivered) == 2
    assert all(isinstance(o, Success) and o.value == value for o in delivered)


def test_each_callback_receives_exactly_one_outcome():
    async def scenario():
        stub = StubTransport()
        stub.add_json(f"{BASE_URL}/missing", '{"error":"nope"}', status_code=404)
        client = _client(stub)
        first, second = [], []
        handle = client.get("/missing", UNTYPED_JSON)
        handle.add_done_callback(first.append)
        handle.add_done_callback(second.append)
        outcome_a = await handle.outcome()
        outcome_b = await handle.outcome()
        await asyncio.sleep(0)
        return first, second, outcome_a, outcome_b

    first, second, outcome_a, outcome_b = asyncio.run(scenario())
    assert len(first) == 1
    assert len(second) == 1
    assert outcome_a is outcome_b is first[0]
    assert first[0].error.json_payload() == {"error": "nope"}


def test_failing_callback_does_not_block_others(caplog):
    async def scenario():
        stub = StubTransport()
        stub.add_json(f"{BASE_URL}/ok", "{}")
        handle = _client(stub).get("/ok")
        delivered = []

        def broken(outcome):  # noqa: ARG001
            raise RuntimeError("callback bug")

        handle.add_done_callback(broken)
        handle.add_done_callback(delivered.append)
        await handle
        return delivered

    delivered = asyncio.run(scenario())
    assert len(delivered) == 1
    assert "callback bug" in caplog.text


def test_result_before_completion_raises_invalid_state():
    async def scenario():
        transport = BlockingTransport(RawResponse(200))
        handle = RequestClient(BASE_URL, transport=transport).get("/x")
        with pytest.raises(asyncio.InvalidStateError):
            handle.result()
        assert "pending" in repr(handle)
        transport.release.set()
        await handle
        assert "success" in repr(handle)

    asyncio.run(scenario())


def test_concurrent_requests_are_independent():
    stub = StubTransport()
    stub.add_json(f"{BASE_URL}/a", '{"n":1}')
    stub.add_json(f"{BASE_URL}/b", '{"n":2}')
    stub.add_json(f"{BASE_URL}/c", '{"n":3}', status_code=500)
    client = _client(stub)

    async def scenario():
        handles = [client.get(path, UNTYPED_JSON) for path in ("/a", "/b", "/c")]
        return [await h.outcome() for h in handles]

    outcomes = asyncio.run(scenario())
    assert [o.ok for o in outcomes] == [True, True, False]
    assert outcomes[0].value == {"n": 1}
    assert outcomes[1].value == {"n": 2}
    assert outcomes[2].error.status_code == 500


def test_async_context_manager_closes_transport():
    stub = StubTransport()

    async def scenario():
        async with _client(stub):
            pass

    asyncio.run(scenario())
    assert stub.closed is True


def test_logs_one_line_per_request(caplog):
    stub = StubTransport()
    stub.add_json(f"{BASE_URL}/users", "[]")
    caplog.set_level("INFO", logger="restshape.client")

    _call(_client(stub), "GET", "/users", RecordList(UserJSON))
    assert "GET https://mocked.com/users -> 200" in caplog.text


@pytest.mark.parametrize(
    "transport_kwargs",
    [
        {"response": RawResponse(200, b'{"firstname":"John","lastname":"Doe"}')},
        {"response": RawResponse(500, b"boom")},
        {"error": TransportError("reset", ErrorCategory.CONNECTION_ERROR)},
    ],
    ids=["success", "status", "transport-error"],
)
def test_cancel_holds_when_transport_ignores_cancellation(transport_kwargs):
    async def scenario():
        transport = SwallowingTransport(**transport_kwargs)
        decoder = RecordingDecoder()
        client = RequestClient(BASE_URL, transport=transport, decoder=decoder, settings=ClientSettings())
        delivered = []
        handle = client.get("/users/1", Record(UserJSON))
        handle.add_done_callback(delivered.append)
        await transport.started.wait()

        assert handle.cancel() is True
        with pytest.raises(asyncio.CancelledError):
            await handle.outcome()
        handle.add_done_callback(delivered.append)
        return transport, decoder, handle, delivered

    transport, decoder, handle, delivered = asyncio.run(scenario())
    assert transport.swallowed is True
    assert decoder.calls == []
    assert delivered == []
    assert handle.cancelled() is True
    with pytest.raises(asyncio.CancelledError):
        handle.result()
