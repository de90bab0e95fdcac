# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

import asyncio
import json

import httpx
import pytest

from restclient.config import HttpSettings
from restclient.errors import ErrorCategory, categorize_exception
from restclient.http.client import Client
from restclient.http.models import Reply


class RecordingTransport:
    """MockTransport handler that records requests and replies from a factory."""

    def __init__(self, respond=None):
        self.requests: list[httpx.Request] = []
        self._respond = respond or (lambda request: httpx.Response(200, text="ok"))

    def __call__(self, request: httpx.Request):
        self.requests.append(request)
        return self._respond(request)


class CallbackRecorder:
    def __init__(self):
        self.calls: list[tuple] = []

    def __call__(self, error, response, body):
        self.calls.append((error, response, body))


def _client(handler, **options) -> Client:
    options.setdefault("host", "api.example.com")
    return Client(
        settings=HttpSettings(user_agent="UA/1.0"),
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        **options,
    )


def test_buffered_text_response():
    transport = RecordingTransport(lambda request: httpx.Response(200, text="hello"))
    callback = CallbackRecorder()

    async def main():
        client = _client(transport, base_path="/api")
        reply = await client.get("/greeting", callback)
        await client.aclose()
        return reply

    reply = asyncio.run(main())

    assert isinstance(reply, Reply)
    assert reply.body == "hello"
    assert reply.response.status_code == 200
    assert len(callback.calls) == 1
    error, response, body = callback.calls[0]
    assert error is None
    assert response is reply.response
    assert body == "hello"
    assert transport.requests[0].url.path == "/api/greeting"
    assert transport.requests[0].headers["user-agent"] == "UA/1.0"


def test_json_response_is_parsed():
    transport = RecordingTransport(lambda request: httpx.Response(200, text='{"a":1}'))
    callback = CallbackRecorder()

    async def main():
        client = _client(transport)
        await client.get("/thing", {"response": "json"}, callback)

    asyncio.run(main())

    assert len(callback.calls) == 1
    error, response, body = callback.calls[0]
    assert error is None
    assert response.status_code == 200
    assert body == {"a": 1}


def test_client_default_json_response_format():
    transport = RecordingTransport(lambda request: httpx.Response(200, text="[1, 2]"))

    async def main():
        client = _client(transport, response="json")
        return await client.get("/list")

    assert asyncio.run(main()).body == [1, 2]


def test_malformed_json_reports_parse_error_only():
    transport = RecordingTransport(lambda request: httpx.Response(200, text="{a:"))
    callback = CallbackRecorder()

    async def main():
        client = _client(transport)
        handle = client.get("/thing", {"response": "json"}, callback)
        with pytest.raises(json.JSONDecodeError):
            await handle

    asyncio.run(main())

    assert len(callback.calls) == 1
    error, response, body = callback.calls[0]
    assert isinstance(error, json.JSONDecodeError)
    assert categorize_exception(error) is ErrorCategory.PARSE_ERROR
    assert response is None
    assert body is None


def test_stream_response_fires_before_body_is_read():
    state = {"body_started": False}

    async def chunks():
        state["body_started"] = True
        yield b"part-1,"
        yield b"part-2"

    transport = RecordingTransport(lambda request: httpx.Response(200, content=chunks()))
    seen = {}

    async def main():
        client = _client(transport)

        def callback(error, response, body):
            seen["started_at_callback"] = state["body_started"]
            seen["args"] = (error, response, body)

        reply = await client.get("/download", {"stream": True}, callback)
        content = await reply.response.aread()
        await reply.response.aclose()
        return reply, content

    reply, content = asyncio.run(main())

    assert seen["started_at_callback"] is False
    error, response, body = seen["args"]
    assert error is None
    assert response is reply.response
    assert body is None
    assert reply.body is None
    assert content == b"part-1,part-2"


def test_falsy_encoding_streams_raw_response():
    transport = RecordingTransport(lambda request: httpx.Response(200, content=b"\x00\x01"))
    callback = CallbackRecorder()

    async def main():
        client = _client(transport)
        reply = await client.get("/blob", {"encoding": None}, callback)
        return await reply.response.aread()

    raw = asyncio.run(main())

    assert callback.calls[0][0] is None
    assert callback.calls[0][2] is None
    assert raw == b"\x00\x01"


def test_response_encoding_option_decodes_text():
    transport = RecordingTransport(lambda request: httpx.Response(200, content="café".encode("latin-1")))

    async def main():
        client = _client(transport)
        return await client.get("/menu", {"encoding": "latin-1"})

    assert asyncio.run(main()).body == "café"


def test_transport_error_reaches_callback_once():
    def refuse(request):
        raise httpx.ConnectError("connection refused", request=request)

    callback = CallbackRecorder()

    async def main():
        client = _client(RecordingTransport(refuse))
        handle = client.post("/orders", {"body": {"id": 1}}, callback)
        with pytest.raises(httpx.ConnectError):
            await handle
        # Let any stray callbacks run before checking.
        await asyncio.sleep(0)

    asyncio.run(main())

    assert len(callback.calls) == 1
    error, response, body = callback.calls[0]
    assert isinstance(error, httpx.ConnectError)
    assert response is None
    assert body is None


def test_unencodable_header_reaches_callback_once(caplog):
    transport = RecordingTransport()
    callback = CallbackRecorder()

    async def main():
        client = _client(transport)
        handle = client.get("/x", {"headers": {"X-Name": "café"}}, callback)
        with pytest.raises(UnicodeEncodeError):
            await handle
        await asyncio.sleep(0)

    asyncio.run(main())

    assert len(callback.calls) == 1
    error, response, body = callback.calls[0]
    assert isinstance(error, UnicodeEncodeError)
    assert response is None
    assert body is None
    assert transport.requests == []
    assert not [record for record in caplog.records if record.levelname == "ERROR"]


def test_read_error_mid_body_reaches_callback_once():
    async def chunks():
        yield b"partial"
        raise httpx.ReadError("connection reset")

    callback = CallbackRecorder()

    async def main():
        client = _client(RecordingTransport(lambda request: httpx.Response(200, content=chunks())))
        handle = client.get("/download", callback)
        with pytest.raises(httpx.ReadError):
            await handle
        await asyncio.sleep(0)

    asyncio.run(main())

    assert len(callback.calls) == 1
    error, response, body = callback.calls[0]
    assert isinstance(error, httpx.ReadError)
    assert categorize_exception(error) is ErrorCategory.CONNECTION_ERROR
    assert response is None
    assert body is None


def test_unknown_encoding_reaches_callback_once():
    callback = CallbackRecorder()

    async def main():
        client = _client(RecordingTransport(lambda request: httpx.Response(200, content=b"hello")))
        handle = client.get("/menu", {"encoding": "no-such-codec"}, callback)
        with pytest.raises(LookupError):
            await handle
        await asyncio.sleep(0)

    asyncio.run(main())

    assert len(callback.calls) == 1
    error, response, body = callback.calls[0]
    assert isinstance(error, LookupError)
    assert categorize_exception(error) is ErrorCategory.PARSE_ERROR
    assert response is None
    assert body is None


def test_transport_error_without_callback_is_dropped(caplog):
    def refuse(request):
        raise httpx.ConnectError("connection refused", request=request)

    async def main():
        client = _client(RecordingTransport(refuse))
        handle = client.get("/x")
        while not handle.done():
            await asyncio.sleep(0)
        await asyncio.sleep(0)
        return handle

    handle = asyncio.run(main())

    assert handle.done()
    assert not [record for record in caplog.records if record.levelname == "ERROR"]


def test_failing_callback_is_logged(caplog):
    def callback(error, response, body):
        raise ValueError("callback bug")

    async def main():
        client = _client(RecordingTransport())
        handle = client.get("/x", callback)
        while not handle.done():
            await asyncio.sleep(0)
        await asyncio.sleep(0)

    asyncio.run(main())

    errors = [record for record in caplog.records if record.levelname == "ERROR"]
    assert len(errors) == 1
    assert "failed outside the request callback" in errors[0].getMessage()
    assert isinstance(errors[0].exc_info[1], ValueError)


def test_callback_in_options_position():
    transport = RecordingTransport()
    first = CallbackRecorder()
    second = CallbackRecorder()

    async def main():
        client = _client(transport, params={"token": "abc"})
        await client.get("/x", first)
        await client.get("/x", {}, second)

    asyncio.run(main())

    assert first.calls[0][0] is None and first.calls[0][2] == "ok"
    assert second.calls[0][0] is None and second.calls[0][2] == "ok"
    one, two = transport.requests
    assert one.method == two.method == "GET"
    assert str(one.url) == str(two.url)
    assert dict(one.headers) == dict(two.headers)


def test_async_callback_is_awaited():
    transport = RecordingTransport(lambda request: httpx.Response(201, text="created"))
    seen = []

    async def callback(error, response, body):
        await asyncio.sleep(0)
        seen.append((error, response.status_code, body))

    async def main():
        client = _client(transport)
        await client.post("/items", {"body": "x"}, callback)

    asyncio.run(main())

    assert seen == [(None, 201, "created")]


def test_wire_request_for_each_verb():
    transport = RecordingTransport()

    async def main():
        client = _client(transport, base_path="/v1", headers={"X-Key": "k"})
        await client.get("/a", {"params": {"q": "x y"}})
        await client.post("/b", {"body": {"n": 1}, "type": "json"})
        await client.put("/c", {"body": {"n": "2"}})
        await client.delete("/d")
        await client.patch("/e", {"body": "raw"})

    asyncio.run(main())

    get, post, put, delete, patch = transport.requests

    assert get.method == "GET"
    assert get.url.raw_path == b"/v1/a?q=x%20y"
    assert "content-length" not in get.headers
    assert get.headers["x-key"] == "k"

    assert post.method == "POST"
    assert post.content == b'{"n":1}'
    assert post.headers["content-type"] == "application/json"
    assert post.headers["content-length"] == "7"

    assert put.content == b"n=2"
    assert put.headers["content-type"] == "application/x-www-form-urlencoded"

    assert delete.method == "DELETE"
    assert delete.content == b""
    assert delete.headers["content-length"] == "0"

    assert patch.method == "PATCH"
    assert patch.content == b"raw"
    assert patch.headers["content-length"] == "3"


def test_open_body_streams_additional_writes():
    transport = RecordingTransport()

    async def main():
        client = _client(transport)
        handle = client.post(
            "/upload",
            {"body": "hello ", "end": False, "headers": {"Content-Length": "11"}},
        )
        assert handle.ended is False
        await asyncio.sleep(0)
        handle.write("world")
        handle.end()
        with pytest.raises(RuntimeError):
            handle.write("!")
        return await handle

    reply = asyncio.run(main())

    assert reply.body == "ok"
    request = transport.requests[0]
    assert request.content == b"hello world"
    assert request.headers["content-length"] == "11"


def test_handle_exposes_prepared_request_and_listeners():
    transport = RecordingTransport()
    finished = []

    async def main():
        client = _client(transport)
        handle = client.get("/x", {"params": {"a": 1}})
        handle.add_done_callback(lambda h: finished.append(h.request.path))
        assert handle.ended is True
        await handle
        await asyncio.sleep(0)
        return handle

    handle = asyncio.run(main())

    assert handle.request.path == "//x?a=1"
    assert finished == ["//x?a=1"]
    assert transport.requests[0].url.raw_path == b"//x?a=1"


def test_abort_cancels_without_callback():
    async def never(request):
        await asyncio.Event().wait()

    callback = CallbackRecorder()

    async def main():
        client = _client(never)
        handle = client.get("/slow", callback)
        await asyncio.sleep(0)
        assert handle.abort() is True
        with pytest.raises(asyncio.CancelledError):
            await handle
        return handle

    handle = asyncio.run(main())

    assert handle.cancelled() is True
    assert callback.calls == []


def test_owned_transport_is_closed_but_injected_one_is_not():
    injected = httpx.AsyncClient(transport=httpx.MockTransport(lambda request: httpx.Response(200)))

    async def main():
        async with Client(host="h", settings=HttpSettings(), http_client=injected):
            pass
        owned = Client(host="h", settings=HttpSettings())
        await owned.aclose()
        return owned

    asyncio.run(main())

    assert injected.is_closed is False
