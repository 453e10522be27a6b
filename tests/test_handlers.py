"""Tests for the ASGI, WSGI and function handler adapters."""

import json

import pytest

from core.events import AdapterRequest
from core.validators import AdapterConfig
from server.handlers import ASGIHandler, FunctionHandler, WSGIHandler
from server.invoker import ResponseRecorder
from server.request_translator import CONTEXT_EXTENSION, to_request


def make_request(**overrides):
    payload = {
        "path": "/items/42",
        "httpMethod": "POST",
        "headers": {"Content-Type": "application/json", "X-Trace": "abc"},
        "multiValueQueryStringParameters": {"q": ["a b"], "tag": ["x", "y"]},
        "requestContext": {"requestId": "req-1"},
        "body": json.dumps({"name": "widget"}),
    }
    payload.update(overrides)
    request = to_request(AdapterRequest.model_validate(payload), AdapterConfig(base_host="https://example.com"))
    request.extensions[CONTEXT_EXTENSION] = "lambda-context"
    return request


async def echo_asgi(scope, receive, send):
    message = await receive()
    payload = {
        "method": scope["method"],
        "path": scope["path"],
        "query": scope["query_string"].decode(),
        "scheme": scope["scheme"],
        "server": list(scope["server"]),
        "trace": dict(scope["headers"]).get(b"x-trace", b"").decode(),
        "body": message["body"].decode(),
        "request_id": scope["aws.event"]["requestContext"]["requestId"],
        "context": scope["aws.context"],
    }
    await send(
        {
            "type": "http.response.start",
            "status": 201,
            "headers": [(b"content-type", b"application/json"), (b"set-cookie", b"a=1"), (b"set-cookie", b"b=2")],
        }
    )
    body = json.dumps(payload).encode()
    await send({"type": "http.response.body", "body": body[:10], "more_body": True})
    await send({"type": "http.response.body", "body": body[10:]})


def echo_wsgi(environ, start_response):
    payload = {
        "method": environ["REQUEST_METHOD"],
        "path": environ["PATH_INFO"],
        "query": environ["QUERY_STRING"],
        "content_type": environ["CONTENT_TYPE"],
        "trace": environ.get("HTTP_X_TRACE"),
        "body": environ["wsgi.input"].read(int(environ["CONTENT_LENGTH"])).decode(),
        "request_id": environ["aws.event"]["requestContext"]["requestId"],
        "context": environ["aws.context"],
    }
    start_response("202 Accepted", [("Content-Type", "application/json"), ("X-Powered-By", "wsgi")])
    return [json.dumps(payload).encode()]


class TestASGIHandler:
    """Test ASGIHandler."""

    @pytest.mark.asyncio
    async def test_scope_and_response(self):
        """Test that the scope mirrors the request and the response is recorded."""
        recorder = ResponseRecorder()

        await ASGIHandler(echo_asgi).serve_http(make_request(), recorder)

        response = recorder.result()
        assert response.status_code == 201
        assert response.headers.get_list("set-cookie") == ["a=1", "b=2"]
        payload = json.loads(response.read())
        assert payload == {
            "method": "POST",
            "path": "/items/42",
            "query": "q=a+b&tag=x&tag=y",
            "scheme": "https",
            "server": ["example.com", 443],
            "trace": "abc",
            "body": '{"name": "widget"}',
            "request_id": "req-1",
            "context": "lambda-context",
        }

    @pytest.mark.asyncio
    async def test_app_without_response_raises(self):
        """Test that an app that never starts a response is an error."""

        async def silent(scope, receive, send):
            return None

        with pytest.raises(RuntimeError):
            await ASGIHandler(silent).serve_http(make_request(), ResponseRecorder())

    @pytest.mark.asyncio
    async def test_receive_after_body_waits_for_response(self):
        """Test that the disconnect message only arrives after the response completes."""
        events = []

        async def app(scope, receive, send):
            await receive()
            await send({"type": "http.response.start", "status": 200, "headers": []})
            await send({"type": "http.response.body", "body": b"done"})
            events.append((await receive())["type"])

        recorder = ResponseRecorder()
        await ASGIHandler(app).serve_http(make_request(), recorder)

        assert events == ["http.disconnect"]
        assert recorder.result().read() == b"done"


class TestWSGIHandler:
    """Test WSGIHandler."""

    @pytest.mark.asyncio
    async def test_environ_and_response(self):
        """Test that the environ mirrors the request and the response is recorded."""
        recorder = ResponseRecorder()

        await WSGIHandler(echo_wsgi).serve_http(make_request(), recorder)

        response = recorder.result()
        assert response.status_code == 202
        assert response.headers["X-Powered-By"] == "wsgi"
        payload = json.loads(response.read())
        assert payload == {
            "method": "POST",
            "path": "/items/42",
            "query": "q=a+b&tag=x&tag=y",
            "content_type": "application/json",
            "trace": "abc",
            "body": '{"name": "widget"}',
            "request_id": "req-1",
            "context": "lambda-context",
        }

    @pytest.mark.asyncio
    async def test_empty_body_still_sends_headers(self):
        """Test that a WSGI app returning no chunks still sets the status."""

        def no_content(environ, start_response):
            start_response("204 No Content", [])
            return []

        recorder = ResponseRecorder()
        await WSGIHandler(no_content).serve_http(make_request(), recorder)

        assert recorder.status_code == 204

    @pytest.mark.asyncio
    async def test_iterable_is_closed(self):
        """Test that the response iterable's close() is called."""
        closed = []

        class Body:
            def __iter__(self):
                yield b"chunk"

            def close(self):
                closed.append(True)

        def app(environ, start_response):
            start_response("200 OK", [])
            return Body()

        await WSGIHandler(app).serve_http(make_request(), ResponseRecorder())

        assert closed == [True]

    @pytest.mark.asyncio
    async def test_missing_start_response_raises(self):
        """Test that an app that never calls start_response is an error."""

        def broken(environ, start_response):
            return [b"body"]

        with pytest.raises(RuntimeError):
            await WSGIHandler(broken).serve_http(make_request(), ResponseRecorder())


class TestFunctionHandler:
    """Test FunctionHandler."""

    @pytest.mark.asyncio
    async def test_sync_function(self):
        """Test that a sync function is called."""

        def hello(request, writer):
            writer.write(b"sync")

        recorder = ResponseRecorder()
        await FunctionHandler(hello).serve_http(make_request(), recorder)

        assert recorder.result().read() == b"sync"

    @pytest.mark.asyncio
    async def test_async_function(self):
        """Test that an async function is awaited."""

        async def hello(request, writer):
            writer.write_header(418)

        recorder = ResponseRecorder()
        await FunctionHandler(hello).serve_http(make_request(), recorder)

        assert recorder.status_code == 418
