"""Handler capability adapters for common Python web application interfaces.

Each adapter implements ``core.interfaces.HTTPHandler`` so the proxy can drive
ASGI applications (Starlette, FastAPI, ...), WSGI applications (Flask,
Django, ...) or a plain coroutine function with the same synthetic request.

The inbound event and the invocation context are exposed to applications
under the ``aws.event`` and ``aws.context`` keys of the ASGI scope / WSGI
environ.
"""

import asyncio
import inspect
import io
import logging
import sys
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple, Union

import httpx

from core.interfaces import ResponseWriter
from server.request_translator import get_event, get_invocation_context

logger = logging.getLogger(__name__)

ASGIApp = Callable[..., Awaitable[None]]
WSGIApp = Callable[..., Any]
HandlerFunc = Callable[[httpx.Request, ResponseWriter], Union[None, Awaitable[None]]]


def _default_port(url: httpx.URL) -> int:
    if url.port is not None:
        return url.port
    return 443 if url.scheme == "https" else 80


def _event_dict(request: httpx.Request) -> Optional[Dict[str, Any]]:
    event = get_event(request)
    return event.to_dict() if event is not None else None


class FunctionHandler:
    """Adapts a plain ``(request, writer)`` function into an ``HTTPHandler``.

    The function may be sync or async.
    """

    def __init__(self, func: HandlerFunc) -> None:
        self.func = func

    async def serve_http(self, request: httpx.Request, writer: ResponseWriter) -> None:
        result = self.func(request, writer)
        if inspect.isawaitable(result):
            await result


class ASGIHandler:
    """Drives an ASGI 3 HTTP application with the synthetic request."""

    def __init__(self, app: ASGIApp, root_path: str = "") -> None:
        """Initialize the ASGI adapter.

        Args:
            app: ASGI 3 application callable
            root_path: Mount point reported to the application in ``scope["root_path"]``
        """
        self.app = app
        self.root_path = root_path

    def build_scope(self, request: httpx.Request) -> Dict[str, Any]:
        """Build the HTTP connection scope for ``request``."""
        url = request.url
        return {
            "type": "http",
            "asgi": {"version": "3.0", "spec_version": "2.3"},
            "http_version": "1.1",
            "method": request.method,
            "scheme": url.scheme,
            "path": url.path,
            "raw_path": url.raw_path.split(b"?", 1)[0],
            "query_string": url.query,
            "root_path": self.root_path,
            "headers": [(name.lower(), value) for name, value in request.headers.raw],
            "client": None,
            "server": (url.host, _default_port(url)),
            "aws.event": _event_dict(request),
            "aws.context": get_invocation_context(request),
        }

    async def serve_http(self, request: httpx.Request, writer: ResponseWriter) -> None:
        body = request.content
        body_sent = False
        response_started = False
        response_complete = asyncio.Event()

        async def receive() -> Dict[str, Any]:
            nonlocal body_sent
            if not body_sent:
                body_sent = True
                return {"type": "http.request", "body": body, "more_body": False}
            # Nothing left to read; the client "disconnects" once the response is done
            await response_complete.wait()
            return {"type": "http.disconnect"}

        async def send(message: Dict[str, Any]) -> None:
            nonlocal response_started
            message_type = message["type"]

            if message_type == "http.response.start":
                if response_started:
                    raise RuntimeError("ASGI application sent http.response.start twice")
                response_started = True
                writer.write_header(message["status"], message.get("headers", []))
            elif message_type == "http.response.body":
                if not response_started:
                    raise RuntimeError("ASGI application sent a body before http.response.start")
                chunk = message.get("body", b"")
                if chunk:
                    writer.write(chunk)
                if not message.get("more_body", False):
                    response_complete.set()
            else:
                logger.debug(f"Ignoring unsupported ASGI message type: {message_type}")

        await self.app(self.build_scope(request), receive, send)

        if not response_started:
            raise RuntimeError("ASGI application returned without sending a response")
        response_complete.set()


class WSGIHandler:
    """Drives a WSGI application with the synthetic request.

    The application runs on the handler's private event loop thread, so a
    blocking WSGI call never stalls the invoking caller beyond the request.
    """

    def __init__(self, app: WSGIApp) -> None:
        self.app = app

    def build_environ(self, request: httpx.Request) -> Dict[str, Any]:
        """Build the WSGI environ for ``request`` (PEP 3333 latin-1 strings)."""
        url = request.url
        body = request.content

        environ: Dict[str, Any] = {
            "REQUEST_METHOD": request.method,
            "SCRIPT_NAME": "",
            "PATH_INFO": url.path.encode("utf-8").decode("latin-1"),
            "QUERY_STRING": url.query.decode("latin-1"),
            "SERVER_NAME": url.host,
            "SERVER_PORT": str(_default_port(url)),
            "SERVER_PROTOCOL": "HTTP/1.1",
            "CONTENT_LENGTH": str(len(body)),
            "CONTENT_TYPE": request.headers.get("content-type", ""),
            "wsgi.version": (1, 0),
            "wsgi.url_scheme": url.scheme,
            "wsgi.input": io.BytesIO(body),
            "wsgi.errors": sys.stderr,
            "wsgi.multithread": False,
            "wsgi.multiprocess": False,
            "wsgi.run_once": False,
            "aws.event": _event_dict(request),
            "aws.context": get_invocation_context(request),
        }

        for raw_name, raw_value in request.headers.raw:
            name = raw_name.decode("latin-1").upper().replace("-", "_")
            if name in ("CONTENT_TYPE", "CONTENT_LENGTH"):
                continue
            key = "HTTP_" + name
            value = raw_value.decode("latin-1")
            if key in environ:
                environ[key] = environ[key] + "," + value
            else:
                environ[key] = value

        return environ

    async def serve_http(self, request: httpx.Request, writer: ResponseWriter) -> None:
        status_line: Optional[str] = None
        response_headers: List[Tuple[str, str]] = []
        headers_sent = False

        def send_headers() -> None:
            nonlocal headers_sent
            if headers_sent:
                return
            if status_line is None:
                raise RuntimeError("WSGI application did not call start_response")
            headers_sent = True
            writer.write_header(
                int(status_line.split(" ", 1)[0]),
                [(name.encode("latin-1"), value.encode("latin-1")) for name, value in response_headers],
            )

        def write(data: bytes) -> None:
            send_headers()
            if data:
                writer.write(data)

        def start_response(status: str, headers: List[Tuple[str, str]], exc_info: Any = None) -> Callable[[bytes], None]:
            nonlocal status_line, response_headers
            if exc_info is not None:
                if headers_sent:
                    raise exc_info[1].with_traceback(exc_info[2])
            elif status_line is not None:
                raise RuntimeError("start_response called twice without exc_info")
            status_line = status
            response_headers = list(headers)
            return write

        result = self.app(self.build_environ(request), start_response)
        try:
            for chunk in result:
                write(chunk)
            send_headers()
        finally:
            close = getattr(result, "close", None)
            if close is not None:
                close()
