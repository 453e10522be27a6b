"""Synchronous invocation of an HTTP handler capability.

The handler runs on its own worker thread with a private event loop, so it
may use any internal concurrency it likes (and the caller may itself be
inside a running loop). The caller blocks on a one-shot completion signal
that fires only after ``serve_http`` has returned, which guarantees the
response recorder is fully written before it is read.

There is no timeout: a handler that never returns hangs the invocation. The
hosting runtime's own deadline is the only bound.
"""

import asyncio
import logging
import threading
from typing import Any, List, Optional, Tuple, Union

import httpx

from core.errors import InvocationError
from core.interfaces import HeaderList, HTTPHandler
from server.request_translator import CONTEXT_EXTENSION

logger = logging.getLogger(__name__)


def _as_bytes(value: Union[str, bytes]) -> bytes:
    return value if isinstance(value, bytes) else str(value).encode("utf-8")


class ResponseRecorder:
    """In-memory ``ResponseWriter`` that captures a handler's response."""

    def __init__(self) -> None:
        self.status_code: Optional[int] = None
        self.headers: List[Tuple[bytes, bytes]] = []
        self._body = bytearray()

    @property
    def wrote_header(self) -> bool:
        return self.status_code is not None

    def write_header(self, status_code: int, headers: HeaderList = ()) -> None:
        if self.wrote_header:
            logger.warning(
                "Ignoring superfluous write_header call",
                extra={"status_code": status_code, "recorded_status": self.status_code},
            )
            return
        self.status_code = status_code
        self.headers = [(_as_bytes(name), _as_bytes(value)) for name, value in headers]

    def write(self, data: bytes) -> int:
        if not self.wrote_header:
            self.write_header(200)
        self._body.extend(data)
        return len(data)

    def result(self) -> httpx.Response:
        """Build the captured response.

        The body is attached as a raw stream so httpx adds no headers of its
        own; the header list is exactly what the handler wrote.
        """
        return httpx.Response(
            self.status_code if self.status_code is not None else 200,
            headers=self.headers,
            stream=httpx.ByteStream(bytes(self._body)),
        )


class _Completion:
    """One-shot completion signal carrying the handler's failure, if any."""

    def __init__(self) -> None:
        self._event = threading.Event()
        self._lock = threading.Lock()
        self.error: Optional[BaseException] = None

    def signal(self, error: Optional[BaseException] = None) -> None:
        with self._lock:
            if self._event.is_set():
                return
            self.error = error
            self._event.set()

    def wait(self) -> None:
        self._event.wait()


async def _serve_and_signal(
    handler: HTTPHandler,
    request: httpx.Request,
    recorder: ResponseRecorder,
    completion: _Completion,
) -> None:
    error: Optional[BaseException] = None
    try:
        await handler.serve_http(request, recorder)
    except BaseException as e:
        error = e
        raise
    finally:
        completion.signal(error)


def _run_handler(
    handler: HTTPHandler,
    request: httpx.Request,
    recorder: ResponseRecorder,
    completion: _Completion,
) -> None:
    try:
        asyncio.run(_serve_and_signal(handler, request, recorder, completion))
    except (Exception, asyncio.CancelledError) as e:
        # Re-raised on the calling thread by invoke()
        completion.signal(e)
        logger.debug(f"Handler thread finished with {type(e).__name__}: {e}")


def invoke(
    request: httpx.Request,
    handler: HTTPHandler,
    context: Optional[Any] = None,
) -> httpx.Response:
    """Serve ``request`` with ``handler`` and wait until it has fully completed.

    Args:
        request: Synthetic request; owned by the invoker for the duration of the call
        handler: HTTP handler capability
        context: Invocation context (e.g. the Lambda context) exposed to the
            handler through ``request.extensions["invocation_context"]``

    Returns:
        Captured response

    Raises:
        InvocationError: If the handler thread cannot be started or the handler raises
    """
    request.extensions[CONTEXT_EXTENSION] = context

    recorder = ResponseRecorder()
    completion = _Completion()
    worker = threading.Thread(
        target=_run_handler,
        args=(handler, request, recorder, completion),
        name="http-handler",
        daemon=True,
    )

    try:
        worker.start()
    except RuntimeError as e:
        raise InvocationError(f"Unable to start handler thread: {e}") from e

    completion.wait()
    worker.join()

    if completion.error is not None:
        error = completion.error
        raise InvocationError(
            f"Handler failed serving {request.method} {request.url.path}: "
            f"{type(error).__name__}: {error}"
        ) from error

    return recorder.result()
