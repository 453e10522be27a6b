"""Core interfaces for the event adapter.

The adapter never knows how a request is routed. It only needs something that
accepts a request and produces a response by writing a status line, headers
and body chunks. Frameworks are plugged in through adapters in
``server.handlers`` that implement ``HTTPHandler``.
"""

from typing import Iterable, Optional, Protocol, Tuple, runtime_checkable

import httpx

# (name, value) pairs, in the order the handler emitted them
HeaderList = Iterable[Tuple[str, str]]


class LambdaContext(Protocol):
    """Protocol for AWS Lambda context object.

    This defines the expected interface for Lambda context objects,
    which provide runtime information about the Lambda execution environment.
    """

    aws_request_id: str
    function_name: Optional[str]
    memory_limit_in_mb: Optional[int]


class ResponseWriter(Protocol):
    """Sink a handler writes its response into."""

    def write_header(self, status_code: int, headers: HeaderList = ()) -> None:
        """Send the status code and response headers.

        Only the first call takes effect.
        """
        ...

    def write(self, data: bytes) -> int:
        """Append a chunk to the response body.

        Writing before ``write_header`` implies a 200 status.

        Returns:
            Number of bytes written
        """
        ...


@runtime_checkable
class HTTPHandler(Protocol):
    """HTTP handler capability driven by the adapter."""

    async def serve_http(self, request: httpx.Request, writer: ResponseWriter) -> None:
        """Serve one request, writing the full response into ``writer``.

        The adapter treats the response as complete once this coroutine
        returns.

        Args:
            request: Synthetic request built from the inbound event
            writer: Response sink
        """
        ...
