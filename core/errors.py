"""Exception hierarchy for the event adapter.

Every translation failure carries the phase it happened in, so the hosting
runtime can tell a bad inbound event apart from a failing handler.
"""


class AdapterError(Exception):
    """Base class for all adapter failures."""

    phase: str = "adapter"

    def __init__(self, message: str) -> None:
        super().__init__(f"[{self.phase}] {message}")
        self.message = message


class MalformedBodyError(AdapterError):
    """Raised when an inbound body flagged as base64 cannot be decoded."""

    phase = "request"


class RequestConstructionError(AdapterError):
    """Raised when the synthetic HTTP request cannot be built."""

    phase = "request"


class InvocationError(AdapterError):
    """Raised when the handler capability fails while serving a request."""

    phase = "invoke"


class ResponseReadError(AdapterError):
    """Raised when the captured response body cannot be fully read."""

    phase = "response"
