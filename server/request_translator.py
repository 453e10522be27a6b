"""Translate inbound API Gateway / ALB events into synthetic HTTP requests.

The synthetic request is an ``httpx.Request`` with an absolute URL. The
original event is attached to the request extensions so handlers can reach
the API Gateway request context and stage variables.
"""

import base64
import binascii
import logging
from typing import Any, Dict, Optional
from urllib.parse import urlencode

import httpx

from core.errors import MalformedBodyError, RequestConstructionError
from core.events import AdapterRequest
from core.validators import AdapterConfig

logger = logging.getLogger(__name__)

# Keys under httpx.Request.extensions
EVENT_EXTENSION = "aws.event"
CONTEXT_EXTENSION = "invocation_context"


def decode_body(event: AdapterRequest) -> bytes:
    """Decode the event body into raw bytes.

    Args:
        event: Inbound event

    Returns:
        Body bytes (UTF-8 text, or base64-decoded when flagged)

    Raises:
        MalformedBodyError: If the body is flagged as base64 but is not valid base64
    """
    if not event.is_base64_encoded:
        return event.body.encode("utf-8")

    try:
        # Line breaks are tolerated, as in MIME-wrapped payloads
        body = event.body.replace("\r", "").replace("\n", "")
        return base64.b64decode(body, validate=True)
    except (binascii.Error, ValueError) as e:
        raise MalformedBodyError(f"Invalid base64-encoded body: {e}") from e


def strip_base_path(path: str, base_path: str) -> str:
    """Remove one leading occurrence of ``base_path`` and root the result.

    A base path of "" or "/" disables stripping.

    Args:
        path: Path from the inbound event
        base_path: Normalized base path (see ``normalize_base_path``)

    Returns:
        Path starting with "/"
    """
    if len(base_path) > 1 and path.startswith(base_path):
        path = path[len(base_path):]
    if not path.startswith("/"):
        path = "/" + path
    return path


def build_query_string(event: AdapterRequest) -> str:
    """Rebuild the query string from the event's query parameter maps.

    Multi-value parameters win over single-value ones. Keys and values are
    form-encoded (space becomes "+").

    Args:
        event: Inbound event

    Returns:
        Query string without the leading "?", or "" when there are no parameters
    """
    if event.multi_value_query_string_parameters:
        pairs = [
            (key, value)
            for key, values in event.multi_value_query_string_parameters.items()
            for value in values
        ]
    elif event.query_string_parameters:
        # Events without the multi-value map (older integrations)
        pairs = list(event.query_string_parameters.items())
    else:
        return ""
    return urlencode(pairs)


def build_url(event: AdapterRequest, config: AdapterConfig) -> str:
    """Compose the absolute request URL: base host + path + query string."""
    url = config.base_host + strip_base_path(event.path, config.base_path)
    query_string = build_query_string(event)
    if query_string:
        url += "?" + query_string
    return url


def to_request(event: AdapterRequest, config: AdapterConfig) -> httpx.Request:
    """Convert an inbound event into a synthetic HTTP request.

    Args:
        event: Inbound event
        config: Adapter configuration (base host, base path)

    Returns:
        Synthetic request with an absolute URL

    Raises:
        MalformedBodyError: If the body cannot be decoded
        RequestConstructionError: If the request cannot be built
    """
    body = decode_body(event)
    method = event.http_method.upper() or "GET"
    raw_url = build_url(event, config)

    try:
        url = httpx.URL(raw_url)
        if not url.is_absolute_url:
            raise ValueError(f"URL '{raw_url}' is not absolute, check the configured base host")

        request = httpx.Request(
            method,
            url,
            headers=httpx.Headers(event.headers, encoding="utf-8"),
            content=body,
            extensions={EVENT_EXTENSION: event},
        )
    except (httpx.InvalidURL, TypeError, ValueError) as e:
        logger.error(
            f"Could not convert request {method}:{event.path} to an HTTP request: {e}",
            extra={"http_method": method, "request_path": event.path},
        )
        raise RequestConstructionError(
            f"Unable to convert {method} {event.path} into an HTTP request: {e}"
        ) from e

    return request


def get_event(request: httpx.Request) -> Optional[AdapterRequest]:
    """Return the inbound event a synthetic request was built from."""
    return request.extensions.get(EVENT_EXTENSION)


def get_request_context(request: httpx.Request) -> Any:
    """Return the opaque platform request context of the inbound event."""
    event = get_event(request)
    return event.request_context if event is not None else None


def get_stage_variables(request: httpx.Request) -> Dict[str, str]:
    """Return the API Gateway stage variables of the inbound event."""
    event = get_event(request)
    return dict(event.stage_variables) if event is not None else {}


def get_path_parameters(request: httpx.Request) -> Dict[str, str]:
    """Return the path parameters API Gateway extracted for the resource."""
    event = get_event(request)
    return dict(event.path_parameters) if event is not None else {}


def get_invocation_context(request: httpx.Request) -> Any:
    """Return the invocation context (e.g. the Lambda context) forwarded by the invoker."""
    return request.extensions.get(CONTEXT_EXTENSION)
