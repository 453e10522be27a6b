"""Translate captured HTTP responses into outbound Lambda event payloads."""

import base64
import logging
from typing import Dict, List, Tuple

import httpx

from core.errors import ResponseReadError
from core.events import AdapterResponse

logger = logging.getLogger(__name__)


def encode_body(raw: bytes) -> Tuple[str, bool]:
    """Choose the wire representation of a response body.

    The decision depends only on the bytes: valid UTF-8 is sent as text,
    anything else as standard base64. ``Content-Type`` is not consulted.

    Args:
        raw: Response body bytes

    Returns:
        Tuple of (body, is_base64_encoded)
    """
    try:
        return raw.decode("utf-8"), False
    except UnicodeDecodeError:
        return base64.b64encode(raw).decode("ascii"), True


def group_headers(headers: httpx.Headers) -> Dict[str, List[str]]:
    """Group response headers by name, keeping the handler's casing and order."""
    encoding = headers.encoding
    grouped: Dict[str, List[str]] = {}
    for raw_name, raw_value in headers.raw:
        grouped.setdefault(raw_name.decode(encoding), []).append(raw_value.decode(encoding))
    return grouped


def read_body(response: httpx.Response) -> bytes:
    """Drain the response stream without applying any content decoding.

    Raises:
        ResponseReadError: If the stream cannot be fully read
    """
    try:
        return b"".join(response.iter_raw())
    except (httpx.HTTPError, httpx.StreamError, RuntimeError, OSError) as e:
        raise ResponseReadError(f"Unable to read response body: {e}") from e
    finally:
        response.close()


def from_response(response: httpx.Response) -> AdapterResponse:
    """Convert a captured HTTP response into a generic outbound event.

    The single-value ``headers`` map is always empty; every response header
    is carried in ``multiValueHeaders``. ``statusDescription`` is left blank.

    Args:
        response: Captured response

    Returns:
        Outbound event, ready to be cast to the API Gateway or ALB shape

    Raises:
        ResponseReadError: If the body cannot be fully read
    """
    raw = read_body(response)
    body, is_base64 = encode_body(raw)

    if is_base64:
        logger.debug(
            "Response body is not valid UTF-8, emitting base64",
            extra={"response_body_bytes": len(raw)},
        )

    return AdapterResponse(
        status_code=response.status_code,
        status_description="",
        headers={},
        multi_value_headers=group_headers(response.headers),
        body=body,
        is_base64_encoded=is_base64,
    )
