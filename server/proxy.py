"""Event → request → handler → response → event pipeline."""

import logging
import time
from typing import Any, Optional

from core.events import AdapterRequest, AdapterResponse
from core.interfaces import HTTPHandler
from core.logging_utils import format_request_log, format_response_log
from core.validators import AdapterConfig
from server.invoker import invoke
from server.request_translator import to_request
from server.response_translator import from_response

logger = logging.getLogger(__name__)


def proxy(
    event: AdapterRequest,
    handler: HTTPHandler,
    config: AdapterConfig,
    context: Optional[Any] = None,
) -> AdapterResponse:
    """Serve one inbound event with ``handler``.

    Translation either fully succeeds or raises; no partial response is ever
    returned and nothing is retried.

    Args:
        event: Inbound API Gateway or ALB event
        handler: HTTP handler capability
        config: Adapter configuration
        context: Optional invocation context (e.g. the Lambda context)

    Returns:
        Generic outbound event; the caller picks the platform shape

    Raises:
        AdapterError: Subclass naming the phase that failed
    """
    start_time = time.perf_counter()
    request_id = getattr(context, "aws_request_id", None) or "unknown"

    request = to_request(event, config)
    logger.info(
        "Proxying request",
        extra=format_request_log(
            request_id=request_id,
            http_method=request.method,
            request_url=str(request.url),
            headers=event.headers,
            body_size=len(request.content),
            lambda_context=context,
            request_context=event.request_context,
        ),
    )

    response = invoke(request, handler, context)
    adapter_response = from_response(response)

    duration_ms = (time.perf_counter() - start_time) * 1000
    logger.info(
        "Request proxied",
        extra=format_response_log(
            request_id=request_id,
            status_code=adapter_response.status_code,
            headers=adapter_response.multi_value_headers,
            body_length=len(adapter_response.body),
            is_base64_encoded=adapter_response.is_base64_encoded,
            duration_ms=duration_ms,
        ),
    )

    return adapter_response
