"""AWS Lambda entry points.

``make_lambda_handler`` wires an HTTP handler capability and the adapter
configuration into a ``handler(event, context)`` function the Lambda runtime
can call, returning either the API Gateway or the ALB response shape.
"""

import logging
from typing import Any, Callable, Dict, Optional

from pydantic import ValidationError

from core.errors import AdapterError, RequestConstructionError
from core.events import AdapterRequest
from core.interfaces import HTTPHandler, LambdaContext
from core.validators import AdapterConfig, ConfigurationError, load_config
from server.proxy import proxy

logger = logging.getLogger(__name__)

API_GATEWAY = "api_gateway"
ALB = "alb"
PLATFORMS = (API_GATEWAY, ALB)

LambdaHandler = Callable[[Dict[str, Any], Optional[LambdaContext]], Dict[str, Any]]


def parse_event(event: Dict[str, Any]) -> AdapterRequest:
    """Validate a raw Lambda event into an ``AdapterRequest``.

    Raises:
        RequestConstructionError: If the payload does not match the event shape
    """
    try:
        return AdapterRequest.model_validate(event)
    except ValidationError as e:
        raise RequestConstructionError(f"Invalid invocation payload: {e}") from e


def make_lambda_handler(
    handler: HTTPHandler,
    config: Optional[AdapterConfig] = None,
    platform: str = API_GATEWAY,
) -> LambdaHandler:
    """Build a Lambda handler function that proxies events to ``handler``.

    Configuration is resolved once, here, and reused for every invocation.

    Args:
        handler: HTTP handler capability (see ``server.handlers``)
        config: Adapter configuration; resolved with ``load_config()`` when omitted
        platform: Invoking platform, "api_gateway" or "alb"

    Returns:
        Function accepting (event, context) and returning the response dict

    Raises:
        ConfigurationError: If ``platform`` is unknown or configuration is invalid
    """
    if platform not in PLATFORMS:
        raise ConfigurationError(
            f"Unknown platform '{platform}'. Expected one of: {', '.join(PLATFORMS)}"
        )
    adapter_config = config if config is not None else load_config()

    def lambda_handler(event: Dict[str, Any], context: Optional[LambdaContext]) -> Dict[str, Any]:
        request_id = context.aws_request_id if context else "unknown"

        logger.info(
            "Lambda invocation started",
            extra={
                "request_id": request_id,
                "function_name": getattr(context, "function_name", None) if context else None,
                "platform": platform,
            },
        )

        try:
            adapter_response = proxy(parse_event(event), handler, adapter_config, context)
        except AdapterError as e:
            logger.error(
                f"Unable to proxy request: {e}",
                extra={
                    "request_id": request_id,
                    "error_type": type(e).__name__,
                    "phase": e.phase,
                },
                exc_info=True,
            )
            raise

        if platform == ALB:
            response = adapter_response.alb_target_group_response()
        else:
            response = adapter_response.api_gateway_proxy_response()

        logger.info(
            "Lambda invocation completed",
            extra={
                "request_id": request_id,
                "status_code": response.status_code,
            },
        )

        return response.to_dict()

    return lambda_handler
