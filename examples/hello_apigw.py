"""API Gateway example: a bare ASGI application served through the adapter.

Deploy with the Lambda handler set to ``examples.hello_apigw.handler``.
"""

import logging

from core.logging_utils import configure_json_logging
from core.validators import load_config
from server.adapters import API_GATEWAY, make_lambda_handler
from server.handlers import ASGIHandler

config = load_config()
configure_json_logging(level=config.log_level, pretty=config.log_pretty)
logger = logging.getLogger(__name__)


async def app(scope, receive, send):
    """Answer ``GET /`` with a greeting and everything else with 404."""
    if scope["type"] != "http":
        return

    if scope["method"] == "GET" and scope["path"] == "/":
        status, body = 200, b"Hello World!"
    else:
        status, body = 404, b"Not Found"

    await send(
        {
            "type": "http.response.start",
            "status": status,
            "headers": [(b"content-type", b"text/plain; charset=utf-8")],
        }
    )
    await send({"type": "http.response.body", "body": body})


handler = make_lambda_handler(ASGIHandler(app), config, platform=API_GATEWAY)
logger.info("API Gateway example initialized")
