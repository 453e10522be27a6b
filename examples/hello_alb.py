"""ALB example: a WSGI application served through the adapter.

Deploy with the Lambda handler set to ``examples.hello_alb.handler``.
"""

import logging

from core.logging_utils import configure_json_logging
from core.validators import load_config
from server.adapters import ALB, make_lambda_handler
from server.handlers import WSGIHandler

config = load_config()
configure_json_logging(level=config.log_level, pretty=config.log_pretty)
logger = logging.getLogger(__name__)


def app(environ, start_response):
    if environ["PATH_INFO"] == "/":
        start_response("200 OK", [("Content-Type", "text/plain; charset=utf-8")])
        return [b"Hello World!"]
    start_response("404 Not Found", [("Content-Type", "text/plain; charset=utf-8")])
    return [b"Not Found"]


handler = make_lambda_handler(WSGIHandler(app), config, platform=ALB)
logger.info("ALB example initialized")
