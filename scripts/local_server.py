# local_server.py
"""Run a Lambda handler locally behind an emulated API Gateway (no AWS needed).

Usage:
    python scripts/local_server.py examples.hello_apigw:handler --port 8000

Every local HTTP request is turned into an API Gateway REST proxy event, passed
to the handler exactly as Lambda would, and the returned payload is turned back
into an HTTP response.
"""

import argparse
import asyncio
import base64
import importlib
import logging
import sys
import time
import uuid
from pathlib import Path
from typing import Any, Callable, Dict, List

# Add project root to Python path so we can import from core
project_root = Path(__file__).parent.parent.resolve()
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from aiohttp import web
from multidict import CIMultiDict

from core.logging_utils import configure_json_logging
from core.validators import ConfigurationError, get_logging_config, load_and_validate_config

logger = logging.getLogger(__name__)


class LocalContext:
    """Minimal stand-in for the Lambda context object."""

    function_name = "local"
    memory_limit_in_mb = 128

    def __init__(self, timeout_ms: int = 30000) -> None:
        self.aws_request_id = str(uuid.uuid4())
        self._deadline = time.monotonic() + timeout_ms / 1000

    def get_remaining_time_in_millis(self) -> int:
        return max(0, int((self._deadline - time.monotonic()) * 1000))


async def build_event(request: web.Request, request_id: str) -> Dict[str, Any]:
    """Build an API Gateway REST proxy event from a local HTTP request."""
    raw_body = await request.read()
    try:
        body = raw_body.decode("utf-8")
        is_base64 = False
    except UnicodeDecodeError:
        body = base64.b64encode(raw_body).decode("ascii")
        is_base64 = True

    multi_value_headers: Dict[str, List[str]] = {}
    for name, value in request.headers.items():
        multi_value_headers.setdefault(name, []).append(value)

    multi_value_query: Dict[str, List[str]] = {}
    for name, value in request.query.items():
        multi_value_query.setdefault(name, []).append(value)

    return {
        "resource": "/{proxy+}",
        "path": request.path,
        "httpMethod": request.method,
        "headers": {name: values[-1] for name, values in multi_value_headers.items()},
        "multiValueHeaders": multi_value_headers,
        "queryStringParameters": {name: values[-1] for name, values in multi_value_query.items()} or None,
        "multiValueQueryStringParameters": multi_value_query or None,
        "pathParameters": {"proxy": request.path.lstrip("/")},
        "stageVariables": None,
        "requestContext": {
            "requestId": request_id,
            "stage": "local",
            "httpMethod": request.method,
            "path": request.path,
            "identity": {"sourceIp": request.remote},
        },
        "body": body,
        "isBase64Encoded": is_base64,
    }


def build_response(payload: Dict[str, Any]) -> web.Response:
    """Turn a Lambda response payload back into an HTTP response."""
    headers: CIMultiDict = CIMultiDict()
    for name, value in (payload.get("headers") or {}).items():
        headers[name] = value
    for name, values in (payload.get("multiValueHeaders") or {}).items():
        for value in values:
            headers.add(name, value)

    body = payload.get("body") or ""
    if payload.get("isBase64Encoded"):
        raw_body = base64.b64decode(body)
    else:
        raw_body = body.encode("utf-8")

    return web.Response(body=raw_body, status=payload.get("statusCode", 200), headers=headers)


def load_handler(target: str) -> Callable[..., Dict[str, Any]]:
    """Import a ``module:function`` Lambda handler reference."""
    module_name, _, attribute = target.partition(":")
    if not module_name or not attribute:
        raise ConfigurationError(f"Handler must look like 'module:function', got '{target}'")
    module = importlib.import_module(module_name)
    return getattr(module, attribute)


def make_app(lambda_handler: Callable[..., Dict[str, Any]]) -> web.Application:
    """Create the aiohttp application that emulates API Gateway."""

    async def handle(request: web.Request) -> web.Response:
        start_time = time.perf_counter()
        context = LocalContext()
        event = await build_event(request, context.aws_request_id)

        try:
            loop = asyncio.get_running_loop()
            payload = await loop.run_in_executor(None, lambda_handler, event, context)
        except Exception as e:
            logger.error(
                f"Lambda handler failed: {e}",
                extra={"request_id": context.aws_request_id},
                exc_info=True,
            )
            return web.json_response({"message": "Internal server error"}, status=502)

        logger.info(
            "Local request processed",
            extra={
                "request_id": context.aws_request_id,
                "http_method": request.method,
                "request_path": request.path,
                "status_code": payload.get("statusCode"),
                "duration_ms": round((time.perf_counter() - start_time) * 1000, 2),
            },
        )
        return build_response(payload)

    app = web.Application()
    app.router.add_route("*", "/{tail:.*}", handle)
    return app


def main() -> None:
    parser = argparse.ArgumentParser(description="Emulate API Gateway for a Lambda handler")
    parser.add_argument("handler", help="Lambda handler reference, e.g. examples.hello_apigw:handler")
    parser.add_argument("--host", default="localhost")
    parser.add_argument("--port", type=int, default=8000)
    parser.add_argument("--config", default=None, help="Optional config.yaml with a logging section")
    args = parser.parse_args()

    logging_config = {"level": "INFO"}
    if args.config:
        logging_config = get_logging_config(load_and_validate_config(args.config))
    # Pretty-print JSON for better local readability
    configure_json_logging(level=logging_config.get("level", "INFO"), pretty=True)

    app = make_app(load_handler(args.handler))

    print("\n" + "=" * 50)
    print("🌐 Local API Gateway emulator running!")
    print("=" * 50)
    print(f"URL: http://{args.host}:{args.port}/")
    print(f"Handler: {args.handler}")
    print("\nPress Ctrl+C to stop")
    print("=" * 50 + "\n")

    web.run_app(app, host=args.host, port=args.port, print=None)


if __name__ == "__main__":
    main()
