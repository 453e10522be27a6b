"""Logging utilities for the event adapter.

Provides centralized JSON logging configuration and sensitive data sanitization.
"""

import json
import logging
from typing import Any, Dict, List, Mapping, Optional

from pythonjsonlogger import json as jsonlogger

# Sensitive keys to filter (case-insensitive)
SENSITIVE_KEYS = [
    "api_key",
    "apikey",
    "api-key",
    "authorization",
    "auth",
    "token",
    "bearer",
    "password",
    "passwd",
    "secret",
    "credential",
    "credentials",
    "access_token",
    "refresh_token",
    "session_id",
    "cookie",
]

# Sensitive header prefixes (case-insensitive)
SENSITIVE_HEADER_PREFIXES = [
    "x-api-key",
    "x-auth",
    "x-token",
    "x-secret",
    "x-amz-security-token",
    "authorization",
    "cookie",
    "set-cookie",
]


def configure_json_logging(level: str = "INFO", pretty: bool = False) -> None:
    """Configure ALL loggers to use JSON format.

    This function sets up the root logger with JSON formatting, ensuring
    all child loggers inherit JSON format.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        pretty: If True, use pretty-printed JSON (for local development).
                If False, use compact JSON (for CloudWatch).
    """
    root_logger = logging.getLogger()
    root_logger.handlers.clear()

    log_level = getattr(logging, level.upper(), logging.INFO)
    root_logger.setLevel(log_level)

    handler = logging.StreamHandler()
    handler.setLevel(log_level)

    if pretty:
        formatter = _PrettyJsonFormatter()
    else:
        formatter = jsonlogger.JsonFormatter(
            "%(asctime)s %(name)s %(levelname)s %(message)s",
            timestamp=True,
        )

    handler.setFormatter(formatter)
    root_logger.addHandler(handler)


class _PrettyJsonFormatter(logging.Formatter):
    """Pretty JSON formatter for local development.

    Formats logs as indented JSON and truncates long values.
    """

    _RESERVED = (
        "name", "msg", "args", "created", "filename", "funcName",
        "levelname", "levelno", "lineno", "module", "msecs",
        "message", "pathname", "process", "processName",
        "relativeCreated", "thread", "threadName", "exc_info",
        "exc_text", "stack_info", "asctime", "datefmt", "taskName",
    )

    def __init__(self, max_string_length: int = 500, max_list_items: int = 10):
        super().__init__()
        self.max_string_length = max_string_length
        self.max_list_items = max_list_items

    def _truncate_value(self, value: Any, depth: int = 0) -> Any:
        if depth > 3:
            return "..."

        if isinstance(value, str):
            if len(value) > self.max_string_length:
                return value[:self.max_string_length] + f"... (truncated, {len(value)} chars)"
            return value
        elif isinstance(value, dict):
            truncated = {}
            for k, v in list(value.items())[:20]:
                truncated[k] = self._truncate_value(v, depth + 1)
            if len(value) > 20:
                truncated["..."] = f"(truncated, {len(value)} keys)"
            return truncated
        elif isinstance(value, list):
            truncated = [self._truncate_value(item, depth + 1) for item in value[:self.max_list_items]]
            if len(value) > self.max_list_items:
                truncated.append(f"... (truncated, {len(value)} items)")
            return truncated
        else:
            return value

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as pretty JSON."""
        log_data = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for key, value in record.__dict__.items():
            if key not in self._RESERVED:
                log_data[key] = self._truncate_value(value)

        if record.exc_info:
            log_data["exc_info"] = self.formatException(record.exc_info)

        try:
            return json.dumps(log_data, indent=2, ensure_ascii=False, default=str)
        except (TypeError, ValueError):
            return json.dumps({"message": str(record.getMessage())}, indent=2)


def _is_sensitive_key(key: str) -> bool:
    key_lower = key.lower()
    return any(sensitive_key in key_lower for sensitive_key in SENSITIVE_KEYS)


def sanitize_dict(data: Any, sensitive_keys: Optional[List[str]] = None) -> Any:
    """Recursively sanitize dictionary values for sensitive keys.

    Preserves structure but replaces sensitive values with [REDACTED].

    Args:
        data: Data to sanitize (dict, list, or primitive)
        sensitive_keys: Optional list of additional sensitive keys to check

    Returns:
        Sanitized data with same structure
    """
    if sensitive_keys is None:
        sensitive_keys = SENSITIVE_KEYS

    if isinstance(data, dict):
        sanitized = {}
        for key, value in data.items():
            if _is_sensitive_key(key) or any(sk.lower() in key.lower() for sk in sensitive_keys):
                sanitized[key] = "[REDACTED]"
            else:
                sanitized[key] = sanitize_dict(value, sensitive_keys)
        return sanitized
    elif isinstance(data, list):
        return [sanitize_dict(item, sensitive_keys) for item in data]
    else:
        return data


def sanitize_headers(headers: Mapping[str, Any]) -> Dict[str, Any]:
    """Sanitize HTTP headers by filtering sensitive headers.

    Works for both single-value (str) and multi-value (list) header maps.

    Args:
        headers: HTTP headers mapping

    Returns:
        Sanitized headers dictionary
    """
    sanitized = {}
    for key, value in headers.items():
        key_lower = key.lower()
        if any(
            key_lower.startswith(prefix)
            for prefix in SENSITIVE_HEADER_PREFIXES
        ) or _is_sensitive_key(key):
            sanitized[key] = "[REDACTED]"
        else:
            sanitized[key] = value
    return sanitized


def format_request_log(
    request_id: str,
    http_method: str,
    request_url: str,
    headers: Mapping[str, Any],
    body_size: int,
    lambda_context: Optional[Any] = None,
    request_context: Optional[Any] = None,
) -> Dict[str, Any]:
    """Format structured request log entry.

    Bodies are never logged, only their size.

    Args:
        request_id: Request ID (from Lambda context)
        http_method: HTTP method (GET, POST, etc.)
        request_url: Synthetic request URL
        headers: HTTP headers
        body_size: Decoded body size in bytes
        lambda_context: Optional Lambda context for metadata
        request_context: Optional platform request context (identity, authorizer)

    Returns:
        Dictionary with structured log data
    """
    log_data = {
        "request_id": request_id,
        "http_method": http_method,
        "request_url": request_url,
        "request_headers": sanitize_headers(headers),
        "request_body_bytes": body_size,
        "request_context": sanitize_dict(request_context),
    }

    if lambda_context:
        log_data["lambda_function_name"] = getattr(
            lambda_context, "function_name", None
        )
        log_data["lambda_memory_limit"] = getattr(
            lambda_context, "memory_limit_in_mb", None
        )
        log_data["lambda_remaining_time_ms"] = getattr(
            lambda_context, "get_remaining_time_in_millis", lambda: None
        )()

    return log_data


def format_response_log(
    request_id: str,
    status_code: int,
    headers: Mapping[str, Any],
    body_length: int,
    is_base64_encoded: bool,
    duration_ms: float,
) -> Dict[str, Any]:
    """Format structured response log entry.

    Args:
        request_id: Request ID
        status_code: HTTP status code
        headers: Response headers (multi-value)
        body_length: Length of the emitted body (text or base64)
        is_base64_encoded: Whether the body was emitted as base64
        duration_ms: Processing duration in milliseconds

    Returns:
        Dictionary with structured log data
    """
    return {
        "request_id": request_id,
        "response_status": status_code,
        "response_headers": sanitize_headers(headers),
        "response_body_length": body_length,
        "is_base64_encoded": is_base64_encoded,
        "duration_ms": round(duration_ms, 2),
    }
