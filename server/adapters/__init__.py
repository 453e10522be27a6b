"""Cloud provider adapters.

This package contains the entry points that turn a cloud-specific invocation
(AWS Lambda behind API Gateway or an Application Load Balancer) into a call
through the event proxy, and return the platform's response shape.
"""

from .aws_lambda import ALB, API_GATEWAY, make_lambda_handler, parse_event

__all__ = ["ALB", "API_GATEWAY", "make_lambda_handler", "parse_event"]
