"""Event payload models for API Gateway and ALB invocations.

Field names follow Python conventions; the wire (camelCase) names are kept as
aliases so payloads can be validated straight from the Lambda event dict and
dumped back with ``to_dict()``.
"""

from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field, field_validator


class _WireModel(BaseModel):
    """Base model that accepts both wire aliases and field names."""

    model_config = ConfigDict(populate_by_name=True)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the camelCase dictionary the Lambda runtime expects."""
        return self.model_dump(by_alias=True)


class AdapterRequest(_WireModel):
    """Inbound event shared by API Gateway REST proxy and ALB target groups."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    resource: str = Field("", description="Resource path template")
    path: str = Field("", description="Request path as seen by the platform")
    http_method: str = Field("", alias="httpMethod", description="HTTP method token")
    headers: Dict[str, str] = Field(default_factory=dict)
    multi_value_headers: Dict[str, List[str]] = Field(
        default_factory=dict, alias="multiValueHeaders"
    )
    query_string_parameters: Dict[str, str] = Field(
        default_factory=dict, alias="queryStringParameters"
    )
    multi_value_query_string_parameters: Dict[str, List[str]] = Field(
        default_factory=dict, alias="multiValueQueryStringParameters"
    )
    path_parameters: Dict[str, str] = Field(default_factory=dict, alias="pathParameters")
    stage_variables: Dict[str, str] = Field(default_factory=dict, alias="stageVariables")
    request_context: Any = Field(
        None, alias="requestContext", description="Opaque platform request context"
    )
    body: str = Field("", description="Body text, base64 when is_base64_encoded is set")
    is_base64_encoded: bool = Field(False, alias="isBase64Encoded")

    @field_validator(
        "headers",
        "multi_value_headers",
        "query_string_parameters",
        "multi_value_query_string_parameters",
        "path_parameters",
        "stage_variables",
        mode="before",
    )
    @classmethod
    def _null_map_is_empty(cls, value: Any) -> Any:
        # Platforms send null instead of {} for absent maps
        return {} if value is None else value

    @field_validator("body", mode="before")
    @classmethod
    def _null_body_is_empty(cls, value: Any) -> Any:
        return "" if value is None else value


class APIGatewayProxyResponse(_WireModel):
    """Response shape for API Gateway REST proxy integrations."""

    status_code: int = Field(..., alias="statusCode")
    headers: Dict[str, str] = Field(default_factory=dict)
    multi_value_headers: Dict[str, List[str]] = Field(
        default_factory=dict, alias="multiValueHeaders"
    )
    body: str = ""
    is_base64_encoded: bool = Field(False, alias="isBase64Encoded")


class ALBTargetGroupResponse(_WireModel):
    """Response shape for Application Load Balancer target groups."""

    status_code: int = Field(..., alias="statusCode")
    status_description: str = Field("", alias="statusDescription")
    headers: Dict[str, str] = Field(default_factory=dict)
    multi_value_headers: Dict[str, List[str]] = Field(
        default_factory=dict, alias="multiValueHeaders"
    )
    body: str = ""
    is_base64_encoded: bool = Field(False, alias="isBase64Encoded")


class AdapterResponse(_WireModel):
    """Generic outbound event that can be cast to either platform shape."""

    status_code: int = Field(..., alias="statusCode")
    status_description: str = Field("", alias="statusDescription")
    headers: Dict[str, str] = Field(default_factory=dict)
    multi_value_headers: Dict[str, List[str]] = Field(
        default_factory=dict, alias="multiValueHeaders"
    )
    body: str = ""
    is_base64_encoded: bool = Field(False, alias="isBase64Encoded")

    def api_gateway_proxy_response(self) -> APIGatewayProxyResponse:
        """Cast to the API Gateway shape.

        Single-value headers are always emitted empty; response headers travel
        only in ``multiValueHeaders``.
        """
        return APIGatewayProxyResponse(
            status_code=self.status_code,
            headers={},
            multi_value_headers=self.multi_value_headers,
            body=self.body,
            is_base64_encoded=self.is_base64_encoded,
        )

    def alb_target_group_response(self) -> ALBTargetGroupResponse:
        """Cast to the ALB shape, field for field."""
        return ALBTargetGroupResponse(
            status_code=self.status_code,
            status_description=self.status_description,
            headers=self.headers,
            multi_value_headers=self.multi_value_headers,
            body=self.body,
            is_base64_encoded=self.is_base64_encoded,
        )
