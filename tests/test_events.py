"""Tests for event payload models."""

from core.events import AdapterRequest, AdapterResponse


class TestAdapterRequest:
    """Test inbound event parsing."""

    def test_parses_wire_payload(self):
        """Test that camelCase wire fields map onto the model."""
        event = AdapterRequest.model_validate(
            {
                "resource": "/{proxy+}",
                "path": "/api/hello",
                "httpMethod": "POST",
                "headers": {"Content-Type": "application/json"},
                "multiValueHeaders": {"Content-Type": ["application/json"]},
                "queryStringParameters": {"q": "1"},
                "multiValueQueryStringParameters": {"q": ["1"]},
                "pathParameters": {"proxy": "api/hello"},
                "stageVariables": {"env": "dev"},
                "requestContext": {"requestId": "abc"},
                "body": "{}",
                "isBase64Encoded": False,
            }
        )

        assert event.http_method == "POST"
        assert event.multi_value_query_string_parameters == {"q": ["1"]}
        assert event.request_context == {"requestId": "abc"}

    def test_null_maps_become_empty(self):
        """Test that null maps and body from the platform are treated as empty."""
        event = AdapterRequest.model_validate(
            {
                "path": "/",
                "httpMethod": "GET",
                "headers": None,
                "multiValueHeaders": None,
                "queryStringParameters": None,
                "multiValueQueryStringParameters": None,
                "pathParameters": None,
                "stageVariables": None,
                "body": None,
            }
        )

        assert event.headers == {}
        assert event.query_string_parameters == {}
        assert event.path_parameters == {}
        assert event.stage_variables == {}
        assert event.body == ""
        assert event.is_base64_encoded is False

    def test_unknown_fields_are_ignored(self):
        """Test that newer platform fields do not break parsing."""
        event = AdapterRequest.model_validate({"path": "/", "httpMethod": "GET", "version": "1.0"})

        assert event.path == "/"


class TestAdapterResponse:
    """Test outbound event shapes."""

    def make_response(self) -> AdapterResponse:
        return AdapterResponse(
            status_code=200,
            status_description="",
            headers={"X-Ignored": "1"},
            multi_value_headers={"Content-Type": ["text/plain"]},
            body="Hello World!",
            is_base64_encoded=False,
        )

    def test_api_gateway_shape(self):
        """Test the API Gateway response payload."""
        payload = self.make_response().api_gateway_proxy_response().to_dict()

        assert payload == {
            "statusCode": 200,
            "headers": {},
            "multiValueHeaders": {"Content-Type": ["text/plain"]},
            "body": "Hello World!",
            "isBase64Encoded": False,
        }

    def test_alb_shape_is_passthrough(self):
        """Test that the ALB payload copies every field."""
        payload = self.make_response().alb_target_group_response().to_dict()

        assert payload == {
            "statusCode": 200,
            "statusDescription": "",
            "headers": {"X-Ignored": "1"},
            "multiValueHeaders": {"Content-Type": ["text/plain"]},
            "body": "Hello World!",
            "isBase64Encoded": False,
        }
