"""
Tests for the Lambda entrypoint.
"""

import base64
import json
from types import SimpleNamespace
from unittest.mock import patch

import jwt
import pytest

from service_callback.app import lambda_handler
from service_callback.app.lambda_handler import SECURITY_HEADERS, handle_event
from service_callback.app.orchestrator import create_orchestrator
from helpers import sign_request


@pytest.fixture
def context():
    """Minimal Lambda context."""
    return SimpleNamespace(
        function_name="cosigner-callback",
        function_version="$LATEST",
        aws_request_id="aws-req-1",
    )


@pytest.fixture
def orchestrator(config):
    return create_orchestrator(config)


def rest_event(method, path="/callback", body=None, is_base64_encoded=False):
    return {
        "httpMethod": method,
        "path": path,
        "resource": path,
        "requestContext": {"stage": "prod"},
        "body": body,
        "isBase64Encoded": is_base64_encoded,
    }


def assert_security_headers(response):
    for name, value in SECURITY_HEADERS.items():
        assert response["headers"][name] == value


class TestHandleEvent:
    """Test cases for handle_event."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("path", ["/health", "/"])
    async def test_health_check(self, orchestrator, config, context, path):
        response = await handle_event(rest_event("GET", path), context, orchestrator, config)

        assert response["statusCode"] == 200
        assert response["headers"]["Content-Type"] == "application/json"
        assert_security_headers(response)
        body = json.loads(response["body"])
        assert body["status"] == "healthy"
        assert body["environment"] == "test"
        assert body["lambda"]["aws_request_id"] == "aws-req-1"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("method,path", [("PUT", "/callback"), ("GET", "/callback"), ("DELETE", "/health")])
    async def test_method_not_allowed(self, orchestrator, config, context, method, path):
        response = await handle_event(rest_event(method, path), context, orchestrator, config)

        assert response["statusCode"] == 405
        assert json.loads(response["body"]) == {"error": "Method Not Allowed"}
        assert_security_headers(response)

    @pytest.mark.asyncio
    async def test_base64_quoted_body_is_approved(
        self, orchestrator, config, context, request_claims, cosigner_keys, callback_keys
    ):
        token = sign_request(request_claims, cosigner_keys)
        body = base64.b64encode(f'"{token}"\n'.encode()).decode()

        response = await handle_event(
            rest_event("POST", body=body, is_base64_encoded=True), context, orchestrator, config
        )

        assert response["statusCode"] == 200
        assert response["headers"]["Content-Type"] == "text/plain"
        assert_security_headers(response)
        payload = jwt.decode(response["body"], callback_keys.public_pem, algorithms=["RS256"])
        assert payload["action"] == "APPROVE"
        assert payload["requestId"] == "req-0001"

    @pytest.mark.asyncio
    async def test_invalid_signature_is_unauthorized(self, orchestrator, config, context, request_claims, rogue_keys):
        body = sign_request(request_claims, rogue_keys)

        response = await handle_event(rest_event("POST", body=body), context, orchestrator, config)

        assert response["statusCode"] == 401
        assert response["headers"]["Content-Type"] == "application/json"
        assert json.loads(response["body"]) == {"error": "JWT verification failed"}

    @pytest.mark.asyncio
    async def test_missing_body_is_bad_request(self, orchestrator, config, context):
        response = await handle_event(rest_event("POST"), context, orchestrator, config)

        assert response["statusCode"] == 400
        assert json.loads(response["body"]) == {"error": "Invalid JWT format"}

    @pytest.mark.asyncio
    async def test_undecodable_body_is_bad_request(self, orchestrator, config, context):
        body = base64.b64encode(b"\xff\xfe").decode()

        response = await handle_event(
            rest_event("POST", body=body, is_base64_encoded=True), context, orchestrator, config
        )

        assert response["statusCode"] == 400
        assert json.loads(response["body"]) == {"error": "Invalid request body"}

    @pytest.mark.asyncio
    async def test_http_api_event_shape(self, orchestrator, config, context, request_claims, cosigner_keys):
        event = {
            "version": "2.0",
            "rawPath": "/callback",
            "requestContext": {"http": {"method": "POST", "path": "/callback"}, "stage": "$default"},
            "body": sign_request(request_claims, cosigner_keys),
            "isBase64Encoded": False,
        }

        response = await handle_event(event, context, orchestrator, config)

        assert response["statusCode"] == 200

    @pytest.mark.asyncio
    async def test_unexpected_error_is_contained(self, orchestrator, config, context):
        with patch.object(orchestrator, "process", side_effect=RuntimeError("boom")):
            response = await handle_event(rest_event("POST", body="a.b.c"), context, orchestrator, config)

        assert response["statusCode"] == 500
        assert json.loads(response["body"]) == {"error": "Internal server error"}


class TestHandler:
    """Synchronous Lambda entrypoint."""

    def test_handler_runs_event_loop(self, orchestrator, config, context, request_claims, cosigner_keys):
        event = rest_event("POST", body=sign_request(request_claims, cosigner_keys))

        with patch.object(lambda_handler, "get_orchestrator", return_value=orchestrator), \
                patch.object(lambda_handler, "_config", config):
            first = lambda_handler.handler(event, context)
            second = lambda_handler.handler(event, context)

        assert first["statusCode"] == 200
        assert second["statusCode"] == 200

    def test_handler_health(self, orchestrator, config, context):
        with patch.object(lambda_handler, "get_orchestrator", return_value=orchestrator), \
                patch.object(lambda_handler, "_config", config):
            response = lambda_handler.handler(rest_event("GET", "/health"), context)

        assert response["statusCode"] == 200
        assert json.loads(response["body"])["environment"] == "test"

    @pytest.mark.parametrize("name,value", [("DECISION_MODE", "maybe"), ("APPROVAL_DELAY_MS", "-1")])
    def test_invalid_settings_return_internal_error(self, monkeypatch, context, name, value):
        monkeypatch.setenv(name, value)

        with patch.object(lambda_handler, "_orchestrator", None), \
                patch.object(lambda_handler, "_config", None):
            response = lambda_handler.handler(rest_event("POST", body="a.b.c"), context)

        assert response["statusCode"] == 500
        assert json.loads(response["body"]) == {"error": "Internal server error"}
        assert_security_headers(response)
