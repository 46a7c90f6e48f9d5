"""
AWS Lambda entrypoint for the callback handler.

Deployed behind API Gateway (REST proxy integration); handler setting
``service_callback.app.lambda_handler.handler``.
"""

import asyncio
import json
import os
import time
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from shared.config import CallbackConfig, get_config
from shared.errors import MalformedToken
from shared.logging import clear_context, configure_logging, get_logger, set_aws_request_id, set_request_id
from shared.metrics import MetricsCollector, get_metrics_collector
from .body import normalize_body
from .orchestrator import RequestOrchestrator, create_orchestrator

VERSION = "1.0.0"

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "X-XSS-Protection": "1; mode=block",
}

HEALTH_PATHS = ("/health", "/")

logger = get_logger("callback.lambda")

_started_at = time.time()
_config: Optional[CallbackConfig] = None
_metrics: Optional[MetricsCollector] = None
_orchestrator: Optional[RequestOrchestrator] = None


def get_orchestrator() -> RequestOrchestrator:
    """Build the process-wide orchestrator on first use (cold start)."""
    global _config, _metrics, _orchestrator
    if _orchestrator is None:
        _config = get_config()
        configure_logging(_config.service_name, _config.resolved_log_level())
        _metrics = get_metrics_collector(_config.service_name)
        _orchestrator = create_orchestrator(_config, metrics=_metrics)
        logger.info(
            "Callback handler starting",
            function_name=os.getenv("AWS_LAMBDA_FUNCTION_NAME"),
            environment=_config.node_env,
            version=VERSION,
            use_ssm_parameters=_config.use_ssm_parameters,
            allow_zero_signature=_config.allow_zero_signature,
            full_jwt_logging=_config.full_jwt_logging,
        )
        if _config.allow_zero_signature:
            logger.warning("Zero-signature bypass is ENABLED; unsigned Cosigner tokens will be accepted")
    return _orchestrator


def health_status(context: Any, config: Optional[CallbackConfig]) -> Dict[str, Any]:
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "uptime_seconds": round(time.time() - _started_at, 3),
        "version": VERSION,
        "environment": config.node_env if config else "development",
        "lambda": {
            "function_name": getattr(context, "function_name", None),
            "function_version": getattr(context, "function_version", None),
            "aws_request_id": getattr(context, "aws_request_id", None),
        },
        "endpoints": ["GET /health", "POST /callback"],
    }


def _response(status_code: int, body: str, content_type: str = "application/json") -> Dict[str, Any]:
    return {
        "statusCode": status_code,
        "headers": {"Content-Type": content_type, **SECURITY_HEADERS},
        "body": body,
    }


def _error(status_code: int, message: str) -> Dict[str, Any]:
    return _response(status_code, json.dumps({"error": message}))


async def handle_event(
    event: Dict[str, Any],
    context: Any,
    orchestrator: RequestOrchestrator,
    config: Optional[CallbackConfig] = None,
) -> Dict[str, Any]:
    """Turn an API Gateway proxy event into a proxy response."""
    http = (event.get("requestContext") or {}).get("http") or {}
    method = (event.get("httpMethod") or http.get("method") or "").upper()
    path = event.get("path") or event.get("rawPath") or http.get("path") or "/"

    logger.info(
        "Lambda handler invoked",
        function_name=getattr(context, "function_name", None),
        function_version=getattr(context, "function_version", None),
        http_method=method,
        path=path,
        resource=event.get("resource"),
        stage=(event.get("requestContext") or {}).get("stage"),
    )

    try:
        if method != "POST":
            if method == "GET" and path in HEALTH_PATHS:
                logger.info("Health check completed", status="healthy")
                return _response(200, json.dumps(health_status(context, config)))

            logger.error("Method not allowed", method=method, path=path)
            return _error(405, "Method Not Allowed")

        full_logging = bool(config and config.full_jwt_logging)
        try:
            token = normalize_body(
                event.get("body"),
                is_base64_encoded=bool(event.get("isBase64Encoded")),
                full_logging=full_logging,
            )
        except MalformedToken:
            return _error(400, "Invalid request body")

        result = await orchestrator.process(token)

        if result.success:
            response = _response(result.status_code, result.data or "", content_type="text/plain")
        else:
            response = _error(result.status_code, result.error or "Internal server error")

        logger.info(
            "Lambda response generated",
            status_code=result.status_code,
            response_time_ms=result.response_time_ms,
            success=result.success,
            state=result.state.value,
        )
        return response

    except Exception as e:
        logger.error("Unexpected Lambda error", error=str(e), error_type=type(e).__name__, exc_info=True)
        return _error(500, "Internal server error")


def handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """AWS Lambda handler."""
    set_request_id()
    set_aws_request_id(getattr(context, "aws_request_id", None))
    try:
        orchestrator = get_orchestrator()
        return asyncio.run(handle_event(event, context, orchestrator, _config))
    except Exception as e:
        logger.error("Lambda invocation failed", error=str(e), error_type=type(e).__name__, exc_info=True)
        return _error(500, "Internal server error")
    finally:
        clear_context()
