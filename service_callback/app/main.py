"""
Callback service for Cosigner transaction-signing requests.
"""

from typing import Dict, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse

from shared.base_service import BaseService
from shared.config import CallbackConfig, get_config
from .body import normalize_body
from .credentials import KeyKind, SecretFetcher
from .decision import DecisionPolicy
from .orchestrator import RequestOrchestrator, create_orchestrator


class CallbackService(BaseService):
    """Callback service implementation."""

    def __init__(
        self,
        config: Optional[CallbackConfig] = None,
        fetcher: Optional[SecretFetcher] = None,
        policy: Optional[DecisionPolicy] = None,
    ):
        config = config or get_config()
        super().__init__(config.service_name, config)
        self.orchestrator: RequestOrchestrator = create_orchestrator(
            config, fetcher=fetcher, policy=policy, metrics=self.metrics
        )

        if config.allow_zero_signature:
            self.logger.warning("Zero-signature bypass is ENABLED; unsigned Cosigner tokens will be accepted")

        self._setup_callback_routes()

    def _setup_callback_routes(self):
        """Set up callback-specific routes."""

        @self.app.get("/")
        async def root():
            """Root endpoint."""
            return {
                "service": self.service_name,
                "message": "Cosigner Callback Handler",
                "version": self.version
            }

        @self.app.post("/callback")
        async def callback(request: Request):
            """Transaction signing request from the Cosigner."""
            body = await request.body()

            # MalformedToken is rendered by the shared exception handler.
            token = normalize_body(body, full_logging=self.config.full_jwt_logging)

            result = await self.orchestrator.process(token)

            if result.success:
                return PlainTextResponse(result.data or "", status_code=result.status_code)

            return JSONResponse(status_code=result.status_code, content={"error": result.error})

    async def _check_dependencies(self) -> Dict[str, str]:
        """Report whether each key has been resolved yet; never triggers a fetch."""
        credentials = self.orchestrator.verifier.credentials
        return {
            f"{kind.value}_key": "resolved" if credentials.is_resolved(kind) else "pending"
            for kind in KeyKind
        }


def create_app(
    config: Optional[CallbackConfig] = None,
    fetcher: Optional[SecretFetcher] = None,
    policy: Optional[DecisionPolicy] = None,
) -> FastAPI:
    """Create the FastAPI application."""
    return CallbackService(config=config, fetcher=fetcher, policy=policy).app


if __name__ == "__main__":
    CallbackService().run()
