"""
Request orchestration for Cosigner transaction-signing callbacks.

Sequences verify -> decide -> sign for one inbound token and maps every
failure onto an HTTP-style outcome. Nothing raised inside ``process`` escapes
to the transport layer.
"""

import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from shared.config import CallbackConfig
from shared.errors import MalformedToken, SigningFailed, VerificationFailed
from shared.logging import get_logger
from shared.metrics import MetricsCollector
from .credentials import CredentialStore, SecretFetcher
from .decision import Decision, DecisionAction, DecisionPolicy, build_policy, response_claims
from .tokens import TokenIssuer, TokenVerifier


class RequestState(str, Enum):
    """Lifecycle of a single callback request."""
    RECEIVED = "RECEIVED"
    VERIFYING = "VERIFYING"
    VERIFIED = "VERIFIED"
    REJECTED_AUTH = "REJECTED_AUTH"
    DECIDING = "DECIDING"
    SIGNING = "SIGNING"
    COMPLETED = "COMPLETED"
    REJECTED_SIGNING = "REJECTED_SIGNING"
    FAILED = "FAILED"


@dataclass
class ProcessingOutcome:
    """Terminal result of processing one request."""
    success: bool
    status_code: int
    state: RequestState
    data: Optional[str] = None
    error: Optional[str] = None
    response_time_ms: float = 0.0


class RequestOrchestrator:
    """Verify, decide and sign a Cosigner request."""

    def __init__(
        self,
        verifier: TokenVerifier,
        issuer: TokenIssuer,
        policy: DecisionPolicy,
        metrics: Optional[MetricsCollector] = None,
    ):
        self.verifier = verifier
        self.issuer = issuer
        self.policy = policy
        self.metrics = metrics
        self.logger = get_logger("callback.orchestrator")

    async def process(self, token: Any) -> ProcessingOutcome:
        """Process a raw request token and return its outcome."""
        start_time = time.time()
        state = RequestState.RECEIVED

        try:
            if not isinstance(token, str) or not token:
                self.logger.error(
                    "Invalid JWT format",
                    body_type=type(token).__name__,
                    body_length=len(token) if isinstance(token, (str, bytes)) else 0,
                )
                self._count_verification("malformed")
                return self._outcome(start_time, RequestState.REJECTED_AUTH, 400, error="Invalid JWT format")

            state = self._transition(state, RequestState.VERIFYING)
            try:
                claims = await self.verifier.verify(token)
            except MalformedToken as e:
                self.logger.error("JWT is malformed", error=e.message, jwt_length=len(token))
                self._count_verification("malformed")
                return self._outcome(start_time, RequestState.REJECTED_AUTH, 400, error="Invalid JWT format")
            except VerificationFailed as e:
                self.logger.error("JWT verification failed", error=e.message, jwt_length=len(token))
                return self._outcome(start_time, RequestState.REJECTED_AUTH, 401, error="JWT verification failed")

            state = self._transition(state, RequestState.VERIFIED)
            self.logger.info(
                "JWT verification successful",
                tx_id=claims.get("txId"),
                operation=claims.get("operation"),
                signer_id=claims.get("signerId"),
            )

            state = self._transition(state, RequestState.DECIDING)
            decision = await self.policy.decide(claims)
            if not isinstance(decision, Decision) or not isinstance(decision.action, DecisionAction):
                raise TypeError(f"Decision policy returned {decision!r}")
            if self.metrics is not None:
                self.metrics.increment_counter("decisions_total", action=decision.action.value)

            state = self._transition(state, RequestState.SIGNING)
            payload = response_claims(decision, claims)
            self.logger.debug("Generating response JWT", action=decision.action.value, tx_id=payload["txId"])
            try:
                signed = await self.issuer.sign(payload)
            except SigningFailed as e:
                self.logger.error("Failed to generate response JWT", error=e.message, payload=payload)
                return self._outcome(
                    start_time, RequestState.REJECTED_SIGNING, 500, error="Failed to generate response JWT"
                )

            outcome = self._outcome(start_time, RequestState.COMPLETED, 200, data=signed)
            self.logger.info(
                "Transaction processing completed",
                tx_id=payload["txId"],
                action=decision.action.value,
                response_time_ms=outcome.response_time_ms,
            )
            return outcome

        except Exception as e:
            self.logger.error(
                "Unexpected error processing request",
                error=str(e),
                error_type=type(e).__name__,
                state=state.value,
                exc_info=True,
            )
            if self.metrics is not None:
                self.metrics.record_error(type(e).__name__)
            return self._outcome(start_time, RequestState.FAILED, 500, error="Internal server error")

    def _transition(self, current: RequestState, target: RequestState) -> RequestState:
        self.logger.debug("Request state transition", from_state=current.value, to_state=target.value)
        return target

    def _count_verification(self, status: str) -> None:
        if self.metrics is not None:
            self.metrics.increment_counter("token_verifications_total", status=status)

    def _outcome(
        self,
        start_time: float,
        state: RequestState,
        status_code: int,
        data: Optional[str] = None,
        error: Optional[str] = None,
    ) -> ProcessingOutcome:
        response_time_ms = round((time.time() - start_time) * 1000, 2)
        if self.metrics is not None:
            self.metrics.observe_histogram(
                "callback_processing_duration_seconds",
                response_time_ms / 1000,
                status_code=str(status_code),
            )
        return ProcessingOutcome(
            success=error is None,
            status_code=status_code,
            state=state,
            data=data,
            error=error,
            response_time_ms=response_time_ms,
        )


def create_orchestrator(
    config: CallbackConfig,
    fetcher: Optional[SecretFetcher] = None,
    policy: Optional[DecisionPolicy] = None,
    metrics: Optional[MetricsCollector] = None,
) -> RequestOrchestrator:
    """Wire a credential store, verifier, issuer and policy from ``config``."""
    credentials = CredentialStore(config, fetcher=fetcher)
    return RequestOrchestrator(
        verifier=TokenVerifier(credentials, config, metrics=metrics),
        issuer=TokenIssuer(credentials, metrics=metrics),
        policy=policy or build_policy(config),
        metrics=metrics,
    )
