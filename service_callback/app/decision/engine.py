"""
Reference decision policies for the callback handler.

These are placeholders for a real approval policy: one approves every
transaction after a fixed delay, the other rejects every transaction.
"""

import asyncio
import time
from typing import Any, Dict, Protocol

from shared.config import CallbackConfig
from shared.logging import get_logger
from .models import Decision, DecisionAction, correlation_ids


class DecisionPolicy(Protocol):
    """Decides on a verified Cosigner request."""

    async def decide(self, claims: Dict[str, Any]) -> Decision:
        ...


def _transaction_summary(claims: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "tx_id": claims.get("txId"),
        "operation": claims.get("operation"),
        "source_type": claims.get("sourceType"),
        "dest_type": claims.get("destType"),
        "asset": claims.get("asset"),
        "amount": claims.get("amount"),
    }


class DelayedApprovalPolicy:
    """Approve every transaction after waiting ``delay_ms``."""

    reason = "Approved after delayed review"

    def __init__(self, delay_ms: int = 1000):
        self.delay_ms = delay_ms
        self.logger = get_logger("callback.decision")

    async def decide(self, claims: Dict[str, Any]) -> Decision:
        self.logger.info("Executing business logic (delayed approval mode)", **_transaction_summary(claims))

        start_time = time.time()
        await asyncio.sleep(self.delay_ms / 1000)

        decision = Decision(
            action=DecisionAction.APPROVE,
            reason=self.reason,
            correlation_id=correlation_ids(claims)["requestId"],
            processing_time_ms=round((time.time() - start_time) * 1000, 2),
        )
        self.logger.info(
            "Business logic completed",
            action=decision.action.value,
            reason=decision.reason,
            tx_id=claims.get("txId"),
            waited_ms=self.delay_ms,
        )
        return decision


class RejectAllPolicy:
    """Reject every transaction."""

    def __init__(self, reason: str = "Rejected by policy"):
        self.reason = reason
        self.logger = get_logger("callback.decision")

    async def decide(self, claims: Dict[str, Any]) -> Decision:
        self.logger.info("Executing business logic (reject mode)", **_transaction_summary(claims))
        return Decision(
            action=DecisionAction.REJECT,
            reason=self.reason,
            correlation_id=correlation_ids(claims)["requestId"],
        )


def build_policy(config: CallbackConfig) -> DecisionPolicy:
    """Select the reference policy named by ``decision_mode``."""
    if config.decision_mode == "reject":
        return RejectAllPolicy(config.rejection_reason)
    return DelayedApprovalPolicy(config.approval_delay_ms)
