"""
Decision data models for the callback handler.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional


class DecisionAction(str, Enum):
    """Verdict returned to the Cosigner."""
    APPROVE = "APPROVE"
    REJECT = "REJECT"


def utc_timestamp() -> str:
    """ISO-8601 UTC timestamp with millisecond precision and a Z suffix."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(frozen=True)
class Decision:
    """Outcome of a decision policy for one transaction."""
    action: DecisionAction
    reason: str
    timestamp: str = field(default_factory=utc_timestamp)
    correlation_id: Optional[str] = None
    processing_time_ms: float = 0.0


def correlation_ids(claims: Dict[str, Any]) -> Dict[str, Optional[str]]:
    """Transaction and request identifiers of a Cosigner request.

    ``requestId`` is the correlation key echoed back to the Cosigner; when a
    request omits one of the two identifiers the other stands in for it.
    """
    tx_id = claims.get("txId")
    request_id = claims.get("requestId")
    return {
        "txId": tx_id if tx_id is not None else request_id,
        "requestId": request_id if request_id is not None else tx_id,
    }


def response_claims(decision: Decision, claims: Dict[str, Any]) -> Dict[str, Any]:
    """Claims of the signed response for ``decision`` on the request ``claims``."""
    ids = correlation_ids(claims)
    payload: Dict[str, Any] = {
        "txId": ids["txId"],
        "action": decision.action.value,
        "timestamp": decision.timestamp,
        "requestId": ids["requestId"],
    }

    if decision.action is DecisionAction.REJECT and decision.reason:
        payload["rejectionReason"] = decision.reason

    return payload
