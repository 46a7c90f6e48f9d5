"""
Decision package.

Pluggable approval policies invoked with the verified claims of a Cosigner
request. Only reference policies live here; a real rules engine plugs in by
implementing ``DecisionPolicy.decide``.
"""

from .engine import DecisionPolicy, DelayedApprovalPolicy, RejectAllPolicy, build_policy
from .models import Decision, DecisionAction, correlation_ids, response_claims

__all__ = [
    "Decision",
    "DecisionAction",
    "DecisionPolicy",
    "DelayedApprovalPolicy",
    "RejectAllPolicy",
    "build_policy",
    "correlation_ids",
    "response_claims",
]
