"""
Token package.

RS256 handling of the two tokens exchanged with the Cosigner: the signed
request it posts to the callback, and the signed verdict returned to it.
"""

from .issuer import RESPONSE_TOKEN_TTL, TokenIssuer
from .verifier import ALGORITHM, TokenVerifier, VerifiedClaims, is_zero_signature, split_token

__all__ = [
    "ALGORITHM",
    "RESPONSE_TOKEN_TTL",
    "TokenIssuer",
    "TokenVerifier",
    "VerifiedClaims",
    "is_zero_signature",
    "split_token",
]
