"""
Verification of inbound Cosigner request tokens.
"""

import time
from typing import Any, Dict, List, Optional

from jose import jwk, jwt
from jose.exceptions import JOSEError, JWTError, ExpiredSignatureError
from jose.utils import base64url_decode

from shared.config import CallbackConfig
from shared.errors import CredentialUnavailable, MalformedToken, VerificationFailed
from shared.logging import get_logger, preview
from shared.metrics import MetricsCollector
from ..credentials import CredentialStore, KeyKind

ALGORITHM = "RS256"

VerifiedClaims = Dict[str, Any]


def split_token(token: Any) -> List[str]:
    """Split a compact JWS into its three segments or raise MalformedToken."""
    if not isinstance(token, str) or not token:
        raise MalformedToken("Token must be a non-empty string")

    segments = token.split(".")
    if len(segments) != 3:
        raise MalformedToken(
            "Token must have three segments",
            details={"segments": len(segments), "length": len(token)},
        )
    if not segments[0] or not segments[1]:
        raise MalformedToken("Token header or payload segment is empty")

    return segments


def is_zero_signature(signature_segment: str) -> bool:
    """True when the signature segment decodes to one or more zero bytes only."""
    if not signature_segment:
        return False
    try:
        signature = base64url_decode(signature_segment.encode("ascii"))
    except (ValueError, UnicodeEncodeError):
        return False
    return len(signature) > 0 and not any(signature)


class TokenVerifier:
    """Verify RS256 tokens from the Cosigner against its public key.

    Two operator switches change behaviour, both off by default:

    ``full_jwt_logging``
        Logs the decoded header and payload verbatim. Request payloads carry
        transaction details, so only enable this in a controlled diagnostic
        environment.

    ``allow_zero_signature``
        Accepts tokens whose signature is all zero bytes *without any
        cryptographic check*. This is an authentication bypass meant for
        testing against a Cosigner that does not sign; anyone can forge such
        a token. Every bypass is logged as a warning.
    """

    def __init__(
        self,
        credentials: CredentialStore,
        config: CallbackConfig,
        metrics: Optional[MetricsCollector] = None,
    ):
        self.credentials = credentials
        self.allow_zero_signature = config.allow_zero_signature
        self.full_jwt_logging = config.full_jwt_logging
        self.metrics = metrics
        self.logger = get_logger("callback.tokens.verifier")

    async def verify(self, token: str) -> VerifiedClaims:
        """Verify ``token`` and return its claims."""
        start_time = time.time()
        header_segment, payload_segment, signature_segment = split_token(token)

        self.logger.debug(
            "JWT received",
            token_length=len(token),
            header_length=len(header_segment),
            payload_length=len(payload_segment),
            signature_length=len(signature_segment),
            header_preview=preview(header_segment),
            payload_preview=preview(payload_segment),
            signature_preview=preview(signature_segment),
        )

        try:
            header = jwt.get_unverified_header(token)
            unverified_claims = jwt.get_unverified_claims(token)
        except JWTError as e:
            self.logger.error("JWT decode failed", error=str(e), token_length=len(token))
            raise MalformedToken(f"Token could not be decoded: {e}") from e

        if self.full_jwt_logging:
            self.logger.debug("JWT decoded (full)", header=header, payload=unverified_claims)

        if self.allow_zero_signature and is_zero_signature(signature_segment):
            self.logger.warning(
                "Zero signature accepted without verification: authentication bypass is enabled",
                alg=header.get("alg"),
                signature_length=len(signature_segment),
                tx_id=unverified_claims.get("txId"),
                request_id_claim=unverified_claims.get("requestId"),
            )
            self._count("bypassed")
            return unverified_claims

        verification_key = await self.credentials.resolve(KeyKind.VERIFICATION)
        try:
            public_key = jwk.construct(verification_key.decode("utf-8"), ALGORITHM)
        except (JOSEError, UnicodeDecodeError) as e:
            self.logger.error("Cosigner public key could not be used", error=str(e))
            raise CredentialUnavailable("Cosigner public key is not a usable RSA key") from e

        try:
            claims = jwt.decode(
                token,
                public_key,
                algorithms=[ALGORITHM],
                # Signature, algorithm, exp and nbf are enforced; other
                # registered claims are passed through untouched.
                options={
                    "verify_exp": True,
                    "verify_aud": False,
                    "verify_iat": False,
                    "verify_sub": False,
                    "verify_jti": False,
                    "verify_at_hash": False,
                },
            )
        except ExpiredSignatureError as e:
            self._fail(start_time, token, e, reason="expired")
            raise VerificationFailed("Token has expired", details={"reason": "expired"}) from e
        except JWTError as e:
            self._fail(start_time, token, e, reason="invalid")
            raise VerificationFailed(f"Token verification failed: {e}", details={"reason": "invalid"}) from e

        self.logger.info(
            "Performance: JWT verify",
            duration_ms=round((time.time() - start_time) * 1000, 2),
        )
        self._count("ok")
        return claims

    def _fail(self, start_time: float, token: str, error: Exception, reason: str) -> None:
        self.logger.error(
            "JWT verify failed",
            error=str(error),
            reason=reason,
            token_length=len(token),
            duration_ms=round((time.time() - start_time) * 1000, 2),
        )
        self._count("failed")

    def _count(self, status: str) -> None:
        if self.metrics is not None:
            self.metrics.increment_counter("token_verifications_total", status=status)
