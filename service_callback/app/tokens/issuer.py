"""
Signing of outbound response tokens.
"""

import time
from datetime import datetime, timedelta, timezone
from typing import Any, Mapping, Optional

from jose import jwt
from jose.exceptions import JOSEError

from shared.errors import CredentialUnavailable, SigningFailed
from shared.logging import get_logger
from shared.metrics import MetricsCollector
from ..credentials import CredentialStore, KeyKind
from .verifier import ALGORITHM

RESPONSE_TOKEN_TTL = timedelta(hours=1)


class TokenIssuer:
    """Sign arbitrary claim sets with the callback private key."""

    def __init__(
        self,
        credentials: CredentialStore,
        metrics: Optional[MetricsCollector] = None,
        ttl: timedelta = RESPONSE_TOKEN_TTL,
    ):
        self.credentials = credentials
        self.metrics = metrics
        self.ttl = ttl
        self.logger = get_logger("callback.tokens.issuer")

    async def sign(self, claims: Mapping[str, Any]) -> str:
        """Return a compact RS256 token carrying ``claims`` and an ``exp`` one TTL from now."""
        start_time = time.time()

        try:
            signing_key = await self.credentials.resolve(KeyKind.SIGNING)
        except CredentialUnavailable as e:
            self._fail(start_time, e)
            raise SigningFailed("Signing key unavailable", details={"reason": e.message}) from e

        payload = dict(claims)
        payload["exp"] = int((datetime.now(timezone.utc) + self.ttl).timestamp())

        try:
            token = jwt.encode(payload, signing_key.decode("utf-8"), algorithm=ALGORITHM)
        except (JOSEError, TypeError, ValueError) as e:
            self._fail(start_time, e)
            raise SigningFailed(f"Token signing failed: {e}") from e

        self.logger.info(
            "Performance: JWT sign",
            duration_ms=round((time.time() - start_time) * 1000, 2),
            token_length=len(token),
        )
        self._count("ok")
        return token

    def _fail(self, start_time: float, error: Exception) -> None:
        self.logger.error(
            "JWT sign failed",
            error=str(error),
            error_type=type(error).__name__,
            duration_ms=round((time.time() - start_time) * 1000, 2),
        )
        self._count("failed")

    def _count(self, status: str) -> None:
        if self.metrics is not None:
            self.metrics.increment_counter("response_signings_total", status=status)
