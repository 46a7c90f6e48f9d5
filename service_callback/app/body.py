"""
Normalisation of inbound request bodies into a bare token string.
"""

import base64
import binascii
from typing import Optional, Union

from shared.errors import MalformedToken
from shared.logging import get_logger

logger = get_logger("callback.body")


def normalize_body(
    body: Union[str, bytes, None],
    is_base64_encoded: bool = False,
    full_logging: bool = False,
) -> Optional[str]:
    """Decode and trim a request body.

    API Gateway may base64 encode the body; some Cosigner setups wrap the token
    in double quotes or add trailing newlines. Returns ``None`` for a missing
    body and raises MalformedToken when the body cannot be decoded.
    """
    if body is None:
        return None

    try:
        if is_base64_encoded:
            raw = base64.b64decode(body, validate=False)
            token = raw.decode("utf-8")
        elif isinstance(body, bytes):
            token = body.decode("utf-8")
        else:
            token = body
    except (binascii.Error, UnicodeDecodeError, TypeError, ValueError) as e:
        logger.error("Failed to decode request body", error=str(e), is_base64_encoded=is_base64_encoded)
        raise MalformedToken("Invalid request body") from e

    raw_token = token
    token = token.strip()
    if len(token) >= 2 and token.startswith('"') and token.endswith('"'):
        token = token[1:-1].strip()

    if full_logging:
        logger.debug("JWT token (raw)", token=raw_token)
        logger.debug("JWT token (normalized)", token=token)

    logger.debug(
        "JWT normalized",
        length=len(token),
        prefix=token[:16] + "...",
        suffix="..." + token[-16:],
    )
    return token
