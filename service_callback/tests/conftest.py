"""
Shared fixtures for the callback service tests.
"""

import time
from typing import Any, Dict

import pytest

from shared.config import CallbackConfig
from helpers import KeyPair, generate_key_pair, make_config


@pytest.fixture(scope="session")
def cosigner_keys() -> KeyPair:
    """Key pair the Cosigner signs requests with."""
    return generate_key_pair()


@pytest.fixture(scope="session")
def callback_keys() -> KeyPair:
    """Key pair the callback handler signs responses with."""
    return generate_key_pair()


@pytest.fixture(scope="session")
def rogue_keys() -> KeyPair:
    """Key pair unknown to the callback handler."""
    return generate_key_pair()


@pytest.fixture
def config(cosigner_keys, callback_keys) -> CallbackConfig:
    """Configuration with both keys supplied as literal PEM values."""
    return make_config(
        cosigner_public_key=cosigner_keys.public_pem.decode(),
        callback_private_key=callback_keys.private_pem.decode(),
    )


@pytest.fixture
def request_claims() -> Dict[str, Any]:
    """Claims of a Cosigner transaction-signing request."""
    now = int(time.time())
    return {
        "txId": "tx-0001",
        "requestId": "req-0001",
        "operation": "TRANSFER",
        "signerId": "cosigner-1",
        "sourceType": "VAULT",
        "destType": "ONE_TIME_ADDRESS",
        "asset": "ETH",
        "amount": 1.5,
        "iat": now,
        "exp": now + 300,
    }
