"""
Key, token and configuration helpers for the callback service tests.
"""

import base64
import json
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import jwt
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from shared.config import CallbackConfig


@dataclass(frozen=True)
class KeyPair:
    """PEM encoded RSA key pair."""
    private_pem: bytes
    public_pem: bytes
    public_der: bytes


def generate_key_pair() -> KeyPair:
    private_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    public_key = private_key.public_key()
    return KeyPair(
        private_pem=private_key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption(),
        ),
        public_pem=public_key.public_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PublicFormat.SubjectPublicKeyInfo,
        ),
        public_der=public_key.public_bytes(
            encoding=serialization.Encoding.DER,
            format=serialization.PublicFormat.SubjectPublicKeyInfo,
        ),
    )


def make_config(**overrides: Any) -> CallbackConfig:
    """Configuration isolated from the process environment and any .env file."""
    values: Dict[str, Any] = {
        "node_env": "test",
        "log_level": "debug",
        "use_ssm_parameters": False,
        "cosigner_public_key_parameter": None,
        "callback_private_key_parameter": None,
        "cosigner_public_key": None,
        "callback_private_key": None,
        "certs_dir": "/nonexistent-certs",
        "allow_zero_signature": False,
        "full_jwt_logging": False,
        "log_key_fingerprints": False,
        "decision_mode": "approve",
        "approval_delay_ms": 0,
        "rejection_reason": "Rejected by policy",
    }
    values.update(overrides)
    return CallbackConfig(_env_file=None, **values)


def sign_request(claims: Dict[str, Any], keys: KeyPair) -> str:
    """Sign ``claims`` the way the Cosigner does."""
    return jwt.encode(claims, keys.private_pem, algorithm="RS256")


def _b64url(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def zero_signature_token(claims: Dict[str, Any], signature_length: int = 256) -> str:
    """Token whose signature segment is all zero bytes."""
    header = _b64url(json.dumps({"alg": "RS256", "typ": "JWT"}).encode())
    payload = _b64url(json.dumps(claims).encode())
    return f"{header}.{payload}.{_b64url(bytes(signature_length))}"


class FakeFetcher:
    """In-memory remote secret store that records every fetch."""

    def __init__(
        self,
        values: Optional[Dict[str, bytes]] = None,
        error: Optional[Exception] = None,
        delay: float = 0.0,
    ):
        self.values = values or {}
        self.error = error
        self.delay = delay
        self.calls: List[str] = []

    def fetch_secret(self, name: str) -> bytes:
        self.calls.append(name)
        if self.delay:
            time.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.values[name]
