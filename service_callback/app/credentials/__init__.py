"""
Credential package.

Resolves the two asymmetric keys the callback handler needs:

- the Cosigner public key, used to verify inbound request tokens;
- the callback private key, used to sign response tokens.

Keys come from SSM Parameter Store when enabled, then from literal PEM
environment values, then from files under the certificates directory.
"""

from .ssm import SecretFetcher, SSMParameterFetcher
from .store import CredentialPair, CredentialStore, KeyKind, key_fingerprints

__all__ = [
    "CredentialPair",
    "CredentialStore",
    "KeyKind",
    "SecretFetcher",
    "SSMParameterFetcher",
    "key_fingerprints",
]
