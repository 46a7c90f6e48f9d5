"""
Credential store for the callback handler.

Resolves the Cosigner verification key and the callback signing key from, in
order, SSM Parameter Store, a literal PEM environment value, and a PEM file
under the certificates directory. Each key is resolved once per process.
"""

import asyncio
import base64
import binascii
import hashlib
import threading
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Dict, Optional

from shared.config import CallbackConfig
from shared.errors import CredentialUnavailable
from shared.logging import get_logger
from .ssm import SecretFetcher, SSMParameterFetcher


class KeyKind(str, Enum):
    """Which half of the credential pair is requested."""

    VERIFICATION = "verification"
    SIGNING = "signing"


@dataclass(frozen=True)
class KeySource:
    """Where a key may be found, in resolution order."""

    description: str
    parameter: Optional[str]
    env_var: str
    env_value: Optional[str]
    filename: str


@dataclass(frozen=True)
class CredentialPair:
    """Resolved key material, PEM encoded."""

    verification_key: bytes
    signing_key: bytes


def key_fingerprints(material: bytes) -> Dict[str, Optional[str]]:
    """SHA-256 fingerprints of the DER key inside a PEM blob and of the PEM text itself."""
    pem_text = material.decode("utf-8", errors="replace")
    body = "".join(
        line.strip()
        for line in pem_text.splitlines()
        if line.strip() and not line.startswith("-----")
    )

    der_sha256: Optional[str]
    try:
        der_sha256 = hashlib.sha256(base64.b64decode(body, validate=True)).hexdigest()
    except (binascii.Error, ValueError):
        der_sha256 = None

    return {
        "der_sha256": der_sha256,
        "pem_sha256": hashlib.sha256(material).hexdigest(),
    }


class CredentialStore:
    """Resolve-once cache of the callback handler's key material."""

    def __init__(self, config: CallbackConfig, fetcher: Optional[SecretFetcher] = None):
        self.config = config
        self.logger = get_logger("callback.credentials")
        self.certs_dir = Path(config.certs_dir)
        self.use_remote = config.use_ssm_parameters

        if fetcher is None and self.use_remote:
            fetcher = SSMParameterFetcher(region=config.aws_region)
        self._fetcher = fetcher

        self._sources: Dict[KeyKind, KeySource] = {
            KeyKind.VERIFICATION: KeySource(
                description="Cosigner public key",
                parameter=config.cosigner_public_key_parameter,
                env_var="COSIGNER_PUBLIC_KEY",
                env_value=config.cosigner_public_key,
                filename="cosigner_public.pem",
            ),
            KeyKind.SIGNING: KeySource(
                description="Callback private key",
                parameter=config.callback_private_key_parameter,
                env_var="CALLBACK_PRIVATE_KEY",
                env_value=config.callback_private_key,
                filename="callback_private.pem",
            ),
        }

        # Written once per kind under its lock, read without it afterwards.
        self._resolved: Dict[KeyKind, bytes] = {}
        self._locks: Dict[KeyKind, threading.Lock] = {kind: threading.Lock() for kind in KeyKind}

    async def resolve(self, kind: KeyKind) -> bytes:
        """Return the key material for ``kind``, resolving it on first use."""
        material = self._resolved.get(kind)
        if material is not None:
            return material

        # Remote fetches and file reads block, keep them off the event loop.
        return await asyncio.to_thread(self.resolve_sync, kind)

    async def resolve_pair(self) -> CredentialPair:
        """Resolve both keys."""
        verification_key, signing_key = await asyncio.gather(
            self.resolve(KeyKind.VERIFICATION),
            self.resolve(KeyKind.SIGNING),
        )
        return CredentialPair(verification_key=verification_key, signing_key=signing_key)

    def resolve_sync(self, kind: KeyKind) -> bytes:
        """Blocking variant of :meth:`resolve`, safe to call from any thread."""
        material = self._resolved.get(kind)
        if material is not None:
            return material

        with self._locks[kind]:
            material = self._resolved.get(kind)
            if material is None:
                material = self._load(kind)
                self._resolved[kind] = material
        return material

    def is_resolved(self, kind: KeyKind) -> bool:
        return kind in self._resolved

    def _load(self, kind: KeyKind) -> bytes:
        source = self._sources[kind]

        if self.use_remote and source.parameter and self._fetcher is not None:
            try:
                material = self._fetcher.fetch_secret(source.parameter)
                if not material:
                    raise ValueError(f"Parameter {source.parameter} returned an empty value")
                return self._accept(source, material, "ssm")
            except Exception as e:
                self.logger.error(
                    "Failed to load key from SSM Parameter Store, falling back to other methods",
                    key=source.description,
                    parameter=source.parameter,
                    error=str(e),
                    error_type=type(e).__name__,
                )

        if source.env_value:
            self.logger.info(
                "Loading key from environment variable",
                key=source.description,
                env_var=source.env_var,
            )
            return self._accept(source, source.env_value.encode("utf-8"), "env")

        path = self.certs_dir / source.filename
        try:
            material = path.read_bytes()
        except OSError as e:
            self.logger.error(
                "Failed to load key",
                key=source.description,
                path=str(path),
                error=str(e),
            )
            raise CredentialUnavailable(
                f"Certificate not found: {source.description}",
                details={"kind": kind.value, "path": str(path)},
            ) from e

        if not material.strip():
            self.logger.error("Key file is empty", key=source.description, path=str(path))
            raise CredentialUnavailable(
                f"Certificate file is empty: {source.description}",
                details={"kind": kind.value, "path": str(path)},
            )

        self.logger.info("Loading key from file", key=source.description, path=str(path))
        return self._accept(source, material, "file")

    def _accept(self, source: KeySource, material: bytes, origin: str) -> bytes:
        if self.config.log_key_fingerprints:
            self.logger.info(
                "Key fingerprint",
                key=source.description,
                source=origin,
                length=len(material),
                **key_fingerprints(material),
            )
        return material
