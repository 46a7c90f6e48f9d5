"""
Shared error handling for the Cosigner callback handler.
"""

from typing import Dict, Any, Optional


class CallbackHandlerException(Exception):
    """Base exception for callback handler services."""

    status_code: int = 500

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)


class CredentialUnavailable(CallbackHandlerException):
    """No credential backend yielded key material."""

    status_code = 500

    def __init__(self, message: str = "Credential unavailable", details: Optional[Dict[str, Any]] = None):
        super().__init__("CREDENTIAL_UNAVAILABLE", message, details)


class MalformedToken(CallbackHandlerException):
    """Inbound token is not a structurally valid JWT."""

    status_code = 400

    def __init__(self, message: str = "Malformed token", details: Optional[Dict[str, Any]] = None):
        super().__init__("MALFORMED_TOKEN", message, details)


class VerificationFailed(CallbackHandlerException):
    """Signature, algorithm or expiry check failed."""

    status_code = 401

    def __init__(self, message: str = "Token verification failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("VERIFICATION_FAILED", message, details)


class SigningFailed(CallbackHandlerException):
    """Response token could not be signed."""

    status_code = 500

    def __init__(self, message: str = "Token signing failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("SIGNING_FAILED", message, details)


class SecretFetchError(CallbackHandlerException):
    """Remote secret store failed to return a value."""

    status_code = 502

    def __init__(self, parameter: str, message: str = "Secret fetch failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("SECRET_FETCH_ERROR", f"{parameter}: {message}", details)
        self.parameter = parameter
