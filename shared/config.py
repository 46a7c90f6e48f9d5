"""
Shared configuration management for the Cosigner callback handler.
"""

from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="allow"
    )

    host: str = "0.0.0.0"
    port: int = 8020

    # Environment
    node_env: str = Field(default="development", description="Deployment environment name")
    log_level: Optional[str] = Field(default=None, description="Explicit log level override")

    # Observability
    log_key_fingerprints: bool = Field(default=False, description="Log SHA-256 fingerprints of resolved keys")

    @property
    def is_production(self) -> bool:
        return self.node_env.lower() in ("prod", "production")

    def resolved_log_level(self) -> str:
        """Explicit LOG_LEVEL wins; otherwise INFO in production and DEBUG elsewhere."""
        if self.log_level and self.log_level.lower() in ("debug", "info", "warning", "warn", "error"):
            level = self.log_level.lower()
            return "warning" if level == "warn" else level
        return "info" if self.is_production else "debug"


class CallbackConfig(BaseConfig):
    """Configuration of the callback handler service."""

    service_name: str = "callback"

    # Remote secret store
    use_ssm_parameters: bool = Field(default=False)
    aws_region: str = Field(default="ap-northeast-1")
    cosigner_public_key_parameter: Optional[str] = Field(default=None)
    callback_private_key_parameter: Optional[str] = Field(default=None)

    # Literal PEM overrides
    cosigner_public_key: Optional[str] = Field(default=None, repr=False)
    callback_private_key: Optional[str] = Field(default=None, repr=False)

    # Local key files
    certs_dir: str = Field(default="certs")

    # Security toggles, both off unless an operator opts in
    allow_zero_signature: bool = Field(default=False)
    full_jwt_logging: bool = Field(default=False)

    # Reference decision policy
    decision_mode: Literal["approve", "reject"] = Field(default="approve")
    approval_delay_ms: int = Field(default=1000, ge=0)
    rejection_reason: str = Field(default="Rejected by policy")


def get_config(**overrides) -> CallbackConfig:
    """Get configuration for the callback service."""
    return CallbackConfig(**overrides)
