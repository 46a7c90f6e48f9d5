"""
Remote secret fetchers backed by AWS SSM Parameter Store.
"""

from typing import Any, Optional, Protocol

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from shared.errors import SecretFetchError
from shared.logging import get_logger


class SecretFetcher(Protocol):
    """Capability to fetch a named secret from a remote store."""

    def fetch_secret(self, name: str) -> bytes:
        ...


class SSMParameterFetcher:
    """Fetch SecureString parameters from SSM Parameter Store."""

    def __init__(self, region: str = "ap-northeast-1", client: Optional[Any] = None):
        self.region = region
        self._client = client
        self.logger = get_logger("callback.credentials.ssm")

    @property
    def client(self) -> Any:
        # Created lazily so importing the service never touches AWS.
        if self._client is None:
            self._client = boto3.client("ssm", region_name=self.region)
        return self._client

    def fetch_secret(self, name: str) -> bytes:
        self.logger.info("Loading parameter from SSM Parameter Store", parameter=name)
        try:
            response = self.client.get_parameter(Name=name, WithDecryption=True)
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "Unknown")
            raise SecretFetchError(name, f"SSM request failed ({error_code})") from e
        except BotoCoreError as e:
            raise SecretFetchError(name, f"SSM request failed: {e}") from e

        value = (response.get("Parameter") or {}).get("Value")
        if not value:
            raise SecretFetchError(name, "parameter not found or empty")

        return value.encode("utf-8")
