"""AwsSecretsManagerStore — persists the bootstrap bundle in AWS Secrets Manager.

Credentials come from boto3's default chain (IRSA, instance profile,
environment) unless a profile is given.

Requires: ``pip install boto3``
"""

from __future__ import annotations

from typing import Any

from vault_init.models import SecretValue, SecretVersion
from vault_init.secrets.store import (
    SecretAccessDeniedError,
    SecretNotFoundError,
    SecretStoreError,
)

_NOT_FOUND_CODES = frozenset({"ResourceNotFoundException"})
_ACCESS_DENIED_CODES = frozenset({
    "AccessDeniedException",
    "AccessDenied",
    "UnauthorizedOperation",
    "UnrecognizedClientException",
})


def _check_boto3_available() -> None:
    """Raise ImportError with helpful message if boto3 is not installed."""
    try:
        import boto3  # noqa: F401
    except ImportError:
        raise ImportError(
            "The 'boto3' package is required for AwsSecretsManagerStore. "
            "Install it with: pip install boto3"
        ) from None


class AwsSecretsManagerStore:
    """Secret store backed by the ``secretsmanager`` boto3 client.

    - ``exists`` uses ``DescribeSecret``
    - ``get`` uses ``GetSecretValue`` (``SecretString`` only)
    - ``put`` uses ``UpdateSecret``, which creates a new ``AWSCURRENT`` version

    The secret itself must already exist; this store never creates it.
    The boto3 client is built lazily on first use and reused afterwards.
    """

    def __init__(
        self,
        region: str | None = None,
        profile: str | None = None,
        endpoint_url: str | None = None,
    ) -> None:
        _check_boto3_available()
        self._region = region
        self._profile = profile
        self._endpoint_url = endpoint_url
        self._client: Any = None

    def exists(self, secret_id: str) -> bool:
        try:
            self._get_client().describe_secret(SecretId=secret_id)
        except Exception as exc:
            err = self._translate(exc, "describe", secret_id)
            if isinstance(err, SecretNotFoundError):
                return False
            raise err from exc
        return True

    def get(self, secret_id: str) -> SecretValue:
        try:
            response = self._get_client().get_secret_value(SecretId=secret_id)
        except Exception as exc:
            raise self._translate(exc, "get", secret_id) from exc

        value = response.get("SecretString")
        if value is None:
            raise SecretNotFoundError(
                f"Secret {secret_id!r} has no SecretString value"
            )
        return SecretValue(value=value, version_id=response.get("VersionId", ""))

    def put(self, secret_id: str, value: str) -> SecretVersion:
        try:
            response = self._get_client().update_secret(
                SecretId=secret_id, SecretString=value,
            )
        except Exception as exc:
            raise self._translate(exc, "update", secret_id) from exc

        return SecretVersion(
            arn=response.get("ARN", ""),
            name=response.get("Name", ""),
            version_id=response.get("VersionId", ""),
        )

    # --- Private: session/client setup ---

    def _get_boto3_session(self) -> Any:
        """Build a boto3 Session from constructor config."""
        import boto3

        kwargs: dict[str, Any] = {}
        if self._region:
            kwargs["region_name"] = self._region
        if self._profile:
            kwargs["profile_name"] = self._profile
        return boto3.Session(**kwargs)

    def _get_client(self) -> Any:
        """Get (and cache) the secretsmanager client."""
        if self._client is None:
            kwargs: dict[str, Any] = {}
            if self._endpoint_url:
                kwargs["endpoint_url"] = self._endpoint_url
            self._client = self._get_boto3_session().client(
                "secretsmanager", **kwargs,
            )
        return self._client

    # --- Private: error mapping ---

    def _translate(
        self, exc: Exception, operation: str, secret_id: str,
    ) -> SecretStoreError:
        """Map a boto3/botocore exception onto the store error hierarchy."""
        code = _error_code(exc)
        message = f"{operation} secret {secret_id!r}: {exc}"
        if code in _NOT_FOUND_CODES:
            return SecretNotFoundError(message)
        if code in _ACCESS_DENIED_CODES:
            return SecretAccessDeniedError(message)
        return SecretStoreError(message)


def _error_code(exc: Exception) -> str:
    """Extract the AWS error code from a ClientError, or ``""``."""
    response = getattr(exc, "response", None)
    if isinstance(response, dict):
        return str(response.get("Error", {}).get("Code", ""))
    return ""
