"""Authentication data models for azvhd.

This module defines the service principal configuration the sample
authenticates with, and how it is resolved from the environment.

Environment variables (first match wins):
- CLIENT_ID / AZURE_CLIENT_ID
- CLIENT_SECRET / AZURE_CLIENT_SECRET
- TENANT_ID / AZURE_TENANT_ID
- SUBSCRIPTION_ID / AZURE_SUBSCRIPTION_ID

Security features:
- Frozen dataclass for immutability
- UUID validation in __post_init__
- The client secret is never stored on the config object
- Secret masking in to_dict_masked()
"""

import os
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any
from uuid import UUID

CLIENT_ID_VARS = ("CLIENT_ID", "AZURE_CLIENT_ID")
CLIENT_SECRET_VARS = ("CLIENT_SECRET", "AZURE_CLIENT_SECRET")  # noqa: S105 - variable names
TENANT_ID_VARS = ("TENANT_ID", "AZURE_TENANT_ID")
SUBSCRIPTION_ID_VARS = ("SUBSCRIPTION_ID", "AZURE_SUBSCRIPTION_ID")


class AuthConfigError(Exception):
    """Raised when authentication settings are missing or invalid."""

    pass


def validate_uuid(value: str, field_name: str) -> None:
    """Validate UUID format. Raises ValueError if invalid.

    Args:
        value: The string to validate as UUID
        field_name: Name of the field for error messages

    Raises:
        ValueError: If value is not a valid UUID format
    """
    if not value:
        raise ValueError(f"{field_name} must be valid UUID format, got empty string")

    try:
        UUID(value)
    except (ValueError, AttributeError) as e:
        raise ValueError(f"{field_name} must be valid UUID format, got: {value}") from e


def first_env_value(names: tuple[str, ...], environ: Mapping[str, str] | None = None) -> str | None:
    """Return the first non-empty value among the given environment variables."""
    env = os.environ if environ is None else environ
    for name in names:
        value = env.get(name)
        if value and value.strip():
            return value.strip()
    return None


@dataclass(frozen=True)
class ServicePrincipalConfig:
    """Service principal authentication configuration.

    Security:
    - No client_secret storage - must come from environment
    - tenant_id, client_id and subscription_id validated as UUIDs
    - Frozen to prevent mutation
    """

    tenant_id: str
    client_id: str
    subscription_id: str

    def __post_init__(self):
        """Validate UUIDs for all identifiers."""
        validate_uuid(self.tenant_id, "tenant_id")
        validate_uuid(self.client_id, "client_id")
        validate_uuid(self.subscription_id, "subscription_id")

    @classmethod
    def from_environment(cls, environ: Mapping[str, str] | None = None) -> "ServicePrincipalConfig":
        """Resolve the service principal from environment variables.

        Args:
            environ: Mapping to read from (defaults to os.environ)

        Returns:
            ServicePrincipalConfig instance

        Raises:
            AuthConfigError: If a variable is missing or not a UUID
        """
        values = {
            "client_id": first_env_value(CLIENT_ID_VARS, environ),
            "tenant_id": first_env_value(TENANT_ID_VARS, environ),
            "subscription_id": first_env_value(SUBSCRIPTION_ID_VARS, environ),
        }

        missing = [
            "/".join(names)
            for field_name, names in (
                ("client_id", CLIENT_ID_VARS),
                ("tenant_id", TENANT_ID_VARS),
                ("subscription_id", SUBSCRIPTION_ID_VARS),
            )
            if not values[field_name]
        ]
        if missing:
            raise AuthConfigError(f"Missing environment variables: {', '.join(missing)}")

        try:
            return cls(**values)  # type: ignore[arg-type]
        except ValueError as e:
            raise AuthConfigError(str(e)) from e

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary. Safe for config file storage."""
        return {
            "tenant_id": self.tenant_id,
            "client_id": self.client_id,
            "subscription_id": self.subscription_id,
        }

    def to_dict_masked(self) -> dict[str, Any]:
        """Convert to dictionary with identifiers partially masked for logging."""
        return {key: f"{value[:8]}-****" for key, value in self.to_dict().items()}
