"""Credential factory for Azure authentication.

This module creates the Azure Identity SDK credential the sample runs with
and the management clients built on top of it.

Supported credential types:
- ClientSecretCredential: Service principal with client secret

Security:
- No token storage - delegates to Azure Identity SDK
- Client secret from environment variables only
- Log sanitization for all error messages
"""

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from azure.identity import ClientSecretCredential
from azure.mgmt.compute import ComputeManagementClient
from azure.mgmt.network import NetworkManagementClient
from azure.mgmt.resource import ResourceManagementClient
from azure.mgmt.storage import StorageManagementClient

from azvhd.auth_models import CLIENT_SECRET_VARS, ServicePrincipalConfig, first_env_value
from azvhd.log_sanitizer import LogSanitizer

logger = logging.getLogger(__name__)


class CredentialFactoryError(Exception):
    """Raised when credential creation fails."""

    pass


@dataclass
class AzureClients:
    """Management clients for one subscription.

    The sample only ever talks to Azure through these four clients, which
    keeps every remote call mockable from a single object in tests.
    """

    subscription_id: str
    resource: Any
    network: Any
    compute: Any
    storage: Any


class CredentialFactory:
    """Factory for Azure Identity credentials and management clients.

    Philosophy:
    - Ruthless simplicity: delegate to Azure SDK, don't reinvent
    - Security first: no token storage, secrets from environment only
    - Fail-fast: catch configuration errors immediately
    """

    @staticmethod
    def create_credential(
        config: ServicePrincipalConfig, environ: Mapping[str, str] | None = None
    ) -> ClientSecretCredential:
        """Create service principal credential with client secret.

        The client secret MUST come from the environment:
        - CLIENT_SECRET (sample variable)
        - AZURE_CLIENT_SECRET (standard Azure SDK variable)

        Args:
            config: Service principal configuration
            environ: Mapping to read from (defaults to os.environ)

        Returns:
            ClientSecretCredential: Credential with client secret

        Raises:
            CredentialFactoryError: If client secret not found or credential creation fails
        """
        client_secret = first_env_value(CLIENT_SECRET_VARS, os.environ if environ is None else environ)

        if not client_secret:
            raise CredentialFactoryError(
                "Client secret not found in environment. "
                "Set CLIENT_SECRET or AZURE_CLIENT_SECRET environment variable."
            )

        try:
            credential = ClientSecretCredential(
                tenant_id=config.tenant_id,
                client_id=config.client_id,
                client_secret=client_secret,
            )
        except Exception as e:
            safe_error = LogSanitizer.sanitize_exception(e)
            raise CredentialFactoryError(
                f"Failed to create service principal credential: {safe_error}"
            ) from e

        logger.debug(
            "Created service principal credential for client "
            f"{LogSanitizer.sanitize_client_id(config.client_id)}"
        )
        return credential

    @staticmethod
    def create_clients(credential: Any, subscription_id: str) -> AzureClients:
        """Create the resource, network, compute and storage management clients.

        Args:
            credential: Azure Identity credential (TokenCredential)
            subscription_id: Target subscription ID

        Returns:
            AzureClients bundle bound to the subscription
        """
        return AzureClients(
            subscription_id=subscription_id,
            resource=ResourceManagementClient(credential, subscription_id),
            network=NetworkManagementClient(credential, subscription_id),
            compute=ComputeManagementClient(credential, subscription_id),
            storage=StorageManagementClient(credential, subscription_id),
        )

    @classmethod
    def from_environment(cls, environ: Mapping[str, str] | None = None) -> AzureClients:
        """Authenticate from environment variables and build the clients.

        Raises:
            AuthConfigError: If identifiers are missing or invalid
            CredentialFactoryError: If the client secret is missing
        """
        config = ServicePrincipalConfig.from_environment(environ)
        credential = cls.create_credential(config, environ)
        return cls.create_clients(credential, config.subscription_id)
