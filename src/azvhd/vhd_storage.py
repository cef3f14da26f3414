"""Storage account for unmanaged (VHD) disks.

Unmanaged OS and data disks are page blobs in a storage account, addressed
by URI. The sample creates one account per run, inside the run's resource
group, and keeps every VHD in the `vhds` container.
"""

import logging
import re
from typing import Any

from azvhd.log_sanitizer import LogSanitizer
from azvhd.naming import create_storage_account_name

logger = logging.getLogger(__name__)

VHD_CONTAINER = "vhds"


class VHDStorageError(Exception):
    """Raised when VHD storage operations fail."""

    pass


class VHDStorage:
    """Create the VHD storage account and build blob URIs."""

    STORAGE_NAME_PATTERN = re.compile(r"^[a-z0-9]{3,24}$")
    BLOB_NAME_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]{0,250}$")

    def __init__(self, storage_client: Any, resource_group: str, location: str):
        """Initialize VHD storage.

        Args:
            storage_client: azure.mgmt.storage.StorageManagementClient
            resource_group: Resource group for the account
            location: Azure region
        """
        self.storage_client = storage_client
        self.resource_group = resource_group
        self.location = location
        self.blob_endpoint: str | None = None

    def create_storage_account(self, name: str | None = None) -> Any:
        """Create the storage account that holds the VHDs.

        Args:
            name: Account name (generated if omitted)

        Returns:
            StorageAccount model

        Raises:
            VHDStorageError: If the name is invalid or creation fails
        """
        name = name or create_storage_account_name()
        if not self.STORAGE_NAME_PATTERN.match(name):
            raise VHDStorageError(
                f"Invalid storage account name: {name}. "
                "Must be 3-24 characters, lowercase letters and numbers only."
            )

        parameters = {
            "location": self.location,
            "sku": {"name": "Standard_LRS"},
            "kind": "StorageV2",
        }

        logger.info(f"Creating storage account {name} for VHDs")
        try:
            account = self.storage_client.storage_accounts.begin_create(
                self.resource_group, name, parameters
            ).result()
        except Exception as e:
            raise VHDStorageError(
                LogSanitizer.create_safe_error_message(e, f"Failed to create storage account {name}")
            ) from e

        endpoint = account.primary_endpoints.blob if account.primary_endpoints else None
        if not endpoint:
            raise VHDStorageError(f"Storage account {name} has no blob endpoint")

        self.blob_endpoint = endpoint
        logger.info(f"Created storage account: {account.id}")
        return account

    def vhd_uri(self, blob_name: str) -> str:
        """Return the URI of a VHD blob in the account's VHD container.

        Args:
            blob_name: Blob name without the .vhd extension

        Raises:
            VHDStorageError: If no account has been created or the name is invalid
        """
        if not self.blob_endpoint:
            raise VHDStorageError("Storage account not created yet")
        return build_vhd_uri(self.blob_endpoint, blob_name)


def build_vhd_uri(blob_endpoint: str, blob_name: str) -> str:
    """Build `<endpoint>/vhds/<name>.vhd`.

    Example:
        >>> build_vhd_uri("https://acct.blob.core.windows.net/", "os-disk")
        'https://acct.blob.core.windows.net/vhds/os-disk.vhd'
    """
    if not VHDStorage.BLOB_NAME_PATTERN.match(blob_name):
        raise VHDStorageError(f"Invalid VHD blob name: {blob_name}")
    return f"{blob_endpoint.rstrip('/')}/{VHD_CONTAINER}/{blob_name}.vhd"
