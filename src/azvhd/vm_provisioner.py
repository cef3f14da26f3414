"""VM provisioning with unmanaged OS disks.

This module builds the create parameters for Windows and Linux VMs whose OS
disk is a VHD blob (see azvhd.vhd_storage) and creates them through
ComputeManagementClient.

Security:
- The admin password is passed to Azure only; create parameters are
  sanitized before they reach a debug log
"""

import logging
import time
from dataclasses import dataclass
from typing import Any

from azvhd.config_manager import ImageReference
from azvhd.log_sanitizer import LogSanitizer
from azvhd.vhd_storage import VHDStorage

logger = logging.getLogger(__name__)


class VMProvisioningError(Exception):
    """Raised when VM provisioning fails."""

    pass


@dataclass
class VMSpec:
    """Everything needed to create one VM."""

    name: str
    vm_size: str
    image: ImageReference
    admin_username: str
    admin_password: str
    nic_id: str
    os_type: str  # "windows" or "linux"
    tags: dict[str, str] | None = None

    def __repr__(self) -> str:
        return (
            f"VMSpec(name={self.name!r}, vm_size={self.vm_size!r}, os_type={self.os_type!r}, "
            f"admin_username={self.admin_username!r}, admin_password=***REDACTED***)"
        )


@dataclass
class ProvisionResult:
    """A created VM and how long creation took."""

    vm: Any
    elapsed_seconds: float


class VMProvisioner:
    """Create VMs with unmanaged disks."""

    OS_TYPES = ("windows", "linux")

    def __init__(self, compute_client: Any, resource_group: str, location: str, storage: VHDStorage):
        """Initialize provisioner.

        Args:
            compute_client: azure.mgmt.compute.ComputeManagementClient
            resource_group: Resource group for the VMs
            location: Azure region
            storage: VHD storage holding the OS disk blobs
        """
        self.compute_client = compute_client
        self.resource_group = resource_group
        self.location = location
        self.storage = storage

    def build_parameters(self, spec: VMSpec) -> dict[str, Any]:
        """Build begin_create_or_update parameters for a VM.

        Args:
            spec: VM specification

        Returns:
            Parameters dictionary in Azure SDK snake_case form

        Raises:
            VMProvisioningError: If the OS type is unknown
        """
        if spec.os_type not in self.OS_TYPES:
            raise VMProvisioningError(f"Unknown OS type: {spec.os_type}")

        os_profile: dict[str, Any] = {
            "computer_name": spec.name,
            "admin_username": spec.admin_username,
            "admin_password": spec.admin_password,
        }
        if spec.os_type == "windows":
            os_profile["windows_configuration"] = {
                "provision_vm_agent": True,
                "enable_automatic_updates": True,
            }
        else:
            os_profile["linux_configuration"] = {"disable_password_authentication": False}

        parameters: dict[str, Any] = {
            "location": self.location,
            "hardware_profile": {"vm_size": spec.vm_size},
            "storage_profile": {
                "image_reference": spec.image.to_dict(),
                "os_disk": {
                    "name": f"{spec.name}-osdisk",
                    "caching": "ReadWrite",
                    "create_option": "FromImage",
                    "vhd": {"uri": self.storage.vhd_uri(f"{spec.name}-osdisk")},
                },
                "data_disks": [],
            },
            "os_profile": os_profile,
            "network_profile": {"network_interfaces": [{"id": spec.nic_id, "primary": True}]},
        }
        if spec.tags:
            parameters["tags"] = dict(spec.tags)
        return parameters

    def create_vm(self, spec: VMSpec) -> ProvisionResult:
        """Create a VM and wait until provisioning completes.

        Args:
            spec: VM specification

        Returns:
            ProvisionResult with the VirtualMachine model and elapsed time

        Raises:
            VMProvisioningError: If creation fails
        """
        parameters = self.build_parameters(spec)
        logger.debug(f"VM create parameters: {LogSanitizer.sanitize_dict(parameters)}")

        start_time = time.monotonic()
        try:
            vm = self.compute_client.virtual_machines.begin_create_or_update(
                self.resource_group, spec.name, parameters
            ).result()
        except Exception as e:
            raise VMProvisioningError(
                LogSanitizer.create_safe_error_message(e, f"Failed to create VM {spec.name}")
            ) from e
        elapsed = time.monotonic() - start_time

        return ProvisionResult(vm=vm, elapsed_seconds=elapsed)
