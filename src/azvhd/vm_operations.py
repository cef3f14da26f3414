"""VM update and lifecycle operations.

This module mutates an existing VM in place: tags, unmanaged data disks,
OS disk size and power state. Updates follow a read-modify-write pattern:
change the VirtualMachine model locally, then send the whole model back
with begin_create_or_update and wait for the result.

Each operation waits for Azure to finish before returning; nothing here
runs concurrently.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from azure.mgmt.compute.models import DataDisk, VirtualHardDisk
from azure.mgmt.core.tools import parse_resource_id

from azvhd.log_sanitizer import LogSanitizer
from azvhd.tag_manager import TagManager, TagManagerError
from azvhd.vhd_storage import VHDStorage

logger = logging.getLogger(__name__)

# Azure allows LUNs 0-63
MAX_LUN = 63


class VMOperationError(Exception):
    """Raised when a VM operation fails."""

    pass


@dataclass
class DataDiskSpec:
    """A new empty unmanaged data disk to attach."""

    size_gb: int
    name: str | None = None
    caching: str | None = None


def next_free_lun(data_disks: list[Any]) -> int:
    """Return the lowest LUN not used by the given data disks.

    Raises:
        VMOperationError: If all LUNs are taken
    """
    used = {disk.lun for disk in data_disks}
    for lun in range(MAX_LUN + 1):
        if lun not in used:
            return lun
    raise VMOperationError("No free LUN available for a new data disk")


def data_disk_blob_name(vm_name: str, disk_name: str) -> str:
    """Return the VHD blob name for a data disk, prefixed once with the VM name."""
    if disk_name.startswith(f"{vm_name}-"):
        return disk_name
    return f"{vm_name}-{disk_name}"


def compute_expanded_os_disk_size(current_gb: int | None, increment_gb: int, fallback_gb: int) -> int:
    """Return the OS disk size after expansion.

    Uses the reported size when it is nonzero; otherwise assumes fallback_gb.
    """
    base = current_gb if current_gb else fallback_gb
    return base + increment_gb


class VMOperations:
    """Mutate and control VMs in one resource group."""

    def __init__(self, compute_client: Any, resource_group: str, storage: VHDStorage | None = None):
        """Initialize operations.

        Args:
            compute_client: azure.mgmt.compute.ComputeManagementClient
            resource_group: Resource group containing the VMs
            storage: VHD storage for new data disks (required to attach disks)
        """
        self.compute_client = compute_client
        self.resource_group = resource_group
        self.storage = storage

    def _wait(self, action: str, vm_name: str, start: Callable[[], Any]) -> Any:
        """Start a long-running operation and wait for its result."""
        try:
            return start().result()
        except Exception as e:
            raise VMOperationError(
                LogSanitizer.create_safe_error_message(e, f"Failed to {action} VM {vm_name}")
            ) from e

    def apply(self, vm: Any) -> Any:
        """Send a locally modified VM model back to Azure.

        Returns:
            The updated VirtualMachine model
        """
        return self._wait(
            "update",
            vm.name,
            lambda: self.compute_client.virtual_machines.begin_create_or_update(
                self.resource_group, vm.name, vm
            ),
        )

    def refresh(self, vm_name: str) -> Any:
        """Fetch the current VM model."""
        try:
            return self.compute_client.virtual_machines.get(self.resource_group, vm_name)
        except Exception as e:
            raise VMOperationError(
                LogSanitizer.create_safe_error_message(e, f"Failed to get VM {vm_name}")
            ) from e

    # Tags

    def add_tags(self, vm: Any, tags: dict[str, str]) -> Any:
        """Add tags to a VM, keeping the ones it already has.

        Re-adding a key replaces its value.

        Returns:
            The updated VirtualMachine model
        """
        try:
            vm.tags = TagManager.merge_tags(vm.tags, tags)
        except TagManagerError as e:
            raise VMOperationError(f"Cannot tag VM {vm.name}: {e}") from e
        return self.apply(vm)

    # Data disks

    def attach_data_disks(self, vm: Any, specs: list[DataDiskSpec]) -> Any:
        """Attach new empty unmanaged data disks in a single update.

        Each disk gets the lowest free LUN and a fresh VHD blob. Unnamed
        disks are named after the VM and LUN.

        Args:
            vm: VirtualMachine model
            specs: Disks to create

        Returns:
            The updated VirtualMachine model

        Raises:
            VMOperationError: If no storage is configured, a name is taken,
                or the update fails
        """
        if self.storage is None:
            raise VMOperationError("VHD storage is required to attach unmanaged data disks")

        data_disks = vm.storage_profile.data_disks
        if data_disks is None:
            data_disks = vm.storage_profile.data_disks = []

        for spec in specs:
            lun = next_free_lun(data_disks)
            name = spec.name or f"{vm.name}-datadisk-lun{lun}"
            if any(disk.name == name for disk in data_disks):
                raise VMOperationError(f"VM {vm.name} already has a data disk named {name}")

            disk = DataDisk(
                lun=lun,
                name=name,
                create_option="Empty",
                disk_size_gb=spec.size_gb,
                vhd=VirtualHardDisk(uri=self.storage.vhd_uri(data_disk_blob_name(vm.name, name))),
                caching=spec.caching,
            )
            data_disks.append(disk)
            logger.debug(f"Attaching data disk {name} ({spec.size_gb} GB) at LUN {lun}")

        return self.apply(vm)

    def attach_new_data_disk(
        self, vm: Any, size_gb: int, name: str | None = None, caching: str | None = None
    ) -> Any:
        """Attach one new empty unmanaged data disk."""
        return self.attach_data_disks(vm, [DataDiskSpec(size_gb=size_gb, name=name, caching=caching)])

    def detach_data_disk(self, vm: Any, name: str) -> Any:
        """Detach a data disk by name. The VHD blob itself is kept.

        Raises:
            VMOperationError: If the VM has no such disk
        """
        data_disks = vm.storage_profile.data_disks or []
        remaining = [disk for disk in data_disks if disk.name != name]
        if len(remaining) == len(data_disks):
            raise VMOperationError(f"VM {vm.name} has no data disk named {name}")

        vm.storage_profile.data_disks = remaining
        return self.apply(vm)

    def resize_data_disk(self, vm: Any, name: str, size_gb: int) -> Any:
        """Grow a data disk. The VM should be deallocated first.

        Raises:
            VMOperationError: If the disk is missing or the new size is smaller
        """
        for disk in vm.storage_profile.data_disks or []:
            if disk.name == name:
                if disk.disk_size_gb and size_gb < disk.disk_size_gb:
                    raise VMOperationError(
                        f"Cannot shrink data disk {name} from {disk.disk_size_gb} GB to {size_gb} GB"
                    )
                disk.disk_size_gb = size_gb
                return self.apply(vm)
        raise VMOperationError(f"VM {vm.name} has no data disk named {name}")

    # OS disk

    def expand_os_disk(self, vm: Any, increment_gb: int, fallback_gb: int) -> tuple[Any, int]:
        """Grow the OS disk by increment_gb.

        Some API versions do not report the OS disk size. In that case
        fallback_gb is assumed as the current size.

        Returns:
            Tuple of (updated VirtualMachine model, new size in GB)
        """
        os_disk = vm.storage_profile.os_disk
        current = os_disk.disk_size_gb
        if not current:
            logger.warning("Server is not returning the OS disk size, possible bug in the server?")
            logger.warning(f"Assuming that the OS disk size is {fallback_gb} GB")

        new_size = compute_expanded_os_disk_size(current, increment_gb, fallback_gb)
        os_disk.disk_size_gb = new_size
        return self.apply(vm), new_size

    # Power state

    def deallocate(self, vm_name: str) -> None:
        self._wait(
            "deallocate",
            vm_name,
            lambda: self.compute_client.virtual_machines.begin_deallocate(
                self.resource_group, vm_name
            ),
        )

    def start(self, vm_name: str) -> None:
        self._wait(
            "start",
            vm_name,
            lambda: self.compute_client.virtual_machines.begin_start(self.resource_group, vm_name),
        )

    def restart(self, vm_name: str) -> None:
        self._wait(
            "restart",
            vm_name,
            lambda: self.compute_client.virtual_machines.begin_restart(
                self.resource_group, vm_name
            ),
        )

    def power_off(self, vm_name: str) -> None:
        """Stop the VM without releasing its compute allocation."""
        self._wait(
            "power off",
            vm_name,
            lambda: self.compute_client.virtual_machines.begin_power_off(
                self.resource_group, vm_name
            ),
        )

    def get_power_state(self, vm_name: str) -> str:
        """Return the power state from the instance view (e.g. "running").

        Returns "unknown" when Azure reports no PowerState status.
        """
        try:
            view = self.compute_client.virtual_machines.instance_view(self.resource_group, vm_name)
        except Exception as e:
            raise VMOperationError(
                LogSanitizer.create_safe_error_message(e, f"Failed to get instance view of {vm_name}")
            ) from e

        for status in view.statuses or []:
            code = status.code or ""
            if code.startswith("PowerState/"):
                return code.split("/", 1)[1]
        return "unknown"

    # Listing and deletion

    def list_vms(self, resource_group: str | None = None) -> list[Any]:
        """List all VMs in a resource group (defaults to this one)."""
        rg = resource_group or self.resource_group
        try:
            return list(self.compute_client.virtual_machines.list(rg))
        except Exception as e:
            raise VMOperationError(
                LogSanitizer.create_safe_error_message(e, f"Failed to list VMs in {rg}")
            ) from e

    def delete_vm_by_id(self, vm_id: str) -> None:
        """Delete a VM given its full resource ID and wait for completion.

        Raises:
            VMOperationError: If the ID is not a VM ID or deletion fails
        """
        parts = parse_resource_id(vm_id)
        if parts.get("type", "").lower() != "virtualmachines" or not parts.get("resource_group"):
            raise VMOperationError(f"Not a virtual machine ID: {vm_id}")

        self._wait(
            "delete",
            parts["name"],
            lambda: self.compute_client.virtual_machines.begin_delete(
                parts["resource_group"], parts["name"]
            ),
        )
