"""Azure Compute sample for managing virtual machines with unmanaged disks.

Runs, in order:
- Create a resource group, VHD storage account and virtual network
- Create a Windows virtual machine
- Tag it (there are many possible variations here)
- Attach data disks, detach one, resize the other
- Expand the OS drive
- Start, restart and stop (power off) it
- Create a Linux virtual machine in the same virtual network
- List virtual machines in the resource group
- Delete the Windows virtual machine
- Delete the resource group, whatever happened before

Every remote call is awaited before the next one starts. There are exactly
two error guards: teardown failures are logged and swallowed
(azvhd.resource_group), and main() logs and swallows whatever ends the run.
"""

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, field

from rich.console import Console

from azvhd.config_manager import SampleConfig
from azvhd.credential_factory import AzureClients, CredentialFactory
from azvhd.log_sanitizer import LogSanitizer
from azvhd.naming import create_password, create_random_name
from azvhd.network_provisioner import NetworkProvisioner
from azvhd.resource_group import ResourceGroupManager, ResourceGroupScope
from azvhd.vhd_storage import VHDStorage
from azvhd.vm_display import VMDisplay
from azvhd.vm_operations import DataDiskSpec, VMOperations
from azvhd.vm_provisioner import VMProvisioner, VMSpec

logger = logging.getLogger(__name__)

ADMIN_PASSWORD_ENV = "AZVHD_ADMIN_PASSWORD"  # noqa: S105 - variable name

# Windows computer names are limited to 15 characters
WINDOWS_NAME_MAX_LEN = 15


@dataclass
class SampleRunResult:
    """What a run produced. Filled in as steps complete."""

    resource_group_id: str | None = None
    windows_vm_id: str | None = None
    linux_vm_id: str | None = None
    listed_vm_names: list[str] = field(default_factory=list)
    os_disk_size_gb: int | None = None
    completed: bool = False
    teardown_succeeded: bool | None = None


@dataclass
class SampleNames:
    """Randomized resource names for one run."""

    resource_group: str
    vnet: str
    windows_nic: str
    linux_nic: str
    windows_vm: str
    linux_vm: str

    @classmethod
    def generate(cls, config: SampleConfig) -> "SampleNames":
        return cls(
            resource_group=create_random_name(config.resource_group_prefix),
            vnet=create_random_name(config.vnet_prefix),
            windows_nic=create_random_name(config.nic_prefix),
            linux_nic=create_random_name(config.nic_prefix),
            windows_vm=create_random_name(config.windows_vm_prefix, max_len=WINDOWS_NAME_MAX_LEN),
            linux_vm=create_random_name(config.linux_vm_prefix),
        )


def run_sample(
    clients: AzureClients,
    config: SampleConfig,
    admin_password: str | None = None,
    console: Console | None = None,
    names: SampleNames | None = None,
) -> SampleRunResult:
    """Run the provisioning sequence and always clean up.

    Args:
        clients: Management clients for the target subscription
        config: Sample configuration
        admin_password: VM admin password (generated if omitted)
        console: Rich console for VM details
        names: Resource names (randomized if omitted)

    Returns:
        SampleRunResult describing the run

    Raises:
        Exception: Whatever step failed, after teardown has run
    """
    names = names or SampleNames.generate(config)
    password = admin_password or create_password()
    display = VMDisplay(console)
    result = SampleRunResult()
    scope = ResourceGroupScope(ResourceGroupManager(clients.resource))

    with scope:
        # Create a resource group in the configured region
        resource_group = scope.create(names.resource_group, config.region)
        result.resource_group_id = scope.resource_group_id
        rg_name = resource_group.name

        storage = VHDStorage(clients.storage, rg_name, config.region)
        storage.create_storage_account()

        network = NetworkProvisioner(clients.network, rg_name, config.region)
        vnet = network.create_virtual_network(
            names.vnet, config.vnet_address_prefix, config.subnet_name
        )
        subnet = network.get_subnet(vnet, config.subnet_name)
        windows_nic = network.create_network_interface(names.windows_nic, subnet.id)

        provisioner = VMProvisioner(clients.compute, rg_name, config.region, storage)
        operations = VMOperations(clients.compute, rg_name, storage)

        # ============================================================
        # Create a Windows VM

        created = provisioner.create_vm(
            VMSpec(
                name=names.windows_vm,
                vm_size=config.vm_size,
                image=config.windows_image,
                admin_username=config.admin_username,
                admin_password=password,
                nic_id=windows_nic.id,
                os_type="windows",
            )
        )
        windows_vm = created.vm
        result.windows_vm_id = windows_vm.id
        logger.info(f"Created VM: took {created.elapsed_seconds:.1f} seconds")
        display.print_virtual_machine(windows_vm)

        # ============================================================
        # Update - Tag the virtual machine

        windows_vm = operations.add_tags(windows_vm, config.tags)
        logger.info(f"Tagged VM: {windows_vm.id}")

        # ============================================================
        # Update - Attach data disks

        windows_vm = operations.attach_data_disks(
            windows_vm,
            [
                DataDiskSpec(size_gb=config.new_data_disk_size_gb),
                DataDiskSpec(
                    size_gb=config.named_data_disk_size_gb,
                    name=config.named_data_disk_name,
                    caching=config.named_data_disk_caching,
                ),
            ],
        )
        logger.info(
            f"Attached a new data disk {config.named_data_disk_name} to VM {windows_vm.id}"
        )
        display.print_virtual_machine(windows_vm)

        windows_vm = operations.detach_data_disk(windows_vm, config.named_data_disk_name)
        logger.info(
            f"Detached data disk {config.named_data_disk_name} from VM {windows_vm.id}"
        )

        # ============================================================
        # Update - Resize (expand) the data disk
        # First, deallocate the virtual machine and then proceed with resize

        logger.info(f"De-allocating VM: {windows_vm.id}")
        operations.deallocate(windows_vm.name)
        logger.info(f"De-allocated VM: {windows_vm.id}")

        windows_vm = operations.refresh(windows_vm.name)
        first_disk = windows_vm.storage_profile.data_disks[0]
        windows_vm = operations.resize_data_disk(
            windows_vm, first_disk.name, config.resized_data_disk_size_gb
        )
        logger.info(
            f"Resized data disk {first_disk.name} to {config.resized_data_disk_size_gb} GB"
        )

        # ============================================================
        # Update - Expand the OS drive size

        windows_vm, os_disk_size = operations.expand_os_disk(
            windows_vm, config.os_disk_increment_gb, config.os_disk_fallback_gb
        )
        result.os_disk_size_gb = os_disk_size
        logger.info(f"Expanded VM {windows_vm.id}'s OS disk to {os_disk_size}")

        # ============================================================
        # Start, restart and stop (power off) the virtual machine

        logger.info(f"Starting VM {windows_vm.id}")
        operations.start(windows_vm.name)
        state = operations.get_power_state(windows_vm.name)
        logger.info(f"Started VM: {windows_vm.id}; state = {state}")

        logger.info(f"Restarting VM: {windows_vm.id}")
        operations.restart(windows_vm.name)
        state = operations.get_power_state(windows_vm.name)
        logger.info(f"Restarted VM: {windows_vm.id}; state = {state}")

        logger.info(f"Powering OFF VM: {windows_vm.id}")
        operations.power_off(windows_vm.name)
        state = operations.get_power_state(windows_vm.name)
        logger.info(f"Powered OFF VM: {windows_vm.id}; state = {state}")

        # Get the network where the Windows VM is hosted
        primary_network = network.get_primary_network(windows_vm)

        # ============================================================
        # Create a Linux VM in the same virtual network

        logger.info("Creating a Linux VM in the network")
        linux_subnet = network.get_subnet(primary_network, config.subnet_name)
        linux_nic = network.create_network_interface(names.linux_nic, linux_subnet.id)
        created = provisioner.create_vm(
            VMSpec(
                name=names.linux_vm,
                vm_size=config.vm_size,
                image=config.linux_image,
                admin_username=config.admin_username,
                admin_password=password,
                nic_id=linux_nic.id,
                os_type="linux",
            )
        )
        linux_vm = created.vm
        result.linux_vm_id = linux_vm.id
        logger.info(f"Created a Linux VM (in the same virtual network): {linux_vm.id}")
        display.print_virtual_machine(linux_vm)

        # ============================================================
        # List virtual machines in the resource group

        logger.info("Printing list of VMs =======")
        for virtual_machine in operations.list_vms(rg_name):
            result.listed_vm_names.append(virtual_machine.name)
            display.print_virtual_machine(virtual_machine)

        # ============================================================
        # Delete the virtual machine

        logger.info(f"Deleting VM: {windows_vm.id}")
        operations.delete_vm_by_id(windows_vm.id)
        logger.info(f"Deleted VM: {windows_vm.id}")

        result.completed = True

    result.teardown_succeeded = scope.teardown_succeeded
    return result


def main(
    config: SampleConfig | None = None,
    environ: Mapping[str, str] | None = None,
    console: Console | None = None,
) -> SampleRunResult | None:
    """Authenticate from the environment and run the sample.

    Any failure is logged and swallowed, so the caller always gets control
    back; the return value is None when the run did not finish.
    """
    env = os.environ if environ is None else environ
    try:
        clients = CredentialFactory.from_environment(env)
        return run_sample(
            clients,
            config or SampleConfig(),
            admin_password=env.get(ADMIN_PASSWORD_ENV),
            console=console,
        )
    except Exception as e:
        logger.error(LogSanitizer.create_safe_error_message(e, "Sample failed"))
        return None
