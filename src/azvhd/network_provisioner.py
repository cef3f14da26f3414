"""Virtual network and network interface provisioning.

VMs in the sample get a private, dynamically assigned address only; no
public IP is created.
"""

import logging
from typing import Any

from azure.mgmt.core.tools import parse_resource_id

from azvhd.log_sanitizer import LogSanitizer

logger = logging.getLogger(__name__)


class NetworkError(Exception):
    """Raised when network operations fail."""

    pass


class NetworkProvisioner:
    """Create and look up networking resources through NetworkManagementClient."""

    def __init__(self, network_client: Any, resource_group: str, location: str):
        """Initialize provisioner.

        Args:
            network_client: azure.mgmt.network.NetworkManagementClient
            resource_group: Resource group the resources live in
            location: Azure region
        """
        self.network_client = network_client
        self.resource_group = resource_group
        self.location = location

    def create_virtual_network(
        self, name: str, address_prefix: str, subnet_name: str, subnet_prefix: str | None = None
    ) -> Any:
        """Create a virtual network with a single subnet.

        Args:
            name: Virtual network name
            address_prefix: Address space (e.g. "10.0.0.0/28")
            subnet_name: Name of the subnet
            subnet_prefix: Subnet range (defaults to the whole address space)

        Returns:
            VirtualNetwork model

        Raises:
            NetworkError: If creation fails
        """
        parameters = {
            "location": self.location,
            "address_space": {"address_prefixes": [address_prefix]},
            "subnets": [{"name": subnet_name, "address_prefix": subnet_prefix or address_prefix}],
        }

        logger.info(f"Creating virtual network {name} ({address_prefix})")
        try:
            network = self.network_client.virtual_networks.begin_create_or_update(
                self.resource_group, name, parameters
            ).result()
        except Exception as e:
            raise NetworkError(
                LogSanitizer.create_safe_error_message(e, f"Failed to create virtual network {name}")
            ) from e

        logger.info(f"Created virtual network: {network.id}")
        return network

    def create_network_interface(self, name: str, subnet_id: str) -> Any:
        """Create a NIC with a dynamic private IP and no public IP.

        Args:
            name: NIC name
            subnet_id: Resource ID of the subnet to bind to

        Returns:
            NetworkInterface model

        Raises:
            NetworkError: If creation fails
        """
        parameters = {
            "location": self.location,
            "ip_configurations": [
                {
                    "name": "primary",
                    "primary": True,
                    "subnet": {"id": subnet_id},
                    "private_ip_allocation_method": "Dynamic",
                }
            ],
        }

        logger.info(f"Creating network interface {name}")
        try:
            nic = self.network_client.network_interfaces.begin_create_or_update(
                self.resource_group, name, parameters
            ).result()
        except Exception as e:
            raise NetworkError(
                LogSanitizer.create_safe_error_message(
                    e, f"Failed to create network interface {name}"
                )
            ) from e

        logger.info(f"Created network interface: {nic.id}")
        return nic

    @staticmethod
    def get_subnet(network: Any, subnet_name: str) -> Any:
        """Find a subnet of a virtual network by name.

        Raises:
            NetworkError: If the subnet does not exist
        """
        for subnet in network.subnets or []:
            if subnet.name == subnet_name:
                return subnet
        raise NetworkError(f"Subnet {subnet_name} not found in virtual network {network.name}")

    def get_primary_network(self, vm: Any) -> Any:
        """Resolve the virtual network a VM's primary NIC is attached to.

        Follows VM -> primary NIC -> primary IP configuration -> subnet ->
        virtual network.

        Args:
            vm: VirtualMachine model

        Returns:
            VirtualNetwork model

        Raises:
            NetworkError: If any link of the chain is missing
        """
        nic_refs = list(vm.network_profile.network_interfaces or []) if vm.network_profile else []
        if not nic_refs:
            raise NetworkError(f"VM {vm.name} has no network interfaces")

        primary_ref = next((ref for ref in nic_refs if ref.primary), nic_refs[0])
        nic_parts = parse_resource_id(primary_ref.id)

        try:
            nic = self.network_client.network_interfaces.get(
                nic_parts["resource_group"], nic_parts["name"]
            )
            ip_configs = list(nic.ip_configurations or [])
            if not ip_configs:
                raise NetworkError(f"Network interface {nic.name} has no IP configurations")
            ip_config = next((c for c in ip_configs if c.primary), ip_configs[0])

            subnet_parts = parse_resource_id(ip_config.subnet.id)
            network = self.network_client.virtual_networks.get(
                subnet_parts["resource_group"], subnet_parts["name"]
            )
        except NetworkError:
            raise
        except Exception as e:
            raise NetworkError(
                LogSanitizer.create_safe_error_message(
                    e, f"Failed to resolve network of VM {vm.name}"
                )
            ) from e

        logger.debug(f"VM {vm.name} is attached to virtual network {network.id}")
        return network
