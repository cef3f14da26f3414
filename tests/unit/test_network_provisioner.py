"""Unit tests for network_provisioner module."""

from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from azvhd.network_provisioner import NetworkError, NetworkProvisioner


@pytest.fixture
def provisioner(fake_azure):
    return NetworkProvisioner(fake_azure.network, "rg1", "eastus")


class TestCreateVirtualNetwork:
    def test_single_subnet_covers_address_space(self, provisioner, fake_azure):
        network = provisioner.create_virtual_network("vnet1", "10.0.0.0/28", "subnet1")

        assert network.address_space.address_prefixes == ["10.0.0.0/28"]
        assert [s.name for s in network.subnets] == ["subnet1"]
        assert network.subnets[0].address_prefix == "10.0.0.0/28"
        assert "vnet1" in fake_azure.virtual_networks

    def test_custom_subnet_prefix(self, provisioner):
        network = provisioner.create_virtual_network(
            "vnet1", "10.0.0.0/16", "subnet1", subnet_prefix="10.0.1.0/24"
        )

        assert network.subnets[0].address_prefix == "10.0.1.0/24"

    def test_failure_wrapped(self):
        client = MagicMock()
        client.virtual_networks.begin_create_or_update.side_effect = RuntimeError("conflict")

        with pytest.raises(NetworkError, match="Failed to create virtual network vnet1"):
            NetworkProvisioner(client, "rg1", "eastus").create_virtual_network(
                "vnet1", "10.0.0.0/28", "subnet1"
            )


class TestCreateNetworkInterface:
    def test_private_dynamic_ip_only(self):
        client = MagicMock()

        NetworkProvisioner(client, "rg1", "eastus").create_network_interface("nic1", "subnet-id")

        args = client.network_interfaces.begin_create_or_update.call_args[0]
        assert args[:2] == ("rg1", "nic1")
        parameters = args[2]
        assert parameters["location"] == "eastus"
        (ip_config,) = parameters["ip_configurations"]
        assert ip_config["subnet"] == {"id": "subnet-id"}
        assert ip_config["private_ip_allocation_method"] == "Dynamic"
        assert ip_config["primary"] is True
        assert "public_ip_address" not in ip_config

    def test_failure_wrapped(self):
        client = MagicMock()
        client.network_interfaces.begin_create_or_update.return_value.result.side_effect = (
            RuntimeError("subnet full")
        )

        with pytest.raises(NetworkError, match="nic1"):
            NetworkProvisioner(client, "rg1", "eastus").create_network_interface("nic1", "s")


class TestGetSubnet:
    def test_found(self, provisioner):
        network = provisioner.create_virtual_network("vnet1", "10.0.0.0/28", "subnet1")

        assert NetworkProvisioner.get_subnet(network, "subnet1").name == "subnet1"

    def test_missing(self, provisioner):
        network = provisioner.create_virtual_network("vnet1", "10.0.0.0/28", "subnet1")

        with pytest.raises(NetworkError, match="Subnet other not found"):
            NetworkProvisioner.get_subnet(network, "other")


class TestGetPrimaryNetwork:
    """Tests for resolving a VM's network through its primary NIC."""

    def test_resolves_through_primary_nic(self, provisioner, fake_azure):
        network = provisioner.create_virtual_network("vnet1", "10.0.0.0/28", "subnet1")
        nic = provisioner.create_network_interface("nic1", network.subnets[0].id)
        vm = SimpleNamespace(
            name="vm1",
            network_profile=SimpleNamespace(
                network_interfaces=[SimpleNamespace(id=nic.id, primary=True)]
            ),
        )

        resolved = provisioner.get_primary_network(vm)

        assert resolved.id == network.id
        assert ("network_interfaces.get", "nic1") in fake_azure.calls
        assert ("virtual_networks.get", "vnet1") in fake_azure.calls

    def test_prefers_primary_nic(self, provisioner):
        first = provisioner.create_virtual_network("vnetA", "10.0.0.0/28", "subnet1")
        second = provisioner.create_virtual_network("vnetB", "10.1.0.0/28", "subnet1")
        nic_a = provisioner.create_network_interface("nicA", first.subnets[0].id)
        nic_b = provisioner.create_network_interface("nicB", second.subnets[0].id)
        vm = SimpleNamespace(
            name="vm1",
            network_profile=SimpleNamespace(
                network_interfaces=[
                    SimpleNamespace(id=nic_a.id, primary=False),
                    SimpleNamespace(id=nic_b.id, primary=True),
                ]
            ),
        )

        assert provisioner.get_primary_network(vm).name == "vnetB"

    def test_vm_without_nics(self, provisioner):
        vm = SimpleNamespace(name="vm1", network_profile=SimpleNamespace(network_interfaces=[]))

        with pytest.raises(NetworkError, match="no network interfaces"):
            provisioner.get_primary_network(vm)

    def test_lookup_failure_wrapped(self):
        client = MagicMock()
        client.network_interfaces.get.side_effect = RuntimeError("not found")
        nic_id = "/subscriptions/s/resourceGroups/rg1/providers/Microsoft.Network/networkInterfaces/nic1"
        vm = SimpleNamespace(
            name="vm1",
            network_profile=SimpleNamespace(
                network_interfaces=[SimpleNamespace(id=nic_id, primary=True)]
            ),
        )

        with pytest.raises(NetworkError, match="Failed to resolve network of VM vm1"):
            NetworkProvisioner(client, "rg1", "eastus").get_primary_network(vm)
