"""Unit tests for vm_display module."""

from types import SimpleNamespace

from azvhd.vm_display import VMDisplay, summarize_vm

VM_ID = "/subscriptions/s/resourceGroups/rg1/providers/Microsoft.Compute/virtualMachines/vm1"


def make_vm(**overrides):
    values = {
        "id": VM_ID,
        "name": "vm1",
        "location": "eastus",
        "tags": {"who-rocks": "open source"},
        "hardware_profile": SimpleNamespace(vm_size="Standard_D2a_v4"),
        "storage_profile": SimpleNamespace(
            image_reference=SimpleNamespace(
                publisher="Canonical", offer="UbuntuServer", sku="16.04-LTS", version="latest"
            ),
            os_disk=SimpleNamespace(
                os_type=SimpleNamespace(value="Linux"),
                disk_size_gb=30,
                vhd=SimpleNamespace(uri="https://a.blob.core.windows.net/vhds/vm1-osdisk.vhd"),
            ),
            data_disks=[
                SimpleNamespace(
                    lun=0,
                    name="disk1",
                    disk_size_gb=10,
                    caching="ReadWrite",
                    vhd=SimpleNamespace(uri="https://a.blob.core.windows.net/vhds/vm1-disk1.vhd"),
                )
            ],
        ),
        "network_profile": SimpleNamespace(
            network_interfaces=[SimpleNamespace(id="nic-id-1", primary=True)]
        ),
        "os_profile": SimpleNamespace(admin_password="should-not-show"),
    }
    values.update(overrides)
    return SimpleNamespace(**values)


class TestSummarizeVm:
    def test_fields(self):
        summary = summarize_vm(make_vm(), power_state="running")

        assert summary.name == "vm1"
        assert summary.resource_group == "rg1"
        assert summary.vm_size == "Standard_D2a_v4"
        assert summary.os_type == "Linux"
        assert summary.image == "Canonical:UbuntuServer:16.04-LTS:latest"
        assert summary.os_disk_size_gb == 30
        assert summary.data_disks[0].name == "disk1"
        assert summary.data_disks[0].size_gb == 10
        assert summary.network_interfaces == ["nic-id-1"]
        assert summary.tags == {"who-rocks": "open source"}
        assert summary.power_state == "running"

    def test_sparse_vm(self):
        vm = make_vm(tags=None, network_profile=None, hardware_profile=None, storage_profile=None)

        summary = summarize_vm(vm)

        assert summary.tags == {}
        assert summary.network_interfaces == []
        assert summary.data_disks == []
        assert summary.vm_size is None
        assert summary.image is None


class TestVMDisplay:
    def test_print_virtual_machine(self, recording_console):
        display = VMDisplay(recording_console)

        display.print_virtual_machine(make_vm())

        output = recording_console.file.getvalue()
        assert "Virtual Machine: vm1" in output
        assert VM_ID in output
        assert "16.04-LTS" in output
        assert "disk1" in output
        assert "who-rocks=open source" in output
        assert "should-not-show" not in output

    def test_no_data_disks(self, recording_console):
        vm = make_vm()
        vm.storage_profile.data_disks = []

        VMDisplay(recording_console).print_virtual_machine(vm)

        assert "none" in recording_console.file.getvalue()
