"""VM detail display using Rich tables.

Converts VirtualMachine SDK models into plain summaries and prints them.
Only fields that are safe to show are read; the OS profile (which may hold
the admin password on create responses) is never rendered.
"""

import logging
from dataclasses import dataclass, field
from typing import Any

from rich.console import Console
from rich.table import Table

logger = logging.getLogger(__name__)


@dataclass
class DataDiskSummary:
    """One data disk of a VM."""

    lun: int
    name: str
    size_gb: int | None
    caching: str | None
    vhd_uri: str | None


@dataclass
class VMSummary:
    """Display-ready view of a VirtualMachine model."""

    id: str
    name: str
    location: str
    vm_size: str | None = None
    os_type: str | None = None
    image: str | None = None
    os_disk_size_gb: int | None = None
    os_disk_vhd_uri: str | None = None
    data_disks: list[DataDiskSummary] = field(default_factory=list)
    network_interfaces: list[str] = field(default_factory=list)
    tags: dict[str, str] = field(default_factory=dict)
    power_state: str | None = None

    @property
    def resource_group(self) -> str | None:
        """Resource group segment of the VM ID."""
        parts = self.id.split("/")
        lowered = [p.lower() for p in parts]
        if "resourcegroups" in lowered:
            idx = lowered.index("resourcegroups")
            if idx + 1 < len(parts):
                return parts[idx + 1]
        return None


def _enum_value(value: Any) -> str | None:
    """Return the string form of an SDK enum or plain string."""
    if value is None:
        return None
    return getattr(value, "value", value)


def summarize_vm(vm: Any, power_state: str | None = None) -> VMSummary:
    """Build a VMSummary from a VirtualMachine model."""
    storage = vm.storage_profile
    os_disk = storage.os_disk if storage else None
    image_ref = storage.image_reference if storage else None

    image = None
    if image_ref is not None and image_ref.publisher:
        image = f"{image_ref.publisher}:{image_ref.offer}:{image_ref.sku}:{image_ref.version}"

    data_disks = [
        DataDiskSummary(
            lun=disk.lun,
            name=disk.name,
            size_gb=disk.disk_size_gb,
            caching=_enum_value(disk.caching),
            vhd_uri=disk.vhd.uri if disk.vhd else None,
        )
        for disk in ((storage.data_disks or []) if storage else [])
    ]

    nics = []
    if vm.network_profile is not None:
        nics = [ref.id for ref in vm.network_profile.network_interfaces or []]

    return VMSummary(
        id=vm.id,
        name=vm.name,
        location=vm.location,
        vm_size=_enum_value(vm.hardware_profile.vm_size) if vm.hardware_profile else None,
        os_type=_enum_value(os_disk.os_type) if os_disk else None,
        image=image,
        os_disk_size_gb=os_disk.disk_size_gb if os_disk else None,
        os_disk_vhd_uri=os_disk.vhd.uri if os_disk and os_disk.vhd else None,
        data_disks=data_disks,
        network_interfaces=nics,
        tags=dict(vm.tags or {}),
        power_state=power_state,
    )


class VMDisplay:
    """Print VM details to a Rich console."""

    def __init__(self, console: Console | None = None):
        """Initialize display.

        Args:
            console: Optional Rich console (creates new one if None)
        """
        self.console = console or Console()

    def build_table(self, summary: VMSummary) -> Table:
        """Render a summary as a two-column table."""
        table = Table(title=f"Virtual Machine: {summary.name}", show_header=False)
        table.add_column("Property", style="cyan", no_wrap=True)
        table.add_column("Value")

        table.add_row("Id", summary.id)
        table.add_row("Resource group", summary.resource_group or "-")
        table.add_row("Region", summary.location)
        table.add_row("Size", summary.vm_size or "-")
        table.add_row("OS type", summary.os_type or "-")
        table.add_row("Image", summary.image or "-")
        os_disk_size = f"{summary.os_disk_size_gb} GB" if summary.os_disk_size_gb else "-"
        table.add_row("OS disk", f"{os_disk_size} {summary.os_disk_vhd_uri or ''}".strip())

        if summary.data_disks:
            for disk in summary.data_disks:
                size = f"{disk.size_gb} GB" if disk.size_gb else "?"
                table.add_row(
                    f"Data disk (LUN {disk.lun})",
                    f"{disk.name}, {size}, caching={disk.caching or 'None'}, {disk.vhd_uri or '-'}",
                )
        else:
            table.add_row("Data disks", "none")

        table.add_row("Network interfaces", "\n".join(summary.network_interfaces) or "-")
        tags = ", ".join(f"{k}={v}" for k, v in sorted(summary.tags.items()))
        table.add_row("Tags", tags or "-")
        if summary.power_state:
            table.add_row("Power state", summary.power_state)
        return table

    def print_virtual_machine(self, vm: Any, power_state: str | None = None) -> VMSummary:
        """Print one VM and return its summary."""
        summary = summarize_vm(vm, power_state)
        self.console.print(self.build_table(summary))
        return summary
