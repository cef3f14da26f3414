"""azvhd - Azure VM lifecycle sample with unmanaged (VHD) disks

Philosophy:
- Ruthless simplicity: one call at a time, each awaited before the next
- Brick architecture (self-contained modules)
- No credentials in code or logs
- Always clean up: the resource group goes away on every exit path

The azvhd sample creates a resource group, a virtual network, a Windows VM
and a Linux VM backed by VHD blobs, mutates the Windows VM (tags, data
disks, OS disk, power state), lists the VMs and deletes everything again.
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
