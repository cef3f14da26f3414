"""
Shared test fixtures for azvhd tests.

This module provides common fixtures used across the unit tests:
- In-memory Azure management clients (FakeAzure)
- Service principal environments
- Sample configurations and fixed resource names
- Recording Rich consoles
"""

from io import StringIO

import pytest
from rich.console import Console

from tests.mocks.azure_mock import CLIENT_ID, CLIENT_SECRET, SUBSCRIPTION_ID, TENANT_ID, FakeAzure

# ============================================================================
# AZURE FIXTURES
# ============================================================================


@pytest.fixture
def fake_azure():
    """In-memory stand-in for the four management clients."""
    return FakeAzure()


@pytest.fixture
def fake_clients(fake_azure):
    """AzureClients bundle backed by fake_azure."""
    return fake_azure.clients()


@pytest.fixture
def sp_environ():
    """Complete service principal environment using the sample's variable names."""
    return {
        "CLIENT_ID": CLIENT_ID,
        "CLIENT_SECRET": CLIENT_SECRET,
        "TENANT_ID": TENANT_ID,
        "SUBSCRIPTION_ID": SUBSCRIPTION_ID,
    }


# ============================================================================
# SAMPLE FIXTURES
# ============================================================================


@pytest.fixture
def sample_config():
    """Default sample configuration."""
    from azvhd.config_manager import SampleConfig

    return SampleConfig()


@pytest.fixture
def sample_names():
    """Deterministic resource names for scenario tests."""
    from azvhd.sample_runner import SampleNames

    return SampleNames(
        resource_group="ComputeSampleRG12345",
        vnet="vnet12345",
        windows_nic="nic11111",
        linux_nic="nic22222",
        windows_vm="windowsVM12345",
        linux_vm="linuxVM12345",
    )


@pytest.fixture
def recording_console():
    """Rich console that writes to a buffer instead of the terminal."""
    return Console(file=StringIO(), width=200, force_terminal=False, color_system=None)
