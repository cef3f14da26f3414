"""Pytest configuration and fixtures for azvhd tests.

CRITICAL: Protects the user's configuration from test modifications.
"""

import os
import shutil
from pathlib import Path

import pytest


@pytest.fixture(scope="session", autouse=True)
def protect_production_config():
    """Protect ~/.azvhd/config.toml from being modified by tests.

    This fixture:
    1. Backs up the real config.toml before any tests run
    2. Restores it after all tests complete
    """
    config_path = Path.home() / ".azvhd" / "config.toml"
    backup_path = Path.home() / ".azvhd" / ".config.toml.pytest-backup"

    config_existed = config_path.exists()
    if config_existed:
        shutil.copy2(config_path, backup_path)
        print(f"\n[PYTEST] Protected config.toml - backup at {backup_path}")

    yield

    if config_existed and backup_path.exists():
        shutil.copy2(backup_path, config_path)
        backup_path.unlink()
        print("\n[PYTEST] Restored config.toml from backup")
    elif backup_path.exists():
        backup_path.unlink()


@pytest.fixture(scope="session", autouse=True)
def prevent_real_azure_operations():
    """Mark test mode and drop real credentials from the environment.

    AZVHD_TEST_MODE makes ConfigManager.save_config refuse to write
    ~/.azvhd/config.toml. Nothing under tests/ may reach Azure: the sample reads its service
    principal from the environment, so those variables are removed for the
    whole session.
    """
    os.environ["AZVHD_TEST_MODE"] = "true"

    saved = {}
    for name in (
        "CLIENT_ID",
        "CLIENT_SECRET",
        "TENANT_ID",
        "SUBSCRIPTION_ID",
        "AZURE_CLIENT_ID",
        "AZURE_CLIENT_SECRET",
        "AZURE_TENANT_ID",
        "AZURE_SUBSCRIPTION_ID",
        "AZVHD_CONFIG",
    ):
        if name in os.environ:
            saved[name] = os.environ.pop(name)

    yield

    os.environ.update(saved)
    if "AZVHD_TEST_MODE" in os.environ:
        del os.environ["AZVHD_TEST_MODE"]


@pytest.fixture
def isolated_config(tmp_path):
    """Provide an isolated config directory for tests.

    Use this fixture instead of touching ~/.azvhd/config.toml.

    Example:
        def test_something(isolated_config):
            config_path = isolated_config / "config.toml"
            # Safe to modify - it's in tmp_path
    """
    config_dir = tmp_path / ".azvhd"
    config_dir.mkdir(parents=True)
    return config_dir


@pytest.fixture
def mock_config_path(isolated_config, monkeypatch):
    """Point ConfigManager's default file at the isolated directory.

    Example:
        def test_something(mock_config_path):
            ConfigManager.save_config(config)  # Safe!
    """
    config_file = isolated_config / "config.toml"

    from azvhd.config_manager import ConfigManager

    monkeypatch.setattr(ConfigManager, "DEFAULT_CONFIG_FILE", config_file)

    return config_file
