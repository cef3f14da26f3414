"""Configuration management module.

This module handles the sample's settings: region, VM size, images, disk
sizes and tags. Settings live in an optional TOML file; every value has a
default so the sample runs without one.

Lookup order for the file:
1. Explicit path (CLI --config)
2. AZVHD_CONFIG environment variable
3. ~/.azvhd/config.toml

Security:
- Config file permissions: 0600 (owner read/write only)
- No passwords or secrets are ever read from or written to the file
"""

import logging
import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

try:
    import tomli  # type: ignore[import]
except ImportError:
    # Fallback to the standard library parser (same API)
    try:
        import tomllib as tomli  # type: ignore[import]
    except ImportError as e:
        raise ImportError("toml library not available. Install with: pip install tomli") from e

try:
    import tomlkit
except ImportError as e:
    raise ImportError("tomlkit library not available. Install with: pip install tomlkit") from e

from azvhd.tag_manager import TagManager, TagManagerError

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "AZVHD_CONFIG"

CACHING_TYPES = ("None", "ReadOnly", "ReadWrite")


class ConfigError(Exception):
    """Raised when configuration operations fail."""

    pass


@dataclass(frozen=True)
class ImageReference:
    """Marketplace image reference."""

    publisher: str
    offer: str
    sku: str
    version: str = "latest"

    def to_dict(self) -> dict[str, str]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ImageReference":
        try:
            return cls(
                publisher=str(data["publisher"]),
                offer=str(data["offer"]),
                sku=str(data["sku"]),
                version=str(data.get("version", "latest")),
            )
        except KeyError as e:
            raise ConfigError(f"Image reference missing field: {e.args[0]}") from e


WINDOWS_SERVER_2012_R2_DATACENTER = ImageReference(
    publisher="MicrosoftWindowsServer",
    offer="WindowsServer",
    sku="2012-R2-Datacenter",
)
UBUNTU_SERVER_16_04_LTS = ImageReference(
    publisher="Canonical",
    offer="UbuntuServer",
    sku="16.04-LTS",
)


def _default_tags() -> dict[str, str]:
    return {"who-rocks": "open source", "where": "on azure"}


@dataclass
class SampleConfig:
    """Sample configuration data."""

    region: str = "eastus"
    vm_size: str = "Standard_D2a_v4"
    admin_username: str = "tirekicker"
    resource_group_prefix: str = "ComputeSampleRG"
    vnet_prefix: str = "vnet"
    nic_prefix: str = "nic"
    windows_vm_prefix: str = "windowsVM"
    linux_vm_prefix: str = "linuxVM"
    vnet_address_prefix: str = "10.0.0.0/28"
    subnet_name: str = "subnet1"
    windows_image: ImageReference = WINDOWS_SERVER_2012_R2_DATACENTER
    linux_image: ImageReference = UBUNTU_SERVER_16_04_LTS
    tags: dict[str, str] = field(default_factory=_default_tags)
    new_data_disk_size_gb: int = 10
    named_data_disk_name: str = "disk2"
    named_data_disk_size_gb: int = 20
    named_data_disk_caching: str = "ReadWrite"
    resized_data_disk_size_gb: int = 30
    os_disk_increment_gb: int = 10
    os_disk_fallback_gb: int = 256

    INT_FIELDS = (
        "new_data_disk_size_gb",
        "named_data_disk_size_gb",
        "resized_data_disk_size_gb",
        "os_disk_increment_gb",
        "os_disk_fallback_gb",
    )
    STR_FIELDS = (
        "region",
        "vm_size",
        "admin_username",
        "resource_group_prefix",
        "vnet_prefix",
        "nic_prefix",
        "windows_vm_prefix",
        "linux_vm_prefix",
        "vnet_address_prefix",
        "subnet_name",
        "named_data_disk_name",
        "named_data_disk_caching",
    )

    def __post_init__(self):
        for name in self.INT_FIELDS:
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value < 1:
                raise ConfigError(f"{name} must be a positive integer, got: {value!r}")
        if self.named_data_disk_caching not in CACHING_TYPES:
            raise ConfigError(
                f"named_data_disk_caching must be one of {', '.join(CACHING_TYPES)}, "
                f"got: {self.named_data_disk_caching!r}"
            )
        try:
            TagManager.merge_tags(None, self.tags)
        except TagManagerError as e:
            raise ConfigError(f"Invalid tags: {e}") from e

    def to_dict(self) -> dict[str, Any]:
        """Convert to a TOML-ready dictionary (images and tags as tables)."""
        data: dict[str, Any] = {name: getattr(self, name) for name in self.STR_FIELDS}
        data.update({name: getattr(self, name) for name in self.INT_FIELDS})
        data["images"] = {
            "windows": self.windows_image.to_dict(),
            "linux": self.linux_image.to_dict(),
        }
        data["tags"] = dict(self.tags)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SampleConfig":
        """Create from dictionary. Unknown keys are ignored."""
        kwargs: dict[str, Any] = {}
        for name in cls.STR_FIELDS:
            if name in data:
                if not isinstance(data[name], str):
                    raise ConfigError(f"{name} must be a string, got: {data[name]!r}")
                kwargs[name] = data[name]
        for name in cls.INT_FIELDS:
            if name in data:
                kwargs[name] = data[name]

        images = data.get("images", {})
        if "windows" in images:
            kwargs["windows_image"] = ImageReference.from_dict(images["windows"])
        if "linux" in images:
            kwargs["linux_image"] = ImageReference.from_dict(images["linux"])

        if "tags" in data:
            tags = data["tags"]
            if not isinstance(tags, dict):
                raise ConfigError("tags must be a table of key = value pairs")
            kwargs["tags"] = {str(k): str(v) for k, v in tags.items()}

        return cls(**kwargs)


class ConfigManager:
    """Manage the azvhd configuration file.

    Configuration is stored at ~/.azvhd/config.toml with secure permissions.
    """

    DEFAULT_CONFIG_DIR = Path.home() / ".azvhd"
    DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.toml"

    @classmethod
    def get_config_path(cls, custom_path: str | None = None) -> Path:
        """Get configuration file path.

        Args:
            custom_path: Custom config file path (optional)

        Returns:
            Path to config file (may not exist)
        """
        if custom_path:
            return Path(custom_path).expanduser().resolve()

        env_path = os.environ.get(CONFIG_ENV_VAR)
        if env_path:
            return Path(env_path).expanduser().resolve()

        return cls.DEFAULT_CONFIG_FILE

    @classmethod
    def load_config(cls, custom_path: str | None = None) -> SampleConfig:
        """Load configuration from file.

        Args:
            custom_path: Custom config file path (optional)

        Returns:
            SampleConfig object (defaults when the file does not exist)

        Raises:
            ConfigError: If a file named by --config or AZVHD_CONFIG is
                missing, or loading fails
        """
        config_path = cls.get_config_path(custom_path)

        if not config_path.exists():
            if custom_path or os.environ.get(CONFIG_ENV_VAR):
                raise ConfigError(f"Config file not found: {config_path}")
            logger.debug("Config file not found, using defaults")
            return SampleConfig()

        try:
            mode = config_path.stat().st_mode & 0o777
            if mode & 0o077:  # group/other have permissions
                logger.warning(
                    f"Config file has insecure permissions: {oct(mode)}. Fixing to 0600..."
                )
                os.chmod(config_path, 0o600)

            with open(config_path, "rb") as f:
                data = tomli.load(f)  # type: ignore[attr-defined]

            logger.debug(f"Loaded config from: {config_path}")
            return SampleConfig.from_dict(data)  # type: ignore[arg-type]

        except ConfigError:
            raise
        except Exception as e:
            raise ConfigError(f"Failed to load config: {e}") from e

    @classmethod
    def save_config(cls, config: SampleConfig, custom_path: str | None = None) -> Path:
        """Save configuration to file.

        Args:
            config: Configuration to save
            custom_path: Custom config file path (optional)

        Returns:
            Path written

        Raises:
            ConfigError: If saving fails, or tests target the user's real file
        """
        config_path = cls.get_config_path(custom_path)

        # CRITICAL: Prevent tests from modifying the user's config
        if (
            os.getenv("AZVHD_TEST_MODE") == "true"
            and config_path == Path.home() / ".azvhd" / "config.toml"
        ):
            raise ConfigError(
                "Cannot save to the user config during tests. "
                "Tests must pass a tmp_path config file."
            )

        temp_path = config_path.with_suffix(".tmp")
        try:
            config_path.parent.mkdir(parents=True, exist_ok=True)

            # Preserve comments and formatting of an existing file
            if config_path.exists():
                with open(config_path) as f:
                    doc = tomlkit.load(f)
            else:
                doc = tomlkit.document()
            for key, value in config.to_dict().items():
                doc[key] = value

            with open(temp_path, "w") as f:
                tomlkit.dump(doc, f)

            os.chmod(temp_path, 0o600)
            temp_path.replace(config_path)

            logger.debug(f"Saved config to: {config_path}")
            return config_path

        except Exception as e:
            if temp_path.exists():
                temp_path.unlink()
            raise ConfigError(f"Failed to save config: {e}") from e

    @classmethod
    def resolve(
        cls,
        custom_path: str | None = None,
        region: str | None = None,
        vm_size: str | None = None,
        extra_tags: dict[str, str] | None = None,
    ) -> SampleConfig:
        """Load configuration and apply command-line overrides.

        CLI values take precedence over file values; extra tags are merged
        over the configured tags.

        Raises:
            ConfigError: If loading fails or the merged tags are invalid
        """
        config = cls.load_config(custom_path)
        if region:
            config.region = region
        if vm_size:
            config.vm_size = vm_size
        if extra_tags:
            try:
                config.tags = TagManager.merge_tags(config.tags, extra_tags)
            except TagManagerError as e:
                raise ConfigError(f"Invalid tags: {e}") from e
        return config
