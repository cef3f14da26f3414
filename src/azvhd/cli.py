"""azvhd command-line interface.

Commands:
    run            Run the VM lifecycle sample end to end
    config show    Print the effective configuration
    config init    Write a default configuration file
"""

import logging
import sys

import click
from rich.console import Console

from azvhd import __version__
from azvhd.click_group import AzvhdGroup
from azvhd.config_manager import ConfigError, ConfigManager, SampleConfig
from azvhd.sample_runner import main as run_main
from azvhd.tag_manager import TagManager, TagManagerError

logger = logging.getLogger(__name__)

# Azure SDK loggers are chatty at INFO (every HTTP request)
QUIET_LOGGERS = ("azure", "azure.core.pipeline.policies.http_logging_policy", "azure.identity", "urllib3")


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(level=logging.DEBUG if verbose else logging.INFO, format="%(message)s")
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


@click.group(cls=AzvhdGroup, invoke_without_command=True)
@click.version_option(version=__version__)
@click.pass_context
def main(ctx: click.Context) -> None:
    """azvhd - Azure VM lifecycle sample with unmanaged disks.

    Creates a resource group with a Windows and a Linux VM whose disks are
    VHD blobs, exercises updates and power operations on the Windows VM,
    and deletes the resource group again.

    \b
    AUTHENTICATION (environment variables):
        CLIENT_ID, CLIENT_SECRET, TENANT_ID, SUBSCRIPTION_ID
        (AZURE_CLIENT_ID etc. are accepted as fallbacks)

    \b
    EXAMPLES:
        $ azvhd run
        $ azvhd run --region westus2 --tag owner=me
        $ azvhd config init
        $ azvhd config show

    \b
    CONFIGURATION:
        Config file: ~/.azvhd/config.toml (or AZVHD_CONFIG)
    """
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())
        ctx.exit(0)


@main.command(name="run")
@click.option("--region", help="Azure region (default from config: eastus)")
@click.option("--vm-size", help="VM size for both VMs (default from config: Standard_D2a_v4)")
@click.option("--config", "config_path", help="Config file path", type=click.Path())
@click.option("--tag", "tags", multiple=True, help="Extra tag for the Windows VM (key=value)")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def run_command(
    region: str | None,
    vm_size: str | None,
    config_path: str | None,
    tags: tuple[str, ...],
    verbose: bool,
) -> None:
    """Run the VM lifecycle sample.

    The resource group created by the run is always deleted at the end.
    Failures are logged; the command exits 0 once the run has started.

    \b
    Examples:
      $ azvhd run
      $ azvhd run --vm-size Standard_D4a_v4 --tag team=infra
    """
    _setup_logging(verbose)

    try:
        extra_tags = TagManager.parse_tag_assignments(tags)
        config = ConfigManager.resolve(config_path, region=region, vm_size=vm_size, extra_tags=extra_tags)
    except (ConfigError, TagManagerError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    result = run_main(config, console=Console())
    if result is not None and result.completed:
        click.echo("Sample completed.")
    else:
        click.echo("Sample did not complete; see log output above.", err=True)


@main.group(name="config")
def config_group() -> None:
    """Show or initialize the configuration file."""
    pass


@config_group.command(name="show")
@click.option("--config", "config_path", help="Config file path", type=click.Path())
def config_show(config_path: str | None) -> None:
    """Print the effective configuration."""
    try:
        config = ConfigManager.load_config(config_path)
    except ConfigError as e:
        click.echo(f"Configuration error: {e}", err=True)
        sys.exit(1)

    click.echo(f"Config file: {ConfigManager.get_config_path(config_path)}")
    for key, value in config.to_dict().items():
        if isinstance(value, dict):
            click.echo(f"{key}:")
            for sub_key, sub_value in value.items():
                click.echo(f"  {sub_key} = {sub_value}")
        else:
            click.echo(f"{key} = {value}")


@config_group.command(name="init")
@click.option("--config", "config_path", help="Config file path", type=click.Path())
@click.option("--force", is_flag=True, help="Overwrite an existing file")
def config_init(config_path: str | None, force: bool) -> None:
    """Write a configuration file with default values."""
    path = ConfigManager.get_config_path(config_path)
    if path.exists() and not force:
        click.echo(f"Error: {path} already exists. Use --force to overwrite.", err=True)
        sys.exit(1)

    if path.exists():
        path.unlink()

    try:
        written = ConfigManager.save_config(SampleConfig(), config_path)
    except ConfigError as e:
        click.echo(f"Configuration error: {e}", err=True)
        sys.exit(1)

    click.echo(f"Wrote default configuration to {written}")


if __name__ == "__main__":
    main()
