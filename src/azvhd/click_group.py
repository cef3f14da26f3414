"""Custom Click group with automatic help display on errors.

This module provides a custom Click Group class that automatically
displays contextual help when syntax errors occur.
"""

import sys
from typing import Any

import click


class AzvhdGroup(click.Group):
    """Custom Click group that auto-displays help on usage errors."""

    def main(self, *args: Any, **kwargs: Any) -> Any:
        """Override main to auto-display help on errors."""
        try:
            return super().main(*args, **kwargs)
        except (
            click.exceptions.UsageError,
            click.exceptions.BadParameter,
            click.exceptions.MissingParameter,
        ) as e:
            click.echo(f"Error: {e.format_message()}", err=True)

            ctx = e.ctx if hasattr(e, "ctx") and e.ctx else None
            if ctx:
                click.echo("")
                click.echo(ctx.get_help())
                # ctx.exit() keeps Click's testing mode working
                ctx.exit(e.exit_code if hasattr(e, "exit_code") else 1)
                return None
            sys.exit(e.exit_code if hasattr(e, "exit_code") else 1)
            return None

    def invoke(self, ctx: click.Context) -> Any:
        """Handle usage errors raised by subcommands with auto-help."""
        try:
            return super().invoke(ctx)
        except (
            click.exceptions.UsageError,
            click.exceptions.BadParameter,
            click.exceptions.MissingParameter,
        ) as e:
            click.echo(f"Error: {e.format_message()}", err=True)

            # Most specific context for help (the subcommand context if available)
            error_ctx = e.ctx if hasattr(e, "ctx") and e.ctx else ctx
            click.echo("")
            click.echo(error_ctx.get_help())
            error_ctx.exit(e.exit_code if hasattr(e, "exit_code") else 1)
            return None

    def resolve_command(
        self, ctx: click.Context, args: list[str]
    ) -> tuple[str | None, click.Command | None, list[str]]:
        """Override to show help when command is not found."""
        try:
            return super().resolve_command(ctx, args)
        except click.UsageError as e:
            # Parameter errors are handled by invoke()
            if isinstance(e, click.exceptions.MissingParameter | click.exceptions.BadParameter):
                raise
            click.echo(f"Error: {e.format_message()}", err=True)
            click.echo("")
            click.echo(ctx.get_help())
            ctx.exit(1)
            return None, None, []


# Subgroups created with @main.group() also use AzvhdGroup
AzvhdGroup.group_class = AzvhdGroup
