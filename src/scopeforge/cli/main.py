"""ScopeForge CLI entry point."""

import click

from scopeforge.config import ScopeforgeConfig


@click.group()
@click.pass_context
def cli(ctx: click.Context):
    """ScopeForge — scope expressions over model fields."""
    config = ScopeforgeConfig.from_env()
    config.configure_logging()
    ctx.obj = config


# Register subcommand groups
from scopeforge.cli.metadata_cmd import metadata  # noqa: E402
from scopeforge.cli.scope_cmd import scope  # noqa: E402

cli.add_command(metadata)
cli.add_command(scope)
