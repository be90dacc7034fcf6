"""Main CLI entry point for Node ISP."""

from pathlib import Path

import click

from .. import __version__
from ..core.constants import CONFIG_ENV_VAR, DEFAULT_CONFIG_PATH
from .commands.exec import exec_command
from .commands.logs import logs
from .commands.server import server
from .commands.status import status


@click.group()
@click.option('--config', '-c', 'config_path', envvar=CONFIG_ENV_VAR, default=DEFAULT_CONFIG_PATH,
              show_default=True, type=click.Path(dir_okay=False, path_type=Path),
              help='Load configuration from FILE')
@click.option('--verbose', '-v', is_flag=True, help='Enable debug logging')
@click.version_option(__version__, prog_name='node-isp')
@click.pass_context
def cli(ctx, config_path, verbose):
    """Node ISP - Building blocks for your own ISP"""
    ctx.ensure_object(dict)
    ctx.obj['config_path'] = config_path
    ctx.obj['verbose'] = verbose


# Register commands
cli.add_command(server)
cli.add_command(status)
cli.add_command(exec_command)
cli.add_command(logs)


if __name__ == '__main__':
    cli()
