"""Exec command for Node ISP."""

import sys

import click

from ...core.command_executor import CommandExecutor
from ...core.log_streamer import StreamStatus
from ...services.exceptions import DockerServiceError
from ..helpers import get_config, get_docker_service, get_state


@click.command(name='exec', context_settings={'ignore_unknown_options': True})
@click.option('--timeout', '-t', default=300, show_default=True, help='Seconds to wait for output')
@click.argument('service')
@click.argument('command', nargs=-1, required=True, type=click.UNPROCESSED)
@click.pass_context
def exec_command(ctx, timeout, service, command):
    """Run a one-off command inside a service's container"""
    config = get_config(ctx)
    state = get_state(config)

    descriptor = state.services.get(service)
    if descriptor is None:
        click.echo(f"Error: Unknown service '{service}'. Known services: "
                   f"{', '.join(sorted(state.services))}", err=True)
        sys.exit(1)

    executor = CommandExecutor(get_docker_service())
    try:
        execution = executor.run(service, descriptor.runtime_name, list(command))
    except DockerServiceError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    if not execution.wait(timeout):
        click.echo(f"Error: Command did not finish within {timeout}s", err=True)
        sys.exit(1)

    for line in execution.lines:
        click.echo(line)

    if execution.status is StreamStatus.FAILED:
        click.echo(f"Error: Failed to read output: {execution.error}", err=True)
        sys.exit(1)
