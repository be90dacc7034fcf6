"""Status command for Node ISP."""

import click
from tabulate import tabulate

from ...core.labels import group_filter
from ...core.service_manager import build_status
from ...services.exceptions import DockerServiceError
from ..helpers import get_config, get_docker_service, get_state


def _style_status(status: str) -> str:
    if status == 'running':
        return click.style(status.upper(), fg='green')
    elif status == 'exited':
        return click.style(status.upper(), fg='yellow')
    return click.style(status.upper(), fg='red')


@click.command()
@click.pass_context
def status(ctx):
    """Show the status of every managed service"""
    config = get_config(ctx)
    state = get_state(config)
    docker_service = get_docker_service()

    try:
        containers = docker_service.list_containers(group_filter())
    except DockerServiceError as e:
        click.echo(f"Error: Could not list Docker containers: {e}", err=True)
        ctx.exit(1)

    rows = []
    for row in build_status(state.services, containers):
        started = row.started.strftime('%Y-%m-%d %H:%M:%S') if row.started else '-'
        rows.append([row.name.upper(), row.container or '-', row.image, _style_status(row.status), started])

    click.echo("Node ISP Server Status")
    click.echo(tabulate(rows, headers=["SERVICE", "CONTAINER", "IMAGE", "STATUS", "STARTED"], tablefmt="simple"))
