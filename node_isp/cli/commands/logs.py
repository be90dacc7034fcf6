"""Logs command for Node ISP."""

import sys
from collections import deque

import click

from ..helpers import get_config, log_dir


@click.command()
@click.argument('service')
@click.option('--lines', '-n', default=50, show_default=True, help='Number of lines to show')
@click.pass_context
def logs(ctx, service, lines):
    """Show captured container output of a service"""
    config = get_config(ctx)
    log_file = log_dir(config) / f"{service}.log"

    if not log_file.exists():
        click.echo(f"Error: No output captured for service '{service}' ({log_file})", err=True)
        sys.exit(1)

    with open(log_file, encoding='utf-8', errors='replace') as f:
        tail = deque(f, maxlen=lines)

    for line in tail:
        click.echo(line.rstrip('\n'))
