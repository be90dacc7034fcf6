"""Server command for Node ISP."""

import logging
import sys
import threading

import click

from ...core.service_manager import ServiceManager
from ...core.stack import Stack
from ...services.exceptions import NodeISPError
from ...utils.log_setup import configure_logging
from ..helpers import get_config, get_docker_service, log_dir

logger = logging.getLogger(__name__)


@click.command()
@click.pass_context
def server(ctx):
    """Start the service stack and keep it converged"""
    config = get_config(ctx)
    configure_logging(log_dir(config), verbose=ctx.obj.get('verbose', False))
    logger.info("starting Node ISP")

    docker_service = get_docker_service()
    try:
        manager = ServiceManager(docker_service, log_dir(config))
        stack = Stack(config, manager)
        stack.load_state()
        stack.start()
    except NodeISPError as e:
        logger.error(f"failed to start Node ISP: {e}")
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    stop_event = threading.Event()
    try:
        stack.serve(stop_event)
    except KeyboardInterrupt:
        stop_event.set()
        logger.info("interrupted, leaving containers running")
