"""CLI Helper Functions for Node ISP.

This module provides reusable helper functions for CLI commands to reduce
code duplication and standardize behavior across all commands.

The helpers provide:
- Configuration loading from the group's ``--config`` option
- Docker connection handling
- Access to the stored manager state
"""

import sys
from pathlib import Path

import click

from node_isp.core.constants import DEFAULT_CONFIG_PATH
from node_isp.core.state_storage import StateStorageManager
from node_isp.models.config import NodeISPConfig
from node_isp.models.state import ManagerState
from node_isp.services.docker_service import DockerService
from node_isp.services.exceptions import ConfigError, DockerServiceError, StateError
from node_isp.utils.config_manager import load_config


def get_config(ctx: click.Context) -> NodeISPConfig:
    """Load the configuration named by the group options, exit on failure."""
    config_path = (ctx.obj or {}).get('config_path', DEFAULT_CONFIG_PATH)
    try:
        return load_config(config_path)
    except ConfigError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


def get_docker_service() -> DockerService:
    """Initialize Docker service with error handling.

    Note:
        Exits with error message if Docker is not available.
    """
    try:
        return DockerService()
    except DockerServiceError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


def get_state(config: NodeISPConfig) -> ManagerState:
    """Load the stored manager state, exit if the server never ran."""
    storage = StateStorageManager(Path(config.storage.data).resolve())
    try:
        state = storage.load()
    except StateError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    if state is None or not state.services:
        click.echo("No services found. Please run 'node-isp server' first.", err=True)
        sys.exit(1)
    return state


def log_dir(config: NodeISPConfig) -> Path:
    return Path(config.storage.logs).resolve()
