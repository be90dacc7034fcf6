"""Service layer for abstracting Docker operations."""

from .docker_service import DockerService, RuntimeContainer
from .exceptions import (
    NodeISPError,
    DockerServiceError,
    ImageNotFoundError,
    ContainerNotFoundError,
    NetworkError,
    ReconcileError,
    ServiceNotFoundError,
    ReconcileTimeoutError,
    ReconcileCancelledError,
    LogFileError,
    ConfigError,
    StateError,
)

__all__ = [
    "DockerService",
    "RuntimeContainer",
    "NodeISPError",
    "DockerServiceError",
    "ImageNotFoundError",
    "ContainerNotFoundError",
    "NetworkError",
    "ReconcileError",
    "ServiceNotFoundError",
    "ReconcileTimeoutError",
    "ReconcileCancelledError",
    "LogFileError",
    "ConfigError",
    "StateError",
]
