"""Custom exceptions for Node ISP."""


class NodeISPError(Exception):
    """Base exception for all Node ISP errors."""

    pass


class DockerServiceError(NodeISPError):
    """Exception raised for Docker service operations."""

    pass


class ImageNotFoundError(DockerServiceError):
    """Exception raised when a Docker image is not found."""

    pass


class ContainerNotFoundError(DockerServiceError):
    """Exception raised when a Docker container is not found."""

    pass


class NetworkError(DockerServiceError):
    """Exception raised when the private network cannot be listed or created."""

    pass


class ReconcileError(NodeISPError):
    """Exception raised when a service cannot be converged."""

    pass


class ServiceNotFoundError(ReconcileError):
    """Exception raised when a service name is not known to the manager."""

    pass


class ReconcileTimeoutError(ReconcileError):
    """Exception raised when convergence exceeds its deadline."""

    pass


class ReconcileCancelledError(ReconcileError):
    """Exception raised when convergence is cancelled by the caller."""

    pass


class LogFileError(NodeISPError):
    """Exception raised when a service log file cannot be opened."""

    pass


class ConfigError(NodeISPError):
    """Exception raised for a missing or invalid configuration file."""

    pass


class StateError(NodeISPError):
    """Exception raised when the persisted state cannot be read."""

    pass
