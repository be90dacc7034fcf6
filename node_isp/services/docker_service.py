"""Docker service for abstracting Docker operations."""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Iterator, Optional

import docker
import docker.errors
from docker.types import Mount

from .exceptions import (
    ContainerNotFoundError,
    DockerServiceError,
    ImageNotFoundError,
    NetworkError,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RuntimeContainer:
    """A container as reported by the Docker daemon."""

    id: str
    name: str
    state: str
    created: Optional[datetime] = None
    labels: dict[str, str] = field(default_factory=dict)

    @property
    def is_running(self) -> bool:
        return self.state == "running"

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "RuntimeContainer":
        """Build from an entry of the low-level container list."""
        names = data.get("Names") or []
        created = data.get("Created")
        return cls(
            id=data["Id"],
            name=names[0].lstrip("/") if names else "",
            state=data.get("State", ""),
            created=datetime.fromtimestamp(created, tz=timezone.utc) if created else None,
            labels=dict(data.get("Labels") or {}),
        )


def _label_filters(labels: dict[str, str]) -> dict[str, list[str]]:
    return {"label": [f"{k}={v}" for k, v in labels.items()]}


class DockerService:
    """Service for Docker operations with clean abstractions."""

    def __init__(self):
        """Initialize Docker service and test connection."""
        try:
            self.client = docker.from_env()
            self.client.ping()
        except docker.errors.DockerException as e:
            if "connection refused" in str(e).lower() or "cannot connect" in str(e).lower():
                raise DockerServiceError(
                    "Docker daemon is not running. Please start Docker or the Docker service."
                ) from e
            else:
                raise DockerServiceError(f"Failed to connect to Docker: {e}") from e

    def list_containers(self, labels: dict[str, str], all: bool = True) -> list[RuntimeContainer]:
        """List containers carrying every given label.

        Args:
            labels: Label filters, all of which must match
            all: Include stopped and exited containers

        Returns:
            List of matching containers

        Raises:
            DockerServiceError: If listing fails
        """
        try:
            entries = self.client.api.containers(all=all, filters=_label_filters(labels))
            return [RuntimeContainer.from_api(entry) for entry in entries]
        except docker.errors.APIError as e:
            raise DockerServiceError(f"Failed to list containers: {e}") from e
        except Exception as e:
            raise DockerServiceError(f"Unexpected error listing containers: {e}") from e

    def list_networks(self, labels: dict[str, str]) -> list[dict[str, Any]]:
        """List networks carrying every given label.

        Raises:
            NetworkError: If listing fails
        """
        try:
            return self.client.api.networks(filters=_label_filters(labels))
        except docker.errors.APIError as e:
            raise NetworkError(f"Failed to list networks: {e}") from e
        except Exception as e:
            raise NetworkError(f"Unexpected error listing networks: {e}") from e

    def create_network(self, name: str, labels: dict[str, str]) -> str:
        """Create a bridge network.

        Returns:
            ID of the created network

        Raises:
            NetworkError: If creation fails
        """
        try:
            response = self.client.api.create_network(name, driver="bridge", labels=labels)
            return response["Id"]
        except docker.errors.APIError as e:
            raise NetworkError(f"Failed to create network: {e}") from e
        except Exception as e:
            raise NetworkError(f"Unexpected error creating network: {e}") from e

    def pull_image(self, image: str, platform: Optional[str] = None) -> None:
        """Pull an image, optionally pinned to a platform such as ``linux/amd64``.

        Raises:
            ImageNotFoundError: If the image does not exist in the registry
            DockerServiceError: If the pull fails
        """
        try:
            for event in self.client.api.pull(image, platform=platform, stream=True, decode=True):
                if "error" in event:
                    raise DockerServiceError(f"Failed to pull image '{image}': {event['error']}")
                if "status" in event:
                    logger.debug(f"{image}: {event['status']} {event.get('progress', '')}".rstrip())
        except DockerServiceError:
            raise
        except docker.errors.NotFound as e:
            raise ImageNotFoundError(f"Image '{image}' not found") from e
        except docker.errors.APIError as e:
            raise DockerServiceError(f"Failed to pull image '{image}': {e}") from e
        except Exception as e:
            raise DockerServiceError(f"Unexpected error pulling image '{image}': {e}") from e

    def create_container(
        self,
        image: str,
        name: str,
        environment: Optional[list[str]] = None,
        entrypoint: Optional[list[str]] = None,
        exposed_ports: Optional[list[str]] = None,
        labels: Optional[dict[str, str]] = None,
        network: Optional[str] = None,
        mounts: Optional[list[dict[str, Any]]] = None,
        port_bindings: Optional[dict[str, list[tuple[str, str]]]] = None,
        restart_policy: str = "unless-stopped",
        platform: Optional[str] = None,
    ) -> str:
        """Create a Docker container.

        Args:
            image: Image name
            name: Container name
            environment: ``KEY=VALUE`` strings
            entrypoint: Entrypoint override
            exposed_ports: Container ports such as ``8080/tcp``
            labels: Container labels
            network: Network ID or name the container joins
            mounts: Dicts with ``type``, ``source``, ``target`` and ``read_only``
            port_bindings: Container port to ``(host_ip, host_port)`` pairs
            restart_policy: Docker restart policy name
            platform: Platform constraint, e.g. ``linux/amd64``

        Returns:
            ID of the created container

        Raises:
            ImageNotFoundError: If image not found
            DockerServiceError: If creation fails
        """
        ports = set(exposed_ports or []) | set((port_bindings or {}).keys())
        try:
            host_config = self.client.api.create_host_config(
                network_mode=network,
                mounts=[
                    Mount(
                        target=m["target"],
                        source=m["source"],
                        type=m.get("type", "bind"),
                        read_only=m.get("read_only", False),
                    )
                    for m in mounts or []
                ],
                port_bindings={k: list(v) for k, v in (port_bindings or {}).items()},
                restart_policy={"Name": restart_policy},
            )
            kwargs: dict[str, Any] = {}
            if platform:
                kwargs["platform"] = platform
            response = self.client.api.create_container(
                image=image,
                name=name,
                environment=environment or [],
                entrypoint=entrypoint or None,
                ports=[tuple(p.split("/", 1)) for p in sorted(ports)],
                labels=labels or {},
                host_config=host_config,
                tty=True,
                **kwargs,
            )
            return response["Id"]
        except docker.errors.ImageNotFound as e:
            raise ImageNotFoundError(f"Image '{image}' not found") from e
        except docker.errors.APIError as e:
            raise DockerServiceError(f"Failed to create container: {e}") from e
        except Exception as e:
            raise DockerServiceError(f"Unexpected error creating container: {e}") from e

    def start_container(self, container_id: str) -> None:
        """Start a container.

        Raises:
            ContainerNotFoundError: If container not found
            DockerServiceError: If start fails
        """
        try:
            self.client.api.start(container_id)
        except docker.errors.NotFound as e:
            raise ContainerNotFoundError(f"Container '{container_id}' not found") from e
        except docker.errors.APIError as e:
            raise DockerServiceError(f"Failed to start container: {e}") from e
        except Exception as e:
            raise DockerServiceError(f"Unexpected error starting container: {e}") from e

    def stop_container(self, container_id: str) -> None:
        """Stop a running container.

        Raises:
            ContainerNotFoundError: If container not found
            DockerServiceError: If stop fails
        """
        try:
            self.client.api.stop(container_id)
        except docker.errors.NotFound as e:
            raise ContainerNotFoundError(f"Container '{container_id}' not found") from e
        except docker.errors.APIError as e:
            raise DockerServiceError(f"Failed to stop container: {e}") from e
        except Exception as e:
            raise DockerServiceError(f"Unexpected error stopping container: {e}") from e

    def remove_container(self, container_id: str, force: bool = False) -> None:
        """Remove a container.

        Args:
            container_id: Container ID or name
            force: Force remove even if running

        Raises:
            ContainerNotFoundError: If container not found
            DockerServiceError: If removal fails
        """
        try:
            self.client.api.remove_container(container_id, force=force)
        except docker.errors.NotFound as e:
            raise ContainerNotFoundError(f"Container '{container_id}' not found") from e
        except docker.errors.APIError as e:
            raise DockerServiceError(f"Failed to remove container: {e}") from e
        except Exception as e:
            raise DockerServiceError(f"Unexpected error removing container: {e}") from e

    def attach_container(self, container_id: str) -> Iterator[bytes]:
        """Attach to the combined stdout/stderr of a container.

        Returns:
            Closable stream of raw output chunks, starting with past logs

        Raises:
            ContainerNotFoundError: If container not found
            DockerServiceError: If attaching fails
        """
        try:
            return self.client.api.attach(
                container_id, stdout=True, stderr=True, stream=True, logs=True
            )
        except docker.errors.NotFound as e:
            raise ContainerNotFoundError(f"Container '{container_id}' not found") from e
        except docker.errors.APIError as e:
            raise DockerServiceError(f"Failed to attach to container: {e}") from e
        except Exception as e:
            raise DockerServiceError(f"Unexpected error attaching to container: {e}") from e

    def wait_container(self, container_id: str, condition: str = "not-running") -> dict[str, Any]:
        """Block until the container reaches ``condition``.

        Returns:
            The daemon's wait response, including ``StatusCode``

        Raises:
            ContainerNotFoundError: If container not found
            DockerServiceError: If waiting fails
        """
        try:
            return self.client.api.wait(container_id, timeout=None, condition=condition)
        except docker.errors.NotFound as e:
            raise ContainerNotFoundError(f"Container '{container_id}' not found") from e
        except docker.errors.APIError as e:
            raise DockerServiceError(f"Failed to wait for container: {e}") from e
        except Exception as e:
            raise DockerServiceError(f"Unexpected error waiting for container: {e}") from e

    def exec_command(self, container: str, command: list[str]) -> Iterator[bytes]:
        """Create an interactive exec session in a running container and attach to it.

        Args:
            container: Container ID or name
            command: Command vector to execute

        Returns:
            Stream of raw output chunks

        Raises:
            ContainerNotFoundError: If container not found
            DockerServiceError: If execution fails
        """
        try:
            exec_id = self.client.api.exec_create(
                container, command, stdout=True, stderr=True, stdin=True, tty=True
            )["Id"]
            return self.client.api.exec_start(exec_id, tty=True, stream=True)
        except docker.errors.NotFound as e:
            raise ContainerNotFoundError(f"Container '{container}' not found") from e
        except docker.errors.APIError as e:
            raise DockerServiceError(f"Failed to execute in container: {e}") from e
        except Exception as e:
            raise DockerServiceError(f"Unexpected error executing in container: {e}") from e
