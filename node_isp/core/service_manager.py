"""Service manager: converges running containers to service descriptors."""

import logging
import threading
import time
from concurrent.futures import Future
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass, replace
from datetime import datetime
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from ..models.service import ServiceDescriptor
from ..models.state import ManagerState
from ..services.docker_service import DockerService, RuntimeContainer
from ..services.exceptions import (
    DockerServiceError,
    ReconcileCancelledError,
    ReconcileTimeoutError,
    ServiceNotFoundError,
)
from ..utils.log_setup import service_logger
from .command_executor import CommandExecution, CommandExecutor
from .constants import (
    EXIT_CONDITION,
    HASH_LABEL,
    NETWORK_NAME,
    PLATFORM_OVERRIDES,
    RECONCILE_TIMEOUT,
    RESTART_POLICY,
    SERVICE_LABEL,
)
from .labels import container_labels, group_filter, service_filter
from .log_streamer import LogStreamer, ServiceLogFile, StreamStatus

logger = logging.getLogger(__name__)


@dataclass
class ServiceStatus:
    """Runtime status of one managed service."""
    name: str
    image: str
    container: str = ""
    status: str = "missing"
    started: Optional[datetime] = None


@dataclass
class ExitWatch:
    """Pending wait for a container to stop running."""
    container_id: str
    future: Future


def build_status(services: Dict[str, ServiceDescriptor],
                 containers: Iterable[RuntimeContainer]) -> List[ServiceStatus]:
    """Match containers to services by their service label.

    A container carrying the service's current hash wins over stale ones.
    """
    containers = list(containers)
    rows = []
    for name in sorted(services):
        svc = services[name]
        row = ServiceStatus(name=name, image=svc.image)
        matches = [c for c in containers if c.labels.get(SERVICE_LABEL) == name]
        current = [c for c in matches if c.labels.get(HASH_LABEL) == svc.content_hash]
        match = (current or matches or [None])[0]
        if match is not None:
            row.container = match.name
            row.status = match.state
            row.started = match.created
        rows.append(row)
    return rows


class _Deadline:
    """Deadline and cancellation checked between convergence steps."""

    def __init__(self, timeout: float, cancel: Optional[threading.Event] = None):
        self.timeout = timeout
        self.expires_at = time.monotonic() + timeout
        self.cancel = cancel
        self._expired = threading.Event()

    def expire(self) -> None:
        self._expired.set()

    def check(self, step: str) -> None:
        if self.cancel is not None and self.cancel.is_set():
            raise ReconcileCancelledError(f"Cancelled before {step}")
        if self._expired.is_set() or time.monotonic() >= self.expires_at:
            raise ReconcileTimeoutError(f"Deadline of {self.timeout}s exceeded before {step}")


class ServiceManager:
    """Owns the private network and the set of managed services.

    Containers are matched to descriptors only through their labels: the
    ownership label, the service name and the descriptor's content hash.
    """

    def __init__(self, docker_service: DockerService, log_dir: Path):
        """Initialize the manager and adopt or create the private network.

        Raises:
            NetworkError: If the network cannot be listed or created
        """
        self.docker_service = docker_service
        self.log_dir = Path(log_dir)
        self.services: Dict[str, ServiceDescriptor] = {}
        self.executor = CommandExecutor(docker_service)

        self._lock = threading.Lock()
        self._log_files: Dict[str, ServiceLogFile] = {}
        self._streamers: Dict[str, LogStreamer] = {}
        self._exit_watches: Dict[str, ExitWatch] = {}

        self.network = self._ensure_network()

    def _ensure_network(self) -> str:
        networks = self.docker_service.list_networks(group_filter())
        if networks:
            network_id = networks[0]["Id"]
            logger.info(f"using network {network_id}")
            return network_id

        network_id = self.docker_service.create_network(NETWORK_NAME, group_filter())
        logger.info(f"created network {network_id}")
        return network_id

    def get_service(self, name: str) -> ServiceDescriptor:
        """Get a registered descriptor.

        Raises:
            ServiceNotFoundError: If no service with that name is registered
        """
        with self._lock:
            service = self.services.get(name)
        if service is None:
            raise ServiceNotFoundError(f"Service '{name}' not found")
        return service

    def ensure_service(self, service: ServiceDescriptor, timeout: float = RECONCILE_TIMEOUT,
                       cancel: Optional[threading.Event] = None) -> RuntimeContainer:
        """Register ``service`` and converge its container to the descriptor.

        Stale containers of the service are stopped and removed, a container
        matching the content hash is created if missing and started if not
        running, and its output is attached to ``<log_dir>/<name>.log``.

        Args:
            service: Desired configuration
            timeout: Seconds before convergence is abandoned
            cancel: Event that aborts convergence at the next step when set

        Returns:
            The running target container

        Raises:
            LogFileError: If the service log file cannot be opened
            ReconcileTimeoutError: If the deadline is exceeded
            ReconcileCancelledError: If ``cancel`` is set
            DockerServiceError: If pulling, creating or starting fails
        """
        with self._lock:
            self.services[service.name] = service
        log_file = self._open_log_file(service.name)

        deadline = _Deadline(timeout, cancel)
        future: Future = Future()

        def converge() -> None:
            try:
                future.set_result(self._ensure_running(service.name, log_file, deadline))
            except Exception as e:
                future.set_exception(e)

        threading.Thread(target=converge, name=f"reconcile-{service.name}", daemon=True).start()

        try:
            return future.result(timeout=timeout)
        except FutureTimeoutError:
            deadline.expire()
            raise ReconcileTimeoutError(
                f"Timed out after {timeout}s converging service '{service.name}'"
            ) from None

    def find_containers(self, name: str, content_hash: Optional[str] = None) -> List[RuntimeContainer]:
        """List the containers of a service, including stopped ones."""
        return self.docker_service.list_containers(service_filter(name, content_hash))

    def list_containers(self) -> List[RuntimeContainer]:
        """List every container owned by this system."""
        return self.docker_service.list_containers(group_filter())

    def status(self) -> List[ServiceStatus]:
        with self._lock:
            services = dict(self.services)
        return build_status(services, self.list_containers())

    def run_command(self, name: str, command: List[str]) -> CommandExecution:
        """Run a command in the current container of a service without waiting for it.

        Raises:
            ServiceNotFoundError: If the service is not registered
            DockerServiceError: If the exec session cannot be created or attached
        """
        service = self.get_service(name)
        return self.executor.run(name, service.runtime_name, command)

    def stream_status(self, name: str) -> Optional[StreamStatus]:
        """Status of the output reader of a service, if one was ever attached."""
        streamer = self._streamers.get(name)
        return streamer.status if streamer else None

    def exit_signal(self, name: str) -> Optional[Future]:
        """Future resolved when the service's container stops running."""
        watch = self._exit_watches.get(name)
        return watch.future if watch else None

    def snapshot(self) -> ManagerState:
        with self._lock:
            services = dict(self.services)
        return ManagerState(network=self.network, logdir=str(self.log_dir), services=services)

    def restore(self, state: ManagerState) -> None:
        """Repopulate the service map from a stored snapshot."""
        if state.network and state.network != self.network:
            logger.warning(f"stored network {state.network} differs from {self.network}, keeping {self.network}")
        with self._lock:
            self.services = dict(state.services)
        logger.info(f"restored {len(state.services)} service(s) from state")

    def _open_log_file(self, name: str) -> ServiceLogFile:
        log_file = self._log_files.get(name)
        if log_file is None:
            log_file = ServiceLogFile(self.log_dir / f"{name}.log")
            self._log_files[name] = log_file
        return log_file

    def _ensure_running(self, name: str, log_file: ServiceLogFile,
                        deadline: _Deadline) -> RuntimeContainer:
        service = self.get_service(name)
        log = service_logger(logger, name)

        deadline.check("listing containers")
        containers = self.find_containers(name)
        target = next((c for c in containers if c.labels.get(HASH_LABEL) == service.content_hash), None)
        if target is not None:
            log.info(f"found existing container {target.id[:12]} ({target.state})")

        for container in containers:
            if target is None or container.id != target.id:
                self._discard_container(container, log)

        if target is None:
            deadline.check("pulling image")
            target = self._create_container(service, log, deadline)

        if not target.is_running:
            deadline.check("starting container")
            log.info("starting container")
            self.docker_service.start_container(target.id)
            target = replace(target, state="running")

        self._watch_exit(name, target.id, log)
        self._attach_output(name, target.id, log_file, log)
        return target

    def _discard_container(self, container: RuntimeContainer, log) -> None:
        if container.is_running:
            try:
                self.docker_service.stop_container(container.id)
            except DockerServiceError as e:
                log.error(f"failed to stop container {container.id[:12]}: {e}")

        try:
            self.docker_service.remove_container(container.id, force=True)
        except DockerServiceError as e:
            log.error(f"failed to remove container {container.id[:12]}: {e}")
            return
        log.info(f"removed old container {container.name}")

    def _create_container(self, service: ServiceDescriptor, log,
                          deadline: _Deadline) -> RuntimeContainer:
        platform = PLATFORM_OVERRIDES.get(service.name)
        log.info(f"pulling image {service.image}")
        self.docker_service.pull_image(service.image, platform=platform)

        deadline.check("creating container")
        log.info("creating container")
        labels = container_labels(service.name, service.content_hash)
        container_id = self.docker_service.create_container(
            image=service.image,
            name=service.runtime_name,
            environment=list(service.env),
            entrypoint=list(service.entrypoint),
            exposed_ports=list(service.exposed_ports),
            labels=labels,
            network=self.network,
            mounts=[m.model_dump() for m in service.mounts],
            port_bindings={
                port: [(b.host_ip, b.host_port) for b in bindings]
                for port, bindings in service.port_bindings.items()
            },
            restart_policy=RESTART_POLICY,
            platform=platform,
        )
        return RuntimeContainer(id=container_id, name=service.runtime_name,
                                state="created", labels=labels)

    def _watch_exit(self, name: str, container_id: str, log) -> None:
        watch = self._exit_watches.get(name)
        if watch is not None and watch.container_id == container_id and not watch.future.done():
            return

        future: Future = Future()

        def wait() -> None:
            try:
                result = self.docker_service.wait_container(container_id, EXIT_CONDITION)
            except Exception as e:
                log.warning(f"failed to wait for container {container_id[:12]}: {e}")
                future.set_exception(e)
                return
            log.warning(f"container {container_id[:12]} stopped with status {result.get('StatusCode')}")
            future.set_result(result)

        with self._lock:
            self._exit_watches[name] = ExitWatch(container_id, future)
        threading.Thread(target=wait, name=f"wait-{name}", daemon=True).start()

    def _attach_output(self, name: str, container_id: str, log_file: ServiceLogFile, log) -> None:
        current = self._streamers.get(name)
        if current is not None and current.container_id == container_id and current.is_alive:
            return
        if current is not None:
            current.stop()

        try:
            stream = self.docker_service.attach_container(container_id)
        except DockerServiceError as e:
            log.error(f"failed to attach to output: {e}")
            streamer = LogStreamer.failed(name, container_id, log_file, e)
        else:
            streamer = LogStreamer(name, container_id, stream, log_file).start()

        with self._lock:
            self._streamers[name] = streamer
