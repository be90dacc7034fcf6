"""Fire-and-forget command execution inside service containers."""

import logging
import threading
from typing import Iterable, List, Optional

from ..services.docker_service import DockerService
from ..utils.log_setup import service_logger
from .log_streamer import StreamStatus

logger = logging.getLogger(__name__)


class CommandExecution:
    """A command running inside a container, drained on a daemon thread.

    Only the output is collected; the command's exit status is not inspected.
    """

    def __init__(self, service: str, command: List[str], stream: Iterable[bytes]):
        self.service = service
        self.command = list(command)
        self.stream = stream
        self.lines: List[str] = []
        self.status = StreamStatus.PENDING
        self.error: Optional[BaseException] = None
        self._log = service_logger(logger, service, command)
        self._thread = threading.Thread(
            target=self._drain, name=f"exec-{service}", daemon=True
        )

    def start(self) -> "CommandExecution":
        self.status = StreamStatus.RUNNING
        self._thread.start()
        return self

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Wait for the output to be drained. Returns False on timeout."""
        self._thread.join(timeout)
        return not self._thread.is_alive()

    def _drain(self) -> None:
        buf = bytearray()
        try:
            for chunk in self.stream:
                buf.extend(chunk)
        except Exception as e:
            self.error = e
            self.status = StreamStatus.FAILED
            self._log.error(f"failed to read output: {e}")
            return

        for line in buf.decode("utf-8", errors="replace").splitlines():
            line = line.strip()
            if line:
                self.lines.append(line)
                self._log.debug(line)
        self.status = StreamStatus.CLOSED


class CommandExecutor:
    """Runs commands in service containers without blocking the caller."""

    def __init__(self, docker_service: DockerService):
        self.docker_service = docker_service

    def run(self, service: str, container: str, command: List[str]) -> CommandExecution:
        """Start ``command`` in ``container`` and return once it is attached.

        Raises:
            ContainerNotFoundError: If the container does not exist
            DockerServiceError: If the exec session cannot be created or attached
        """
        service_logger(logger, service, command).info("running command")
        stream = self.docker_service.exec_command(container, list(command))
        return CommandExecution(service, command, stream).start()
