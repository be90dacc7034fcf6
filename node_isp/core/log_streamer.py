"""Background readers that copy container output into service log files."""

import logging
import logging.handlers
import threading
from enum import Enum
from pathlib import Path
from typing import Iterable, Optional

from ..services.exceptions import LogFileError
from ..utils.log_setup import service_logger

logger = logging.getLogger(__name__)


class StreamStatus(Enum):
    """Lifecycle of an output reader."""
    PENDING = "pending"
    RUNNING = "running"
    CLOSED = "closed"
    FAILED = "failed"


def clean_chunk(chunk: bytes) -> str:
    """Strip null padding and surrounding whitespace from a raw output chunk."""
    return chunk.replace(b"\x00", b"").strip().decode("utf-8", errors="replace")


class ServiceLogFile:
    """Append-only output log for one service at ``<log_dir>/<service>.log``.

    Written through a ``WatchedFileHandler`` so the file can be rotated by
    logrotate while the process keeps running.
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self._handler = logging.handlers.WatchedFileHandler(self.path, encoding="utf-8")
        except OSError as e:
            raise LogFileError(f"Failed to open log file {self.path}: {e}") from e
        self._handler.setFormatter(logging.Formatter('%(message)s'))

    def write(self, text: str) -> None:
        record = logging.LogRecord(
            name=str(self.path), level=logging.INFO, pathname=str(self.path),
            lineno=0, msg=text, args=None, exc_info=None,
        )
        self._handler.handle(record)

    def close(self) -> None:
        self._handler.close()


class LogStreamer:
    """Drains a container's output stream on a daemon thread.

    The reader stops at the first read error or when the stream ends and is
    never restarted; the next convergence of the service attaches a new one.
    """

    def __init__(self, service: str, container_id: str, stream: Iterable[bytes],
                 log_file: ServiceLogFile):
        self.service = service
        self.container_id = container_id
        self.stream = stream
        self.log_file = log_file
        self.status = StreamStatus.PENDING
        self.error: Optional[BaseException] = None
        self._stopping = False
        self._log = service_logger(logger, service)
        self._thread = threading.Thread(
            target=self._run, name=f"output-{service}", daemon=True
        )

    @classmethod
    def failed(cls, service: str, container_id: str, log_file: ServiceLogFile,
               error: BaseException) -> "LogStreamer":
        """A reader that never started because attaching failed."""
        streamer = cls(service, container_id, (), log_file)
        streamer.status = StreamStatus.FAILED
        streamer.error = error
        return streamer

    @property
    def is_alive(self) -> bool:
        return self.status in (StreamStatus.PENDING, StreamStatus.RUNNING)

    def start(self) -> "LogStreamer":
        self.status = StreamStatus.RUNNING
        self._thread.start()
        return self

    def stop(self) -> None:
        """Close the underlying stream, ending the reader."""
        self._stopping = True
        close = getattr(self.stream, "close", None)
        if close is not None:
            try:
                close()
            except Exception as e:
                self._log.debug(f"error closing output stream: {e}")

    def join(self, timeout: Optional[float] = None) -> None:
        self._thread.join(timeout)

    def _run(self) -> None:
        try:
            for chunk in self.stream:
                line = clean_chunk(chunk)
                if not line:
                    continue
                self.log_file.write(line)
                self._log.debug(line)
        except Exception as e:
            if self._stopping:
                self.status = StreamStatus.CLOSED
                return
            self.error = e
            self.status = StreamStatus.FAILED
            self._log.error(f"failed to read output: {e}")
            return

        self.status = StreamStatus.CLOSED
        self._log.info("output stream closed")
