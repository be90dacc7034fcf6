"""Logging configuration for the Node ISP process."""

import logging
import logging.handlers
from pathlib import Path
from typing import List, Optional

from rich.logging import RichHandler

from ..core.constants import SERVER_LOG_NAME

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


class ServiceLogAdapter(logging.LoggerAdapter):
    """Prefix records with the service (and optionally command) they concern."""

    def process(self, msg, kwargs):
        tag = f"[{self.extra['service']}]"
        command = self.extra.get("command")
        if command:
            tag += f" [{' '.join(command)}]"
        return f"{tag} {msg}", kwargs


def service_logger(logger: logging.Logger, service: str,
                   command: Optional[List[str]] = None) -> ServiceLogAdapter:
    """Get a logger tagged with a service name."""
    extra = {"service": service}
    if command:
        extra["command"] = list(command)
    return ServiceLogAdapter(logger, extra)


def configure_logging(log_dir: Path, verbose: bool = False) -> Path:
    """Send ``node_isp`` logs to the console and to ``<log_dir>/nodeisp.log``.

    The file handler reopens the file when it is moved, so external logrotate
    works without signalling the process.

    Returns:
        Path of the server log file
    """
    log_dir = Path(log_dir).resolve()
    log_dir.mkdir(parents=True, exist_ok=True)
    log_path = log_dir / SERVER_LOG_NAME

    root = logging.getLogger("node_isp")
    root.setLevel(logging.DEBUG if verbose else logging.INFO)
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    console = RichHandler(show_path=False, rich_tracebacks=True)
    console.setFormatter(logging.Formatter('%(message)s'))
    root.addHandler(console)

    file_handler = logging.handlers.WatchedFileHandler(log_path, encoding="utf-8")
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(file_handler)

    root.info(f"writing log files to {log_path}")
    return log_path
