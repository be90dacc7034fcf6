"""Tests for logging setup."""
import logging
import logging.handlers

import pytest
from rich.logging import RichHandler

from node_isp.utils.log_setup import configure_logging, service_logger


@pytest.fixture
def node_isp_logger():
    logger = logging.getLogger("node_isp")
    yield logger
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)


class TestConfigureLogging:
    """Test cases for configure_logging."""

    def test_handlers(self, tmp_path, node_isp_logger):
        log_path = configure_logging(tmp_path / "logs")

        assert log_path == (tmp_path / "logs" / "nodeisp.log").resolve()
        assert node_isp_logger.level == logging.INFO
        kinds = {type(h) for h in node_isp_logger.handlers}
        assert kinds == {RichHandler, logging.handlers.WatchedFileHandler}

    def test_writes_server_log(self, tmp_path, node_isp_logger):
        log_path = configure_logging(tmp_path, verbose=True)
        logging.getLogger("node_isp.core.stack").debug("debug message")

        content = log_path.read_text()
        assert "writing log files to" in content
        assert "node_isp.core.stack - DEBUG - debug message" in content

    def test_reconfigure_replaces_handlers(self, tmp_path, node_isp_logger):
        configure_logging(tmp_path)
        configure_logging(tmp_path)

        assert len(node_isp_logger.handlers) == 2


class TestServiceLogger:
    """Test cases for service-tagged loggers."""

    def test_service_prefix(self):
        adapter = service_logger(logging.getLogger("test"), "redis")
        msg, _ = adapter.process("started", {})
        assert msg == "[redis] started"

    def test_command_prefix(self):
        adapter = service_logger(logging.getLogger("test"), "app", ["php", "artisan", "schedule:run"])
        msg, _ = adapter.process("running command", {})
        assert msg == "[app] [php artisan schedule:run] running command"
