"""Utility modules for Node ISP."""

from .config_manager import load_config
from .log_setup import ServiceLogAdapter, configure_logging, service_logger

__all__ = ['load_config', 'ServiceLogAdapter', 'configure_logging', 'service_logger']
