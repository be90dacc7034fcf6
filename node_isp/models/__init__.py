"""Models for Node ISP."""

from .config import NodeISPConfig
from .service import MountSpec, PortBinding, ServiceDescriptor
from .state import ManagerState

__all__ = [
    'NodeISPConfig',
    'MountSpec',
    'PortBinding',
    'ServiceDescriptor',
    'ManagerState'
]
