"""Persisted manager state."""

from typing import Dict

from pydantic import BaseModel, Field

from .service import ServiceDescriptor


class ManagerState(BaseModel):
    """Snapshot of the service manager written after every convergence pass."""
    network: str = ""
    logdir: str = ""
    services: Dict[str, ServiceDescriptor] = Field(default_factory=dict)
