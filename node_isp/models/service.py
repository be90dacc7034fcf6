"""Service descriptor models."""

import hashlib
import json
import threading
from typing import Any, Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr

from ..core.constants import CONTAINER_PREFIX


class MountSpec(BaseModel):
    """A mount from the host into a service container."""

    model_config = ConfigDict(frozen=True)

    type: str = "bind"
    source: str
    target: str
    read_only: bool = False


class PortBinding(BaseModel):
    """A host address a container port is published on."""

    model_config = ConfigDict(frozen=True)

    host_ip: str = ""
    host_port: str


class ServiceDescriptor(BaseModel):
    """Desired container configuration for one service.

    Descriptors are frozen: the content hash is computed once and used as the
    change-detection key, so a changed configuration must be expressed as a new
    descriptor (see ``with_changes``).
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1, description="Logical service name, unique per manager")
    image: str = Field(..., min_length=1, description="Image reference (registry/repo:tag)")
    env: Tuple[str, ...] = Field(default_factory=tuple, description="KEY=VALUE strings, order matters")
    mounts: Tuple[MountSpec, ...] = Field(default_factory=tuple)
    port_bindings: Dict[str, Tuple[PortBinding, ...]] = Field(
        default_factory=dict, description="Container port/protocol to host bindings"
    )
    exposed_ports: Tuple[str, ...] = Field(default_factory=tuple)
    entrypoint: Tuple[str, ...] = Field(default_factory=tuple)

    _hash: Optional[str] = PrivateAttr(default=None)
    _hash_lock: threading.Lock = PrivateAttr(default_factory=threading.Lock)

    @property
    def content_hash(self) -> str:
        """MD5 digest over image, env, mounts, port bindings and entrypoint."""
        if self._hash is not None:
            return self._hash

        with self._hash_lock:
            if self._hash is None:
                self._hash = hashlib.md5(self._hash_payload().encode("utf-8")).hexdigest()
            return self._hash

    @property
    def runtime_name(self) -> str:
        """Container name, versioned by the first 8 characters of the content hash."""
        return f"{CONTAINER_PREFIX}_{self.name}_{self.content_hash[:8]}"

    def _hash_payload(self) -> str:
        payload = {
            "image": self.image,
            "env": list(self.env),
            "mounts": [m.model_dump() for m in self.mounts],
            "port_bindings": {
                port: [b.model_dump() for b in bindings]
                for port, bindings in self.port_bindings.items()
            },
            "entrypoint": list(self.entrypoint),
        }
        return json.dumps(payload, sort_keys=True, separators=(",", ":"))

    def __eq__(self, other: object) -> bool:
        # private attributes (cache and lock) take no part in equality
        if not isinstance(other, ServiceDescriptor):
            return NotImplemented
        return self.name == other.name and self.model_dump() == other.model_dump()

    def __hash__(self) -> int:
        return hash((self.name, self.content_hash))

    def host_port(self, container_port: str) -> Optional[int]:
        """Get the first host port bound to ``container_port``, if any."""
        bindings = self.port_bindings.get(container_port)
        if not bindings:
            return None
        return int(bindings[0].host_port)

    def with_changes(self, **changes: Any) -> "ServiceDescriptor":
        """Create a new descriptor with some fields replaced."""
        data = self.model_dump()
        data.update(changes)
        return type(self).model_validate(data)
