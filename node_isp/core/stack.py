"""Assembly of the Node ISP service stack on top of the service manager."""

import logging
import random
import socket
import threading
from pathlib import Path
from typing import Optional

from ..models.config import NodeISPConfig
from ..models.service import MountSpec, PortBinding, ServiceDescriptor
from ..services.exceptions import NodeISPError, StateError
from .constants import (
    APP_ENTRYPOINT,
    APP_PORT,
    APP_REPOSITORY,
    APP_VERSION,
    GOTENBERG_IMAGE,
    GOTENBERG_PORT,
    MAINTENANCE_COMMAND,
    MAINTENANCE_INTERVAL,
    POSTGRES_IMAGE,
    POSTGRES_PORT,
    REDIS_IMAGE,
    REDIS_PORT,
    WORKER_ENTRYPOINT,
)
from .service_manager import ServiceManager
from .state_storage import StateStorageManager

logger = logging.getLogger(__name__)


def random_free_port(base: int = 8000, span: int = 10000) -> int:
    """Pick a random TCP port at or above ``base`` that is free on this host."""
    port = base + random.randrange(span)
    while True:
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
            try:
                sock.bind(("", port))
                return port
            except OSError:
                port += 1


def _loopback_binding(port: int) -> tuple:
    return (PortBinding(host_ip="127.0.0.1", host_port=str(port)),)


class Stack:
    """Builds the descriptors for every service and keeps them converged.

    Services start in dependency order: redis, postgres, gotenberg, the app
    server and its horizon worker. Images picked in a previous run are kept
    from the stored state; everything else is rebuilt from configuration.
    """

    def __init__(self, config: NodeISPConfig, manager: ServiceManager,
                 storage: Optional[StateStorageManager] = None):
        self.config = config
        self.manager = manager
        self.data_dir = Path(config.storage.data).resolve()
        self.storage = storage or StateStorageManager(self.data_dir)
        self.app_port: Optional[int] = None

    @property
    def upstream_url(self) -> Optional[str]:
        """Loopback URL of the app server, the target of a fronting proxy."""
        if self.app_port is None:
            return None
        return f"http://127.0.0.1:{self.app_port}"

    def _data_path(self, *parts: str) -> str:
        path = self.data_dir.joinpath(*parts)
        path.mkdir(parents=True, exist_ok=True)
        return str(path)

    def _image(self, name: str, default: str) -> str:
        existing = self.manager.services.get(name)
        return existing.image if existing else default

    def _port(self, name: str, container_port: str) -> int:
        existing = self.manager.services.get(name)
        if existing is not None:
            port = existing.host_port(container_port)
            if port is not None:
                return port
        return random_free_port()

    def load_state(self) -> None:
        """Overlay the stored state onto the manager, if any."""
        try:
            state = self.storage.load()
        except StateError as e:
            logger.warning(f"failed to load state: {e}")
            return
        if state is None:
            logger.info("no stored state found, starting from defaults")
            return
        self.manager.restore(state)

    def store_state(self) -> None:
        """Persist the manager snapshot; a failed write is logged, not raised."""
        try:
            self.storage.save(self.manager.snapshot())
        except StateError as e:
            logger.error(f"failed to store state: {e}")

    def redis(self) -> ServiceDescriptor:
        return ServiceDescriptor(
            name="redis",
            image=self._image("redis", REDIS_IMAGE),
            mounts=(MountSpec(source=self._data_path("redis"), target="/data"),),
            env=(
                f"REDIS_PORT={REDIS_PORT}",
                f"REDIS_PASSWORD={self.config.redis.password}",
            ),
        )

    def postgres(self) -> ServiceDescriptor:
        return ServiceDescriptor(
            name="postgres",
            image=self._image("postgres", POSTGRES_IMAGE),
            mounts=(MountSpec(source=self._data_path("postgres"), target="/var/lib/postgresql/data"),),
            port_bindings={POSTGRES_PORT: _loopback_binding(self._port("postgres", POSTGRES_PORT))},
            env=(
                "POSTGRES_USER=postgres",
                f"POSTGRES_PASSWORD={self.config.database.password}",
                f"POSTGRES_DB={self.config.database.name}",
            ),
        )

    def gotenberg(self) -> ServiceDescriptor:
        existing = self.manager.services.get("gotenberg")
        if existing is not None:
            return existing
        return ServiceDescriptor(name="gotenberg", image=GOTENBERG_IMAGE)

    def app(self, redis: ServiceDescriptor, postgres: ServiceDescriptor,
            gotenberg: ServiceDescriptor) -> ServiceDescriptor:
        """App server descriptor, wired to the other services by container name."""
        cfg = self.config
        image = self._image("app", f"{APP_REPOSITORY}:{APP_VERSION}")
        prefix = f"{APP_REPOSITORY}:"
        version = image[len(prefix):] if image.startswith(prefix) else APP_VERSION
        port = self._port("app", APP_PORT)
        licence_dir = self._data_path("nodeisp", "licence")
        storage_dir = self._data_path("nodeisp", "storage")

        return ServiceDescriptor(
            name="app",
            image=image,
            env=(
                f"APP_VERSION={version}",
                "SERVER_NAME=:8080",
                "APP_ENV=production",
                f"APP_NAME={cfg.app.name}",
                f"APP_KEY={cfg.app.key}",
                f"APP_URL=https://{cfg.app_domain}",
                f"NODEISP_LICENCE_KEY_ID={cfg.licence.id}",
                f"NODEISP_LICENCE_KEY_CODE={cfg.licence.key}",
                f"NODEISP_DOMAIN={cfg.app_domain}",
                "DB_CONNECTION=pgsql",
                f"DB_HOST={postgres.runtime_name}",
                "DB_PORT=5432",
                "DB_USERNAME=postgres",
                f"DB_PASSWORD={cfg.database.password}",
                f"DB_DATABASE={cfg.database.name}",
                f"REDIS_HOST={redis.runtime_name}",
                f"REDIS_PORT={REDIS_PORT}",
                "CACHE_DRIVER=file",
                "QUEUE_CONNECTION=redis",
                "TELESCOPE_PATH=admin/telescope",
                "HORIZON_PATH=admin/horizon",
                "FILESYSTEM_DISK=local",
                f"SERVICES_GOTENBERG_URL=http://{gotenberg.runtime_name}:{GOTENBERG_PORT}",
                f"SERVICES_GOOGLE_MAPS_API_KEY={cfg.services.google_maps_api_key}",
            ),
            mounts=(
                MountSpec(source=licence_dir, target="/etc/nodeisp/"),
                MountSpec(source=storage_dir, target="/app/storage/app/public"),
                MountSpec(source=storage_dir, target="/app/public/storage"),
            ),
            port_bindings={APP_PORT: _loopback_binding(port)},
            exposed_ports=(APP_PORT,),
            entrypoint=tuple(APP_ENTRYPOINT),
        )

    def horizon(self, app: ServiceDescriptor) -> ServiceDescriptor:
        """Queue worker running from the app image."""
        return ServiceDescriptor(
            name="horizon",
            image=app.image,
            env=app.env,
            mounts=app.mounts,
            entrypoint=tuple(WORKER_ENTRYPOINT),
        )

    def start(self) -> None:
        """Converge every service in dependency order, then store state.

        Raises:
            NodeISPError: If any service fails to converge
        """
        redis = self.redis()
        self.manager.ensure_service(redis)

        postgres = self.postgres()
        self.manager.ensure_service(postgres)

        gotenberg = self.gotenberg()
        self.manager.ensure_service(gotenberg)

        app = self.app(redis, postgres, gotenberg)
        self.manager.ensure_service(app)
        self.app_port = app.host_port(APP_PORT)

        self.manager.ensure_service(self.horizon(app))

        self.store_state()
        logger.info(f"Node ISP is running, app server at {self.upstream_url}, "
                    f"admin at https://{self.config.app_domain}/admin")

    def run_maintenance(self) -> None:
        """Store state and trigger the app's scheduled tasks; failures are only logged."""
        self.store_state()

        try:
            self.manager.run_command("app", MAINTENANCE_COMMAND)
        except NodeISPError as e:
            logger.error(f"failed to run scheduled tasks: {e}")

    def serve(self, stop_event: threading.Event, interval: float = MAINTENANCE_INTERVAL) -> None:
        """Run maintenance every ``interval`` seconds until ``stop_event`` is set."""
        while not stop_event.wait(interval):
            self.run_maintenance()
        logger.info("shutting down Node ISP")
