"""Constants used throughout the Node ISP application."""


# Container naming and labels
CONTAINER_PREFIX = "nodeisp"
GROUP_LABEL = "app"
GROUP_LABEL_VALUE = "nodeisp"
SERVICE_LABEL = "service"
HASH_LABEL = "hash"

# Private network shared by all services
NETWORK_NAME = "nodeisp"

# Container runtime behaviour
RESTART_POLICY = "unless-stopped"
EXIT_CONDITION = "not-running"
PLATFORM_OVERRIDES = {
    "app": "linux/amd64",
}

# Timeout values
RECONCILE_TIMEOUT = 180  # 3 minutes
MAINTENANCE_INTERVAL = 60  # 1 minute

# Default images
APP_REPOSITORY = "ghcr.io/node-isp/node-isp"
APP_VERSION = "v0.11.8"
REDIS_IMAGE = "redis:7"
POSTGRES_IMAGE = "postgres:16"
GOTENBERG_IMAGE = "getlago/lago-gotenberg:7"

# Container ports
REDIS_PORT = 6379
POSTGRES_PORT = "5432/tcp"
APP_PORT = "8080/tcp"
GOTENBERG_PORT = 3000

# Commands run inside the app image
APP_ENTRYPOINT = ["php", "artisan", "octane:start", "--host=0.0.0.0", "--port=8080"]
WORKER_ENTRYPOINT = ["/entrypoint-worker.sh"]
MAINTENANCE_COMMAND = ["php", "artisan", "schedule:run"]

# Files and directories
DEFAULT_CONFIG_PATH = "/etc/node-isp/config.yaml"
CONFIG_ENV_VAR = "NODEISP_CONFIG"
STATE_FILE_NAME = "state.json"
SERVER_LOG_NAME = "nodeisp.log"
