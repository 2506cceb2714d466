"""Shared constants for giteadeploy."""

DEFAULT_INSTALL_DIR = "/opt/gitea"
DEFAULT_SSH_PORT = 222
DEFAULT_START_DELAY = 5

GITEA_IMAGE = "docker.io/gitea/gitea:1.23.7"
POSTGRES_IMAGE = "docker.io/postgres:14-alpine"
NGINX_IMAGE = "docker.io/nginx:alpine"

COMPOSE_FILE = "docker-compose.yml"
NGINX_CONF_RELPATH = "nginx/conf.d/gitea.conf"
SSL_DIR_RELPATH = "nginx/ssl"
README_FILE = "README.md"

CONTAINER_NAMES = ("gitea", "gitea-db", "gitea-nginx")
VOLUME_MARKERS = ("gitea-data", "postgres-data")

COMPOSE_RELEASE = "v2.24.6"
COMPOSE_DOWNLOAD_URL = "https://github.com/docker/compose/releases/download/{release}/docker-compose-{system}-{machine}"

LOCAL_BIN_DIR = "/usr/local/bin"
DOCKER_SOCKET = "/var/run/docker.sock"

DIR_MODE = 0o755
FILE_MODE = 0o644
KEY_MODE = 0o600
BINARY_MODE = 0o755
