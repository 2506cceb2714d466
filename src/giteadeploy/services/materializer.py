"""Rendering of compose, proxy and TLS artifacts for giteadeploy."""

import json
import os
from typing import Any, Callable, Dict, Optional, Tuple

import yaml

from giteadeploy.constants import (
    COMPOSE_FILE,
    GITEA_IMAGE,
    KEY_MODE,
    NGINX_CONF_RELPATH,
    NGINX_IMAGE,
    POSTGRES_IMAGE,
    SSL_DIR_RELPATH,
)
from giteadeploy.errors import DeployError
from giteadeploy.models import InstallConfig


def _env_entry(key: str, value: str) -> str:
    """Double-quoted YAML scalar, so values ending in `:` or holding `#` stay plain strings."""
    return json.dumps(f"{key}={value}", ensure_ascii=False)


class ConfigMaterializer:
    """Writes the files the containers are started from."""

    CERT_DAYS = 365
    KEY_BITS = 2048

    def __init__(self, logger, console, filesystem_service):
        self.logger = logger
        self.console = console
        self.filesystem_service = filesystem_service

    def render_compose(self, config: InstallConfig) -> str:
        root_url = f"https://{config.server_name}/"
        return f"""
networks:
  gitea:
    external: false

volumes:
  gitea-data:
  postgres-data:

services:
  server:
    image: {GITEA_IMAGE}
    container_name: gitea
    environment:
      - USER_UID=1000
      - USER_GID=1000
      - GITEA__database__DB_TYPE=postgres
      - GITEA__database__HOST=db:5432
      - GITEA__database__NAME=gitea
      - GITEA__database__USER=gitea
      - {_env_entry('GITEA__database__PASSWD', config.db_password)}
      - {_env_entry('GITEA__server__DOMAIN', config.server_name)}
      - {_env_entry('GITEA__server__ROOT_URL', root_url)}
      - {_env_entry('GITEA__server__SSH_DOMAIN', config.server_name)}
      - GITEA__server__SSH_PORT=22
      - GITEA__service__DISABLE_REGISTRATION=false
      - GITEA__log__MODE=console
    restart: unless-stopped
    networks:
      - gitea
    volumes:
      - gitea-data:/data
      - /etc/timezone:/etc/timezone:ro
      - /etc/localtime:/etc/localtime:ro
    expose:
      - "3000"
      - "22"
    ports:
      - "{config.ssh_port}:22"
    depends_on:
      - db

  db:
    image: {POSTGRES_IMAGE}
    container_name: gitea-db
    restart: unless-stopped
    environment:
      - POSTGRES_USER=gitea
      - {_env_entry('POSTGRES_PASSWORD', config.db_password)}
      - POSTGRES_DB=gitea
    networks:
      - gitea
    volumes:
      - postgres-data:/var/lib/postgresql/data
    healthcheck:
      test: ["CMD", "pg_isready", "-U", "gitea"]
      interval: 10s
      timeout: 5s
      retries: 5

  nginx:
    image: {NGINX_IMAGE}
    container_name: gitea-nginx
    restart: unless-stopped
    ports:
      - "80:80"
      - "443:443"
    volumes:
      - ./nginx/conf.d:/etc/nginx/conf.d
      - ./nginx/ssl:/etc/nginx/ssl
    networks:
      - gitea
    depends_on:
      - server
""".lstrip()

    def render_nginx_conf(self, config: InstallConfig) -> str:
        return f"""
server {{
    listen 80;
    server_name {config.server_name};

    location / {{
        return 301 https://$host$request_uri;
    }}
}}

server {{
    listen 443 ssl;
    server_name {config.server_name};

    ssl_certificate /etc/nginx/ssl/cert.pem;
    ssl_certificate_key /etc/nginx/ssl/key.pem;

    ssl_protocols TLSv1.2 TLSv1.3;
    ssl_prefer_server_ciphers on;
    ssl_ciphers ECDHE-ECDSA-AES128-GCM-SHA256:ECDHE-RSA-AES128-GCM-SHA256:ECDHE-ECDSA-AES256-GCM-SHA384:ECDHE-RSA-AES256-GCM-SHA384:ECDHE-ECDSA-CHACHA20-POLY1305:ECDHE-RSA-CHACHA20-POLY1305;

    add_header X-Content-Type-Options nosniff;
    add_header X-Frame-Options DENY;
    add_header Content-Security-Policy "default-src 'self'; script-src 'self' 'unsafe-inline'; style-src 'self' 'unsafe-inline'";
    add_header Strict-Transport-Security "max-age=31536000; includeSubDomains" always;

    location / {{
        proxy_pass http://server:3000;
        proxy_set_header Host $host;
        proxy_set_header X-Real-IP $remote_addr;
        proxy_set_header X-Forwarded-For $proxy_add_x_forwarded_for;
        proxy_set_header X-Forwarded-Proto $scheme;

        # WebSocket support
        proxy_set_header Upgrade $http_upgrade;
        proxy_set_header Connection "upgrade";

        # Large pushes and clones
        proxy_read_timeout 300;
        proxy_connect_timeout 300;
        proxy_send_timeout 300;

        client_max_body_size 100M;
    }}
}}
""".lstrip()

    def write_compose_file(self, config: InstallConfig) -> str:
        self.console.print("[blue]Creating Docker Compose configuration...[/blue]")
        path = os.path.join(config.install_dir, COMPOSE_FILE)
        return self.filesystem_service.write_text(path, self.render_compose(config), mode=KEY_MODE)

    def write_nginx_conf(self, config: InstallConfig) -> str:
        self.console.print("[blue]Creating Nginx configuration...[/blue]")
        path = os.path.join(config.install_dir, NGINX_CONF_RELPATH)
        return self.filesystem_service.write_text(path, self.render_nginx_conf(config))

    def generate_certificate(self, config: InstallConfig, run_cmd: Callable) -> Tuple[str, str]:
        self.console.print("[blue]Generating self-signed SSL certificates...[/blue]")
        ssl_dir = os.path.join(config.install_dir, SSL_DIR_RELPATH)
        os.makedirs(ssl_dir, exist_ok=True)

        key_path = os.path.join(ssl_dir, "key.pem")
        csr_path = os.path.join(ssl_dir, "csr.pem")
        cert_path = os.path.join(ssl_dir, "cert.pem")

        run_cmd(["openssl", "genrsa", "-out", key_path, str(self.KEY_BITS)], capture_output=True)
        run_cmd(
            [
                "openssl",
                "req",
                "-new",
                "-key",
                key_path,
                "-out",
                csr_path,
                "-subj",
                f"/CN={config.server_name}",
            ],
            capture_output=True,
        )
        run_cmd(
            [
                "openssl",
                "x509",
                "-req",
                "-days",
                str(self.CERT_DAYS),
                "-in",
                csr_path,
                "-signkey",
                key_path,
                "-out",
                cert_path,
            ],
            capture_output=True,
        )
        self.filesystem_service.set_permissions(key_path, KEY_MODE)
        self.logger.info("Generated certificate for CN=%s", config.server_name)
        return cert_path, key_path

    def materialize(self, config: InstallConfig, run_cmd: Callable):
        self.filesystem_service.prepare_install_dir(config.install_dir)
        self.write_compose_file(config)
        self.write_nginx_conf(config)
        self.generate_certificate(config, run_cmd)

    def read_compose_settings(self, install_dir: str) -> Dict[str, Optional[Any]]:
        """Recovers the server name and SSH port from an existing manifest."""
        path = os.path.join(install_dir, COMPOSE_FILE)
        try:
            with open(path, "r", encoding="utf-8") as file_obj:
                manifest = yaml.safe_load(file_obj)
        except (OSError, yaml.YAMLError) as exc:
            raise DeployError(f"Could not read {path}: {exc}") from exc

        settings: Dict[str, Optional[Any]] = {"server_name": None, "ssh_port": None}
        if not isinstance(manifest, dict):
            return settings

        server = (manifest.get("services") or {}).get("server") or {}
        for entry in server.get("environment") or []:
            key, _, value = str(entry).partition("=")
            if key == "GITEA__server__DOMAIN" and value:
                settings["server_name"] = value

        for mapping in server.get("ports") or []:
            host_port, _, container_port = str(mapping).rpartition(":")
            if container_port == "22" and host_port.isdigit():
                settings["ssh_port"] = int(host_port)

        return settings
