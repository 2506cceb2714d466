"""Container engine installation and wiring for giteadeploy."""

import os
import platform
import tempfile
from typing import Callable, List, Optional

from packaging import version

from giteadeploy.constants import (
    BINARY_MODE,
    COMPOSE_DOWNLOAD_URL,
    COMPOSE_RELEASE,
    DOCKER_SOCKET,
    FILE_MODE,
    LOCAL_BIN_DIR,
)
from giteadeploy.errors import DeployError
from giteadeploy.errors_catalog import actionable_error
from giteadeploy.models import ContainerEngine, DetectedEnvironment


class EngineReconciler:
    """Makes sure a usable engine and compose tool exist on the host.

    Docker is preferred. A Podman host is wired up so that ``docker`` and
    ``docker-compose`` resolve to their Podman counterparts, which lets the
    remaining steps speak a single vocabulary.
    """

    DOCKER_PACKAGES = ["docker-ce", "docker-ce-cli", "containerd.io"]
    APT_PREREQUISITES = ["apt-transport-https", "ca-certificates", "curl", "gnupg", "lsb-release"]
    RPM_REPO_URL = "https://download.docker.com/linux/centos/docker-ce.repo"
    APT_KEY_URL = "https://download.docker.com/linux/ubuntu/gpg"
    APT_KEYRING = "/usr/share/keyrings/docker-archive-keyring.gpg"
    APT_SOURCE_FILE = "/etc/apt/sources.list.d/docker.list"
    MIN_COMPOSE_VERSION = "2.0"

    def __init__(
        self,
        logger,
        console,
        prober,
        filesystem_service,
        download_service,
        bin_dir: str = LOCAL_BIN_DIR,
        docker_socket: str = DOCKER_SOCKET,
        runtime_dir: Optional[str] = None,
    ):
        self.logger = logger
        self.console = console
        self.prober = prober
        self.filesystem_service = filesystem_service
        self.download_service = download_service
        self.bin_dir = bin_dir
        self.docker_socket = docker_socket
        self.runtime_dir = runtime_dir

    def reconcile(self, environment: DetectedEnvironment, run_cmd: Callable) -> ContainerEngine:
        if environment.engine == ContainerEngine.DOCKER:
            if environment.engine_active:
                self.console.print("[green]Docker is installed and running.[/green]")
                return ContainerEngine.DOCKER

            self.console.print("[yellow]Docker is installed but not running. Attempting to start...[/yellow]")
            if self._start_docker(run_cmd):
                self.console.print("[green]Docker started successfully.[/green]")
                return ContainerEngine.DOCKER

            self.console.print("[yellow]Failed to start Docker.[/yellow]")
            if not environment.podman_available:
                raise DeployError(
                    "Docker is installed but could not be started. "
                    "Check `systemctl status docker` and try again."
                )
            self.setup_podman(run_cmd)
            return ContainerEngine.PODMAN

        if environment.engine == ContainerEngine.PODMAN:
            self.setup_podman(run_cmd)
            return ContainerEngine.PODMAN

        return self.install_engine(environment.package_manager, run_cmd)

    def setup_podman(self, run_cmd: Callable):
        self.console.print("[blue]Podman detected. Setting up Podman to work as Docker replacement...[/blue]")
        self.logger.info("Configuring Podman as the container engine")

        if not self.prober.has_command("docker"):
            self.console.print("Creating symbolic link for docker command...")
            self._link_into_bin_dir(self.prober.which("podman"), "docker")

        if not self.prober.has_command("docker-compose"):
            compose_path = self.prober.which("podman-compose")
            if not compose_path:
                if not self.prober.has_command("pip3"):
                    raise DeployError(actionable_error("pip_missing"))
                self.console.print("[blue]Installing podman-compose...[/blue]")
                run_cmd(["pip3", "install", "podman-compose"])
                compose_path = self.prober.which("podman-compose")
                if not compose_path:
                    raise DeployError("podman-compose was installed but is not on PATH.")
            self.console.print("Creating symbolic link for docker-compose command...")
            self._link_into_bin_dir(compose_path, "docker-compose")

        self._link_docker_socket()

    def install_engine(self, package_manager: Optional[str], run_cmd: Callable) -> ContainerEngine:
        self.console.print("[yellow]No container engine found. Attempting to install Docker...[/yellow]")
        self.logger.info("Installing Docker with %s", package_manager or "<none>")

        if package_manager == "apt-get":
            self._install_docker_apt(run_cmd)
        elif package_manager == "dnf":
            if self.prober.is_podman_docker_installed(run_cmd):
                self.console.print("podman-docker is installed. Using Podman instead of Docker.")
                self.setup_podman(run_cmd)
                return ContainerEngine.PODMAN
            run_cmd(["dnf", "-y", "install", "dnf-plugins-core"])
            run_cmd(["dnf", "config-manager", "--add-repo", self.RPM_REPO_URL])
            run_cmd(["dnf", "install", "-y"] + self.DOCKER_PACKAGES)
        elif package_manager == "yum":
            run_cmd(["yum", "install", "-y", "yum-utils"])
            run_cmd(["yum-config-manager", "--add-repo", self.RPM_REPO_URL])
            run_cmd(["yum", "install", "-y"] + self.DOCKER_PACKAGES)
        else:
            raise DeployError(
                actionable_error("unsupported_package_manager", package="Docker or Podman")
            )

        run_cmd(["systemctl", "start", "docker"])
        run_cmd(["systemctl", "enable", "docker"])

        if not self.prober.is_service_active("docker", run_cmd):
            raise DeployError("Failed to install or start Docker.")

        self.console.print("[green]Docker installed and started successfully.[/green]")
        return ContainerEngine.DOCKER

    def ensure_command(
        self,
        command: str,
        package: str,
        package_manager: Optional[str],
        run_cmd: Callable,
    ):
        if self.prober.has_command(command):
            return

        self.console.print(f"[yellow]{command} is not installed. Installing...[/yellow]")
        if package_manager == "apt-get":
            run_cmd(["apt-get", "update"])
            run_cmd(["apt-get", "install", "-y", package])
        elif package_manager in ("dnf", "yum"):
            run_cmd([package_manager, "install", "-y", package])
        else:
            raise DeployError(actionable_error("unsupported_package_manager", package=command))

    def get_compose_cmd(self, engine: ContainerEngine, run_cmd: Callable) -> Optional[List[str]]:
        if engine == ContainerEngine.PODMAN:
            if self.prober.has_command("podman-compose"):
                return ["podman-compose"]
            if self.prober.has_command("docker-compose"):
                return ["docker-compose"]
            return None

        if self.prober.has_command("docker"):
            result = run_cmd(["docker", "compose", "version"], check=False, capture_output=True)
            if result.returncode == 0:
                return ["docker", "compose"]
        if self.prober.has_command("docker-compose"):
            return ["docker-compose"]
        return None

    def ensure_compose(self, engine: ContainerEngine, run_cmd: Callable) -> List[str]:
        compose_cmd = self.get_compose_cmd(engine, run_cmd)
        if compose_cmd:
            if compose_cmd == ["docker-compose"] and engine == ContainerEngine.DOCKER:
                self._warn_if_legacy_compose(run_cmd)
            self.logger.info("Using compose command: %s", " ".join(compose_cmd))
            return compose_cmd

        if engine == ContainerEngine.PODMAN:
            raise DeployError("No compose tool is available for Podman. Install podman-compose and retry.")

        self.console.print("[yellow]Docker Compose is not installed. Installing...[/yellow]")
        return [self.install_compose_binary()]

    def install_compose_binary(self) -> str:
        url = COMPOSE_DOWNLOAD_URL.format(
            release=COMPOSE_RELEASE,
            system=platform.system(),
            machine=platform.machine(),
        )
        dest_path = os.path.join(self.bin_dir, "docker-compose")
        self.download_service.download_file(url, dest_path, "Downloading Docker Compose...")
        self.filesystem_service.set_permissions(dest_path, BINARY_MODE)
        return dest_path

    def _start_docker(self, run_cmd: Callable) -> bool:
        run_cmd(["systemctl", "start", "docker"], check=False)
        return self.prober.is_service_active("docker", run_cmd)

    def _install_docker_apt(self, run_cmd: Callable):
        run_cmd(["apt-get", "update"])
        run_cmd(["apt-get", "install", "-y"] + self.APT_PREREQUISITES)

        fd, key_path = tempfile.mkstemp(prefix="docker-key-", suffix=".asc")
        os.close(fd)
        try:
            self.download_service.download_file(self.APT_KEY_URL, key_path, "Downloading Docker signing key...")
            run_cmd(["gpg", "--batch", "--yes", "--dearmor", "-o", self.APT_KEYRING, key_path])
        finally:
            if os.path.exists(key_path):
                os.remove(key_path)

        codename = run_cmd(["lsb_release", "-cs"], capture_output=True).stdout.strip()
        architecture = run_cmd(["dpkg", "--print-architecture"], capture_output=True).stdout.strip()
        source_line = (
            f"deb [arch={architecture} signed-by={self.APT_KEYRING}] "
            f"https://download.docker.com/linux/ubuntu {codename} stable\n"
        )
        self.filesystem_service.write_text(self.APT_SOURCE_FILE, source_line, mode=FILE_MODE)

        run_cmd(["apt-get", "update"])
        run_cmd(["apt-get", "install", "-y"] + self.DOCKER_PACKAGES)

    def _link_into_bin_dir(self, target: Optional[str], name: str):
        if not target:
            raise DeployError(f"Cannot link {name}: target command not found.")
        try:
            self.filesystem_service.force_symlink(target, os.path.join(self.bin_dir, name))
        except OSError as exc:
            raise DeployError(f"Could not create {name} link in {self.bin_dir}: {exc}") from exc

    def _link_docker_socket(self):
        runtime_dir = self.runtime_dir or os.environ.get("XDG_RUNTIME_DIR") or f"/run/user/{os.getuid()}"
        podman_socket = os.path.join(runtime_dir, "podman", "podman.sock")

        try:
            os.makedirs(os.path.dirname(podman_socket), exist_ok=True)
            if os.path.lexists(self.docker_socket):
                return
            self.console.print("Creating docker socket symlink...")
            os.makedirs(os.path.dirname(self.docker_socket), exist_ok=True)
            os.symlink(podman_socket, self.docker_socket)
        except OSError as exc:
            message = "Could not create symlink to Docker socket. Running as root may be required."
            self.console.print(f"[yellow]Warning:[/yellow] {message}")
            self.logger.warning("%s (%s)", message, exc)

    def _warn_if_legacy_compose(self, run_cmd: Callable):
        result = run_cmd(["docker-compose", "version", "--short"], check=False, capture_output=True)
        raw_version = (result.stdout or "").strip().lstrip("v")
        if result.returncode != 0 or not raw_version:
            return

        try:
            detected = version.parse(raw_version)
        except version.InvalidVersion:
            self.logger.debug("Could not parse docker-compose version: %s", raw_version)
            return

        if detected < version.parse(self.MIN_COMPOSE_VERSION):
            self.logger.warning(
                "docker-compose %s is a legacy v1 release; consider upgrading to Compose v2.",
                raw_version,
            )
