"""Host environment detection for giteadeploy."""

import os
import re
import shutil
from typing import Callable, Optional

from giteadeploy.errors import DeployError
from giteadeploy.errors_catalog import actionable_error
from giteadeploy.models import ContainerEngine, DetectedEnvironment


class EnvironmentProber:
    """Answers questions about the host without changing it."""

    PACKAGE_MANAGERS = ("apt-get", "dnf", "yum")
    INET_PATTERN = re.compile(r"\binet\s+(\d{1,3}(?:\.\d{1,3}){3})/\d+")

    def __init__(self, logger, console, which=shutil.which, hosts_file: str = "/etc/hosts"):
        self.logger = logger
        self.console = console
        self.which = which
        self.hosts_file = hosts_file

    def has_command(self, name: str) -> bool:
        return self.which(name) is not None

    def is_service_active(self, service: str, run_cmd: Callable) -> bool:
        if not self.has_command("systemctl"):
            return False
        result = run_cmd(["systemctl", "is-active", "--quiet", service], check=False)
        return result.returncode == 0

    def detect_package_manager(self) -> Optional[str]:
        for manager in self.PACKAGE_MANAGERS:
            if self.has_command(manager):
                return manager
        return None

    def detect(self, run_cmd: Callable) -> DetectedEnvironment:
        package_manager = self.detect_package_manager()
        self.logger.debug("Detected package manager: %s", package_manager or "<none>")

        if self.has_command("docker") and not self._docker_is_podman_shim():
            active = self.is_service_active("docker", run_cmd)
            return DetectedEnvironment(
                engine=ContainerEngine.DOCKER,
                engine_active=active,
                package_manager=package_manager,
                podman_available=self.has_command("podman"),
            )

        if self.has_command("podman"):
            # Podman is daemonless, there is no service to be active.
            return DetectedEnvironment(
                engine=ContainerEngine.PODMAN,
                engine_active=True,
                package_manager=package_manager,
                podman_available=True,
            )

        return DetectedEnvironment(
            engine=ContainerEngine.NONE,
            engine_active=False,
            package_manager=package_manager,
            podman_available=False,
        )

    def is_podman_docker_installed(self, run_cmd: Callable) -> bool:
        if not self.has_command("rpm"):
            return False
        result = run_cmd(["rpm", "-q", "podman-docker"], check=False, capture_output=True)
        return result.returncode == 0

    def detect_ip_address(self, run_cmd: Callable) -> str:
        self.console.print("[blue]Auto-detecting server IP address...[/blue]")
        try:
            result = run_cmd(
                ["ip", "-o", "-4", "addr", "show", "scope", "global"],
                check=False,
                capture_output=True,
            )
        except DeployError as exc:
            raise DeployError(actionable_error("ip_not_detected")) from exc

        ip_address = self.parse_ip_output(result.stdout or "") if result.returncode == 0 else None
        if not ip_address:
            raise DeployError(actionable_error("ip_not_detected"))

        self.console.print(f"Detected IP address: {ip_address}")
        self.logger.info("Detected IP address: %s", ip_address)
        return ip_address

    def parse_ip_output(self, output: str) -> Optional[str]:
        match = self.INET_PATTERN.search(output)
        return match.group(1) if match else None

    def domain_in_hosts(self, domain: str) -> bool:
        try:
            with open(self.hosts_file, "r", encoding="utf-8") as file_obj:
                for line in file_obj:
                    entry = line.split("#", 1)[0].split()
                    if domain in entry[1:]:
                        return True
        except OSError as exc:
            self.logger.debug("Could not read %s: %s", self.hosts_file, exc)
        return False

    def _docker_is_podman_shim(self) -> bool:
        docker_path = self.which("docker")
        podman_path = self.which("podman")
        if not docker_path or not podman_path:
            return False
        return os.path.realpath(docker_path) == os.path.realpath(podman_path)
