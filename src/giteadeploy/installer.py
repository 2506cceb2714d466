import logging
import os
import secrets
import string
import time
from typing import List, Optional

import requests
from rich.console import Console
from rich.prompt import Confirm

from .constants import COMPOSE_FILE, DEFAULT_INSTALL_DIR, DEFAULT_SSH_PORT, DEFAULT_START_DELAY
from .errors import DeployError
from .errors_catalog import actionable_error
from .models import ContainerEngine, InstallConfig
from .services.command_runner import CommandRunner
from .services.download import DownloadService
from .services.engine import EngineReconciler
from .services.environment import EnvironmentProber
from .services.filesystem import FileSystemService
from .services.firewall import FirewallReconciler
from .services.materializer import ConfigMaterializer
from .services.orchestration import OrchestrationDriver
from .services.report import ReportWriter
from .services.validation import ValidationService

console = Console()
logger = logging.getLogger("giteadeploy")


class GiteaInstaller:
    PASSWORD_LENGTH = 16
    PASSWORD_ALPHABET = string.ascii_letters + string.digits

    def __init__(
        self,
        password: Optional[str] = None,
        install_dir: str = DEFAULT_INSTALL_DIR,
        ssh_port: int = DEFAULT_SSH_PORT,
        ip_address: Optional[str] = None,
        domain: Optional[str] = None,
        assume_yes: bool = False,
        start_delay: float = DEFAULT_START_DELAY,
    ):
        self.validation_service = ValidationService()

        self.password = self.validation_service.validate_password(password) if password else None
        self.install_dir = os.path.abspath(install_dir)
        self.ssh_port = self.validation_service.validate_ssh_port(ssh_port)
        self.ip_address = self.validation_service.validate_ip_address(ip_address) if ip_address else None
        self.domain = self.validation_service.validate_domain(domain)
        self.assume_yes = assume_yes
        self.start_delay = max(0.0, float(start_delay))
        self.config: Optional[InstallConfig] = None

        self.command_runner = CommandRunner(logger=logger)
        self.filesystem_service = FileSystemService(logger=logger, console=console)
        self.download_service = DownloadService(logger=logger, console=console, requests_module=requests)
        self.prober = EnvironmentProber(logger=logger, console=console)
        self.engine_reconciler = EngineReconciler(
            logger=logger,
            console=console,
            prober=self.prober,
            filesystem_service=self.filesystem_service,
            download_service=self.download_service,
        )
        self.materializer = ConfigMaterializer(
            logger=logger,
            console=console,
            filesystem_service=self.filesystem_service,
        )
        self.orchestration = OrchestrationDriver(logger=logger, console=console)
        self.firewall = FirewallReconciler(logger=logger, console=console, prober=self.prober)
        self.report_writer = ReportWriter(
            logger=logger,
            console=console,
            filesystem_service=self.filesystem_service,
        )

    def _run_cmd(self, cmd: List[str], check: bool = True, capture_output: bool = False, cwd=None):
        return self.command_runner.run(cmd, check=check, capture_output=capture_output, cwd=cwd)

    def _confirm(self, question: str) -> bool:
        if self.assume_yes:
            return True
        return Confirm.ask(question, console=console, default=False)

    def _countdown(self):
        if not self.start_delay:
            return
        console.print()
        console.print(
            f"The installation will begin in {self.start_delay:g} seconds. Press Ctrl+C to cancel."
        )
        time.sleep(self.start_delay)

    def generate_password(self) -> str:
        return "".join(secrets.choice(self.PASSWORD_ALPHABET) for _ in range(self.PASSWORD_LENGTH))

    def resolve_ip_address(self) -> str:
        if self.ip_address:
            return self.ip_address
        detected = self.prober.detect_ip_address(self._run_cmd)
        return self.validation_service.validate_ip_address(detected)

    def announce_server_name(self, ip_address: str):
        if not self.domain:
            console.print(f"Using IP address as server name: {ip_address}")
            return

        console.print(f"Using domain name: {self.domain}")
        if not self.prober.domain_in_hosts(self.domain):
            console.print("Note: You may want to add this entry to /etc/hosts on client machines:")
            console.print(f"{ip_address} {self.domain}")

    def handle_existing_install(self, compose_cmd: List[str]):
        console.print("[blue]Checking for existing installation...[/blue]")
        if not os.path.isdir(self.install_dir):
            return

        if not self._confirm(f"Installation directory {self.install_dir} already exists. Remove it?"):
            raise DeployError(actionable_error("install_dir_exists", path=self.install_dir))

        if os.path.exists(os.path.join(self.install_dir, COMPOSE_FILE)):
            console.print("Stopping any running containers...")
            self.orchestration.down(compose_cmd, self.install_dir, self._run_cmd, check=False)

        console.print("Removing existing installation directory...")
        self.filesystem_service.remove_dir(self.install_dir)

    def run(self) -> int:
        try:
            logger.info("Starting Gitea installation...")

            ip_address = self.resolve_ip_address()
            self.announce_server_name(ip_address)

            auto_password = self.password is None
            password = self.password or self.generate_password()

            self.report_writer.print_plan(
                ip_address=ip_address,
                domain=self.domain,
                password=password,
                auto_password=auto_password,
                install_dir=self.install_dir,
                ssh_port=self.ssh_port,
            )
            self._countdown()

            environment = self.prober.detect(self._run_cmd)
            engine = self.engine_reconciler.reconcile(environment, self._run_cmd)
            self.engine_reconciler.ensure_command(
                "openssl",
                "openssl",
                environment.package_manager,
                self._run_cmd,
            )
            compose_cmd = self.engine_reconciler.ensure_compose(engine, self._run_cmd)

            self.config = InstallConfig(
                db_password=password,
                install_dir=self.install_dir,
                ssh_port=self.ssh_port,
                ip_address=ip_address,
                domain=self.domain,
                engine=engine,
                auto_password=auto_password,
            )

            self.handle_existing_install(compose_cmd)
            console.print("[blue]Creating installation directory...[/blue]")
            self.materializer.materialize(self.config, self._run_cmd)

            fallback_cmd = None
            if engine == ContainerEngine.PODMAN and self.prober.has_command("docker-compose"):
                fallback_cmd = ["docker-compose"]
            self.orchestration.up(compose_cmd, self.install_dir, self._run_cmd, fallback_cmd=fallback_cmd)

            self.firewall.open_ports(self.ssh_port, self._run_cmd)
            self.report_writer.write_readme(self.config, compose_cmd)

            missing = self.orchestration.wait_for_containers(self.config.engine_cli, self._run_cmd)
            self.report_writer.print_summary(self.config, missing)
            logger.info("Gitea installation finished.")
            return 0

        except KeyboardInterrupt:
            console.print("[bold red]Operation cancelled by user.[/bold red]")
            logger.info("Operation cancelled by user")
            return 1
        except DeployError as exc:
            console.print(f"[bold red]Error:[/bold red] {exc}")
            logger.error(str(exc))
            return 1
        except Exception as exc:
            console.print(f"[bold red]Unexpected error:[/bold red] {exc}")
            logger.exception("Unexpected error")
            return 1
