import logging
import os
import time
from typing import List, Optional

import requests
from rich.console import Console
from rich.prompt import Confirm

from .constants import COMPOSE_FILE, DEFAULT_INSTALL_DIR, DEFAULT_START_DELAY, VOLUME_MARKERS
from .errors import DeployError
from .errors_catalog import actionable_error
from .models import ContainerEngine, UninstallConfig
from .services.command_runner import CommandRunner
from .services.download import DownloadService
from .services.engine import EngineReconciler
from .services.environment import EnvironmentProber
from .services.filesystem import FileSystemService
from .services.firewall import FirewallReconciler
from .services.materializer import ConfigMaterializer
from .services.orchestration import OrchestrationDriver

console = Console()
logger = logging.getLogger("giteadeploy")


class GiteaUninstaller:
    """Stops the stack and reverses what the installer set up."""

    def __init__(
        self,
        install_dir: str = DEFAULT_INSTALL_DIR,
        remove_data: bool = False,
        assume_yes: bool = False,
        start_delay: float = DEFAULT_START_DELAY,
    ):
        self.config = UninstallConfig(install_dir=os.path.abspath(install_dir), remove_data=remove_data)
        self.assume_yes = assume_yes
        self.start_delay = max(0.0, float(start_delay))

        self.command_runner = CommandRunner(logger=logger)
        self.filesystem_service = FileSystemService(logger=logger, console=console)
        self.prober = EnvironmentProber(logger=logger, console=console)
        self.engine_reconciler = EngineReconciler(
            logger=logger,
            console=console,
            prober=self.prober,
            filesystem_service=self.filesystem_service,
            download_service=DownloadService(logger=logger, console=console, requests_module=requests),
        )
        self.materializer = ConfigMaterializer(
            logger=logger,
            console=console,
            filesystem_service=self.filesystem_service,
        )
        self.orchestration = OrchestrationDriver(logger=logger, console=console)
        self.firewall = FirewallReconciler(logger=logger, console=console, prober=self.prober)

    def _run_cmd(self, cmd: List[str], check: bool = True, capture_output: bool = False, cwd=None):
        return self.command_runner.run(cmd, check=check, capture_output=capture_output, cwd=cwd)

    def _confirm(self, question: str) -> bool:
        if self.assume_yes:
            return True
        return Confirm.ask(question, console=console, default=False)

    def validate_install_dir(self):
        install_dir = self.config.install_dir
        if not os.path.isdir(install_dir):
            raise DeployError(actionable_error("install_dir_missing", path=install_dir))
        if not os.path.isfile(os.path.join(install_dir, COMPOSE_FILE)):
            raise DeployError(actionable_error("compose_file_missing", path=install_dir))

    def resolve_engine(self) -> ContainerEngine:
        if self.prober.has_command("docker"):
            return ContainerEngine.DOCKER
        if self.prober.has_command("podman"):
            return ContainerEngine.PODMAN
        raise DeployError("No container engine found. Docker or Podman is required to stop Gitea.")

    def print_plan(self, server_name: Optional[str], ssh_port: Optional[int]):
        console.print("[bold]Gitea Uninstallation Plan:[/bold]")
        console.print("==========================")
        console.print(f"Installation Dir:  {self.config.install_dir}")
        if self.config.remove_data:
            console.print("Data Volumes:      [red]Will be removed (all repositories and data will be deleted)[/red]")
        else:
            console.print("Data Volumes:      Will be preserved (use -r to remove them)")
        if server_name:
            console.print(f"Server Name:       {server_name}")
        if ssh_port:
            console.print(f"SSH Port:          {ssh_port}")

    def _countdown(self):
        if not self.start_delay:
            return
        console.print()
        console.print(
            f"The uninstallation will begin in {self.start_delay:g} seconds. Press Ctrl+C to cancel."
        )
        time.sleep(self.start_delay)

    def run(self) -> int:
        try:
            logger.info("Starting Gitea uninstallation...")
            self.validate_install_dir()

            settings = self.materializer.read_compose_settings(self.config.install_dir)
            self.print_plan(settings["server_name"], settings["ssh_port"])
            self._countdown()

            engine = self.resolve_engine()
            engine_cli = "podman" if engine == ContainerEngine.PODMAN else "docker"
            compose_cmd = self.engine_reconciler.get_compose_cmd(engine, self._run_cmd)
            if not compose_cmd:
                raise DeployError("No compose tool found. Install Docker Compose or podman-compose and retry.")

            self.orchestration.down(compose_cmd, self.config.install_dir, self._run_cmd)

            if self.config.remove_data:
                self.orchestration.remove_data_volumes(engine_cli, self._run_cmd)

            self.firewall.close_ports(settings["ssh_port"], self._run_cmd)

            if self._confirm(f"Do you want to remove the installation directory ({self.config.install_dir})?"):
                console.print("Removing installation directory...")
                self.filesystem_service.remove_dir(self.config.install_dir)

            banner = "==================================================="
            console.print()
            console.print(f"[bold green]{banner}[/bold green]")
            console.print("[bold green]Gitea has been successfully uninstalled![/bold green]")
            console.print(f"[bold green]{banner}[/bold green]")
            if not self.config.remove_data:
                pattern = "\\|".join(VOLUME_MARKERS)
                console.print()
                console.print("Data volumes have been preserved. To remove them manually, run:")
                console.print(
                    f'{engine_cli} volume rm $({engine_cli} volume ls -q | grep "{pattern}")',
                    markup=False,
                )
            logger.info("Gitea uninstallation finished.")
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
