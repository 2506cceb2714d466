"""Container lifecycle helpers for giteadeploy."""

import time
from typing import Callable, List, Optional, Set

from giteadeploy.constants import CONTAINER_NAMES, VOLUME_MARKERS
from giteadeploy.errors import DeployError


class OrchestrationDriver:
    """Brings the compose stack up and down and checks what is running."""

    def __init__(self, logger, console, sleep: Callable[[float], None] = time.sleep):
        self.logger = logger
        self.console = console
        self.sleep = sleep

    def up(
        self,
        compose_cmd: List[str],
        install_dir: str,
        run_cmd: Callable,
        fallback_cmd: Optional[List[str]] = None,
    ):
        self.console.print("[blue]Starting Gitea...[/blue]")
        self.logger.info("Starting containers with %s", " ".join(compose_cmd))

        if not fallback_cmd or fallback_cmd == compose_cmd:
            run_cmd(compose_cmd + ["up", "-d"], cwd=install_dir)
            return

        result = run_cmd(compose_cmd + ["up", "-d"], check=False, cwd=install_dir)
        if result.returncode != 0:
            self.logger.warning(
                "%s up failed, retrying with %s",
                " ".join(compose_cmd),
                " ".join(fallback_cmd),
            )
            run_cmd(fallback_cmd + ["up", "-d"], cwd=install_dir)

    def down(self, compose_cmd: List[str], install_dir: str, run_cmd: Callable, check: bool = True):
        self.console.print("[blue]Stopping and removing containers...[/blue]")
        return run_cmd(compose_cmd + ["down"], check=check, cwd=install_dir)

    def running_containers(self, engine_cli: str, run_cmd: Callable) -> Set[str]:
        result = run_cmd(
            [engine_cli, "ps", "--filter", "name=gitea", "--format", "{{.Names}}"],
            check=False,
            capture_output=True,
        )
        if result.returncode != 0:
            return set()
        return {line.strip() for line in (result.stdout or "").splitlines() if line.strip()}

    def wait_for_containers(
        self,
        engine_cli: str,
        run_cmd: Callable,
        initial_delay: float = 10,
        attempts: int = 6,
        interval: float = 5,
    ) -> List[str]:
        """Returns the expected containers still missing after polling."""
        self.console.print("[yellow]Waiting for services to start...[/yellow]")
        self.sleep(initial_delay)

        missing = list(CONTAINER_NAMES)
        for attempt in range(1, attempts + 1):
            running = self.running_containers(engine_cli, run_cmd)
            missing = [name for name in CONTAINER_NAMES if name not in running]
            if not missing:
                return []
            self.logger.debug("Attempt %s/%s, waiting for: %s", attempt, attempts, ", ".join(missing))
            if attempt < attempts:
                self.sleep(interval)

        return missing

    def list_data_volumes(self, engine_cli: str, run_cmd: Callable) -> List[str]:
        result = run_cmd([engine_cli, "volume", "ls", "-q"], capture_output=True)
        return [
            name.strip()
            for name in (result.stdout or "").splitlines()
            if any(marker in name for marker in VOLUME_MARKERS)
        ]

    def remove_data_volumes(self, engine_cli: str, run_cmd: Callable) -> List[str]:
        self.console.print("[yellow]Removing data volumes...[/yellow]")
        volumes = self.list_data_volumes(engine_cli, run_cmd)
        if not volumes:
            self.logger.info("No data volumes found.")
            return []

        run_cmd([engine_cli, "volume", "rm"] + volumes, check=False, capture_output=True)

        leftover = self.list_data_volumes(engine_cli, run_cmd)
        if leftover:
            raise DeployError(
                f"Could not remove data volumes: {', '.join(leftover)}. "
                f"Check whether containers still use them with `{engine_cli} ps -a`."
            )

        self.logger.info("Removed data volumes: %s", ", ".join(volumes))
        return volumes
