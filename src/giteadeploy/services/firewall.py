"""Host firewall rule management for giteadeploy."""

from typing import Callable, Optional

FIREWALLD = "firewalld"
UFW = "ufw"


class FirewallReconciler:
    """Opens or closes the HTTP, HTTPS and SSH ports on an active firewall."""

    def __init__(self, logger, console, prober):
        self.logger = logger
        self.console = console
        self.prober = prober

    def detect(self, run_cmd: Callable) -> Optional[str]:
        if self.prober.has_command("firewall-cmd") and self.prober.is_service_active(FIREWALLD, run_cmd):
            return FIREWALLD

        if self.prober.has_command("ufw"):
            result = run_cmd(["ufw", "status"], check=False, capture_output=True)
            if result.returncode == 0 and "Status: active" in (result.stdout or ""):
                return UFW

        return None

    def open_ports(self, ssh_port: int, run_cmd: Callable) -> Optional[str]:
        self.console.print("[blue]Checking firewall configuration...[/blue]")
        manager = self.detect(run_cmd)

        if manager == FIREWALLD:
            self.console.print("FirewallD is running, configuring rules...")
            run_cmd(["firewall-cmd", "--permanent", "--add-service=http"])
            run_cmd(["firewall-cmd", "--permanent", "--add-service=https"])
            run_cmd(["firewall-cmd", "--permanent", f"--add-port={ssh_port}/tcp"])
            run_cmd(["firewall-cmd", "--reload"])
        elif manager == UFW:
            self.console.print("UFW is running, configuring rules...")
            run_cmd(["ufw", "allow", "http"])
            run_cmd(["ufw", "allow", "https"])
            run_cmd(["ufw", "allow", f"{ssh_port}/tcp"])
        else:
            self.console.print("No active firewall detected. No firewall rules added.")
            return None

        self.console.print("[green]Firewall configured successfully.[/green]")
        self.logger.info("Opened HTTP, HTTPS and %s/tcp on %s", ssh_port, manager)
        return manager

    def installed(self) -> Optional[str]:
        """Firewall tool present on the host, whether or not it is running."""
        if self.prober.has_command("firewall-cmd"):
            return FIREWALLD
        if self.prober.has_command("ufw"):
            return UFW
        return None

    def close_ports(self, ssh_port: Optional[int], run_cmd: Callable) -> Optional[str]:
        # A stopped firewall still restores its permanent rules on restart.
        manager = self.installed()

        if manager == FIREWALLD:
            self.console.print("Removing firewall rules...")
            run_cmd(["firewall-cmd", "--permanent", "--remove-service=http"], check=False)
            run_cmd(["firewall-cmd", "--permanent", "--remove-service=https"], check=False)
            if ssh_port:
                run_cmd(["firewall-cmd", "--permanent", f"--remove-port={ssh_port}/tcp"], check=False)
            result = run_cmd(["firewall-cmd", "--reload"], check=False)
            if result.returncode != 0:
                self.logger.warning("firewall-cmd --reload failed; rules apply on the next firewalld start")
        elif manager == UFW:
            self.console.print("Removing UFW firewall rules...")
            run_cmd(["ufw", "delete", "allow", "http"], check=False)
            run_cmd(["ufw", "delete", "allow", "https"], check=False)
            if ssh_port:
                run_cmd(["ufw", "delete", "allow", f"{ssh_port}/tcp"], check=False)
        else:
            self.logger.info("No firewall tool found. No firewall rules removed.")

        return manager
