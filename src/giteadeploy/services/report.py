"""README and console summaries for giteadeploy."""

import os
from typing import List, Optional

from rich.markup import escape

from giteadeploy.constants import CONTAINER_NAMES, KEY_MODE, README_FILE
from giteadeploy.models import ContainerEngine, InstallConfig


class ReportWriter:
    """Renders what an operator needs to reach and maintain the instance."""

    def __init__(self, logger, console, filesystem_service):
        self.logger = logger
        self.console = console
        self.filesystem_service = filesystem_service

    def render_readme(self, config: InstallConfig, compose_cmd: List[str]) -> str:
        compose = " ".join(compose_cmd)
        engine_cli = config.engine_cli

        lines = [
            "# Gitea Installation",
            "",
            "## Access Information",
            "",
            f"- Gitea Web Interface: https://{config.server_name}",
            f"- SSH Access: ssh://git@{config.server_name}:{config.ssh_port}",
        ]
        if config.domain:
            lines.append(f"- IP Address: {config.ip_address}")
        lines.extend(
            [
                f"- Installation Directory: {config.install_dir}",
                f"- Database Password: {config.db_password}",
                f"- Container Engine: {config.engine.value}",
                "",
                "## Management Commands",
                "",
            ]
        )

        actions = [
            ("View logs", "logs -f"),
            ("Restart services", "restart"),
            ("Stop services", "down"),
            ("Start services", "up -d"),
        ]
        for label, action in actions:
            if config.engine == ContainerEngine.PODMAN and compose != "docker-compose":
                lines.append(f"- {label}: `{compose} {action}` or `docker-compose {action}`")
            else:
                lines.append(f"- {label}: `{compose} {action}`")

        lines.extend(
            [
                "",
                "## Backup Commands",
                "",
                "To backup your Gitea installation:",
                "",
                "```bash",
                "# Backup Gitea data",
                f'{engine_cli} run --rm --volumes-from gitea -v $(pwd)/backups:/backup alpine '
                'sh -c "cd /data && tar czf /backup/gitea-data-$(date +%Y%m%d).tar.gz ."',
                "",
                "# Backup PostgreSQL database",
                f"{engine_cli} exec -t gitea-db pg_dumpall -c -U gitea | gzip > "
                "$(pwd)/backups/postgres-$(date +%Y%m%d).gz",
                "```",
                "",
            ]
        )

        if config.domain:
            lines.extend(
                [
                    "## Domain Configuration",
                    "",
                    f"To access Gitea using the domain name {config.domain}, add this entry "
                    "to the hosts file on each client machine:",
                    "",
                    "```",
                    f"{config.ip_address} {config.domain}",
                    "```",
                    "",
                    "- On Linux/macOS: Edit /etc/hosts",
                    "- On Windows: Edit C:\\Windows\\System32\\drivers\\etc\\hosts",
                    "",
                ]
            )

        return "\n".join(lines)

    def write_readme(self, config: InstallConfig, compose_cmd: List[str]) -> str:
        path = os.path.join(config.install_dir, README_FILE)
        # Holds the database password.
        return self.filesystem_service.write_text(path, self.render_readme(config, compose_cmd), mode=KEY_MODE)

    def print_plan(
        self,
        ip_address: str,
        domain: Optional[str],
        password: str,
        auto_password: bool,
        install_dir: str,
        ssh_port: int,
    ):
        self.console.print("[bold]Gitea Installation Plan:[/bold]")
        self.console.print("========================")
        self.console.print(f"Server IP:         {ip_address}")
        if domain:
            self.console.print(f"Domain Name:       {domain}")
        if auto_password:
            self.console.print(f"Database Password: {escape(password)} (auto-generated)")
        else:
            self.console.print("Database Password: (as provided)")
        self.console.print(f"Installation Dir:  {install_dir}")
        self.console.print(f"SSH Port:          {ssh_port}")

    def print_summary(self, config: InstallConfig, missing_containers: List[str]):
        banner = "==================================================="
        self.console.print()

        if missing_containers:
            self.console.print(f"[bold yellow]{banner}[/bold yellow]")
            self.console.print("[bold yellow]Warning: Not all containers are running![/bold yellow]")
            self.console.print(f"[bold yellow]{banner}[/bold yellow]")
            self.console.print()
            self.console.print("Please check the container logs for errors:")
            for name in CONTAINER_NAMES:
                self.console.print(f"{config.engine_cli} logs {name}")
            self.console.print()
            self.console.print(f"Container engine in use: {config.engine.value}")
            self.logger.warning("Containers not running: %s", ", ".join(missing_containers))
            return

        self.console.print(f"[bold green]{banner}[/bold green]")
        self.console.print("[bold green]Gitea has been successfully installed![/bold green]")
        self.console.print(f"[bold green]{banner}[/bold green]")
        self.console.print()
        self.console.print(f"Access your Gitea instance at: https://{config.server_name}")
        if config.domain:
            self.console.print("(Make sure to add the IP-to-domain mapping in your hosts file)")
        self.console.print(f"SSH access port: {config.ssh_port}")
        self.console.print()
        if config.auto_password:
            self.console.print(f"Database Password: {escape(config.db_password)}")
            self.console.print("(This password is also saved in the README.md file)")
            self.console.print()
        self.console.print(f"Installation details saved to: {os.path.join(config.install_dir, README_FILE)}")
        self.console.print()
        self.console.print("You'll need to accept the self-signed certificate warning in your browser.")
        self.console.print(
            "When you first access Gitea, you'll be directed to the setup page "
            "to create an admin account and configure other settings."
        )
        self.console.print()
        self.console.print(f"Container engine in use: {config.engine.value}")

        if config.domain:
            self.console.print()
            self.console.print("To access Gitea using the domain name, add this to your hosts file:")
            self.console.print(f"{config.ip_address} {config.domain}")
