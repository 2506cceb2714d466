import logging
import os
import sys

import click
from rich.logging import RichHandler

from .constants import DEFAULT_INSTALL_DIR, DEFAULT_SSH_PORT, DEFAULT_START_DELAY
from .errors import DeployError
from .installer import GiteaInstaller
from .services.config_loader import ConfigLoader
from .uninstaller import GiteaUninstaller

DEFAULT_CONFIG_FILE = ".giteadeploy.yml"
CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}


def _resolve_option(cli_value, config, key, default=None):
    if cli_value is not None:
        return cli_value
    if key in config:
        return config[key]
    return default


logging.basicConfig(
    level="INFO",
    format="%(message)s",
    datefmt="[%X]",
    handlers=[RichHandler(rich_tracebacks=True, show_level=False, show_path=False)],
)


class DeployCommand(click.Command):
    """Click command that reports usage errors with exit status 1."""

    def main(self, *args, standalone_mode=True, **kwargs):
        try:
            rv = super().main(*args, standalone_mode=False, **kwargs)
        except click.ClickException as exc:
            exc.show()
            sys.exit(1)
        except click.Abort:
            click.echo("Aborted!", err=True)
            sys.exit(1)

        if not standalone_mode:
            return rv
        sys.exit(rv if isinstance(rv, int) else 0)


def _load_config(config):
    try:
        resolved_config = config
        if resolved_config is None:
            default_config_path = os.path.join(os.getcwd(), DEFAULT_CONFIG_FILE)
            if os.path.exists(default_config_path):
                resolved_config = default_config_path

        return ConfigLoader().load(resolved_config)
    except DeployError as exc:
        raise click.ClickException(str(exc)) from exc


def _configure_logging(verbose: bool, log_file):
    logger = logging.getLogger("giteadeploy")

    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)
        logger.setLevel(logging.DEBUG)
    else:
        logger.setLevel(logging.INFO)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG if verbose else logging.INFO)
        file_handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(message)s"))
        logger.addHandler(file_handler)


@click.command(cls=DeployCommand, context_settings=CONTEXT_SETTINGS)
@click.option(
    "-p",
    "--password",
    required=False,
    help="Database and initial admin password (default: auto-generated)",
)
@click.option(
    "-i",
    "--install-dir",
    required=False,
    type=click.Path(file_okay=False),
    help=f"Installation directory (default: {DEFAULT_INSTALL_DIR})",
)
@click.option(
    "-s",
    "--ssh-port",
    required=False,
    type=click.IntRange(1, 65535),
    help=f"SSH port for Git operations (default: {DEFAULT_SSH_PORT})",
)
@click.option(
    "-I",
    "--ip-address",
    required=False,
    help="Server IP address (default: auto-detected)",
)
@click.option("-d", "--domain", required=False, help="Domain name for Gitea (optional)")
@click.option(
    "--config",
    required=False,
    type=click.Path(),
    help=f"Path to a YAML configuration file. Defaults to {DEFAULT_CONFIG_FILE} if present.",
)
@click.option("-y", "--yes", "assume_yes", is_flag=True, default=None, help="Answer yes to all prompts.")
@click.option(
    "--start-delay",
    required=False,
    type=click.FloatRange(min=0),
    help=f"Seconds to wait before changing the host (default: {DEFAULT_START_DELAY})",
)
@click.option("--verbose", is_flag=True, default=None, help="Enable verbose logging")
@click.option("--log-file", type=click.Path(), help="Path to log file")
def install(password, install_dir, ssh_port, ip_address, domain, config, assume_yes, start_delay, verbose, log_file):
    """Install Gitea with PostgreSQL behind an HTTPS Nginx reverse proxy."""
    config_values = _load_config(config)

    verbose = bool(_resolve_option(verbose, config_values, "verbose", default=False))
    log_file = _resolve_option(log_file, config_values, "log_file")
    _configure_logging(verbose, log_file)

    try:
        installer = GiteaInstaller(
            password=_resolve_option(password, config_values, "password"),
            install_dir=str(_resolve_option(install_dir, config_values, "install_dir", default=DEFAULT_INSTALL_DIR)),
            ssh_port=_resolve_option(ssh_port, config_values, "ssh_port", default=DEFAULT_SSH_PORT),
            ip_address=_resolve_option(ip_address, config_values, "ip_address"),
            domain=_resolve_option(domain, config_values, "domain"),
            assume_yes=bool(_resolve_option(assume_yes, config_values, "assume_yes", default=False)),
            start_delay=float(
                _resolve_option(start_delay, config_values, "start_delay", default=DEFAULT_START_DELAY)
            ),
        )
    except (DeployError, ValueError) as exc:
        raise click.ClickException(str(exc)) from exc

    raise SystemExit(installer.run())


@click.command(cls=DeployCommand, context_settings=CONTEXT_SETTINGS)
@click.option(
    "-i",
    "--install-dir",
    required=False,
    type=click.Path(file_okay=False),
    help=f"Installation directory (default: {DEFAULT_INSTALL_DIR})",
)
@click.option(
    "-r",
    "--remove-data",
    is_flag=True,
    default=None,
    help="Remove data volumes (CAUTION: This will delete all repositories and data)",
)
@click.option(
    "--config",
    required=False,
    type=click.Path(),
    help=f"Path to a YAML configuration file. Defaults to {DEFAULT_CONFIG_FILE} if present.",
)
@click.option("-y", "--yes", "assume_yes", is_flag=True, default=None, help="Answer yes to all prompts.")
@click.option(
    "--start-delay",
    required=False,
    type=click.FloatRange(min=0),
    help=f"Seconds to wait before changing the host (default: {DEFAULT_START_DELAY})",
)
@click.option("--verbose", is_flag=True, default=None, help="Enable verbose logging")
@click.option("--log-file", type=click.Path(), help="Path to log file")
def uninstall(install_dir, remove_data, config, assume_yes, start_delay, verbose, log_file):
    """Remove a Gitea installation created by gitea-install."""
    config_values = _load_config(config)

    verbose = bool(_resolve_option(verbose, config_values, "verbose", default=False))
    log_file = _resolve_option(log_file, config_values, "log_file")
    _configure_logging(verbose, log_file)

    try:
        uninstaller = GiteaUninstaller(
            install_dir=str(_resolve_option(install_dir, config_values, "install_dir", default=DEFAULT_INSTALL_DIR)),
            remove_data=bool(_resolve_option(remove_data, config_values, "remove_data", default=False)),
            assume_yes=bool(_resolve_option(assume_yes, config_values, "assume_yes", default=False)),
            start_delay=float(
                _resolve_option(start_delay, config_values, "start_delay", default=DEFAULT_START_DELAY)
            ),
        )
    except (DeployError, ValueError) as exc:
        raise click.ClickException(str(exc)) from exc

    raise SystemExit(uninstaller.run())


if __name__ == "__main__":
    install()
