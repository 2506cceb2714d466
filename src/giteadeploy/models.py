"""Shared domain models for giteadeploy."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class ContainerEngine(str, Enum):
    DOCKER = "docker"
    PODMAN = "podman"
    NONE = "none"


@dataclass(frozen=True)
class InstallConfig:
    """Resolved deployment parameters interpolated into every generated file."""

    db_password: str
    install_dir: str
    ssh_port: int
    ip_address: str
    domain: Optional[str] = None
    engine: ContainerEngine = ContainerEngine.NONE
    auto_password: bool = False

    @property
    def server_name(self) -> str:
        return self.domain or self.ip_address

    @property
    def engine_cli(self) -> str:
        return "podman" if self.engine == ContainerEngine.PODMAN else "docker"


@dataclass(frozen=True)
class UninstallConfig:
    install_dir: str
    remove_data: bool = False


@dataclass(frozen=True)
class DetectedEnvironment:
    """Snapshot of what the host offers before reconciliation."""

    engine: ContainerEngine
    engine_active: bool
    package_manager: Optional[str]
    podman_available: bool = False
