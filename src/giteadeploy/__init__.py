"""
giteadeploy - Gitea + PostgreSQL + Nginx deployment on Docker or Podman
"""

__version__ = "0.3.0"

from .errors import DeployError
from .installer import GiteaInstaller
from .uninstaller import GiteaUninstaller

__all__ = ["DeployError", "GiteaInstaller", "GiteaUninstaller"]
