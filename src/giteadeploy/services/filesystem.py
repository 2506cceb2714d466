"""Filesystem helpers for giteadeploy."""

import logging
import os
import shutil
import sys

from rich.console import Console

from giteadeploy.constants import DIR_MODE, FILE_MODE, SSL_DIR_RELPATH
from giteadeploy.errors import DeployError


class FileSystemService:
    """Encapsulates file and directory side effects."""

    def __init__(self, logger: logging.Logger, console: Console):
        self.logger = logger
        self.console = console

    def set_permissions(self, path: str, mode: int):
        if sys.platform == "win32":
            return

        try:
            os.chmod(path, mode)
        except OSError as exc:
            self.logger.warning("Could not set permissions on %s: %s", path, exc)

    def write_text(self, path: str, content: str, mode: int = FILE_MODE) -> str:
        os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
        try:
            with open(path, "w", encoding="utf-8", newline="\n") as file_obj:
                file_obj.write(content)
        except OSError as exc:
            raise DeployError(f"Could not write {path}: {exc}") from exc
        self.set_permissions(path, mode)
        self.logger.debug("Wrote %s", path)
        return path

    def prepare_install_dir(self, install_dir: str):
        for relpath in (SSL_DIR_RELPATH, os.path.join("nginx", "conf.d")):
            path = os.path.join(install_dir, relpath)
            try:
                os.makedirs(path, exist_ok=True)
            except OSError as exc:
                raise DeployError(f"Could not create {path}: {exc}") from exc
            self.set_permissions(path, DIR_MODE)
        self.set_permissions(install_dir, DIR_MODE)

    def force_symlink(self, target: str, link_path: str):
        """Points ``link_path`` at ``target``, replacing whatever is there."""
        os.makedirs(os.path.dirname(link_path) or ".", exist_ok=True)
        if os.path.lexists(link_path):
            os.remove(link_path)
        os.symlink(target, link_path)
        self.logger.debug("Linked %s -> %s", link_path, target)

    def remove_dir(self, path: str):
        if not os.path.exists(path):
            return
        try:
            shutil.rmtree(path)
        except OSError as exc:
            raise DeployError(f"Could not remove {path}: {exc}") from exc
        self.logger.debug("Removed directory: %s", path)
