"""Configuration loader for giteadeploy."""

from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from giteadeploy.errors import DeployError


class ConfigLoader:
    """Loads YAML configuration files for CLI defaults.

    Values are coerced to the types the matching CLI options produce, so a
    config file and the command line feed the installer the same way.
    """

    STRING_KEYS = {"password", "install_dir", "ip_address", "domain", "log_file"}
    FLAG_KEYS = {"verbose", "assume_yes", "remove_data"}
    SUPPORTED_KEYS = STRING_KEYS | FLAG_KEYS | {"ssh_port", "start_delay"}

    def load(self, config_path: Optional[str]) -> Dict[str, Any]:
        if not config_path:
            return {}

        path = Path(config_path)
        if not path.exists():
            raise DeployError(f"Config file not found: {config_path}")

        try:
            parsed = yaml.safe_load(path.read_text(encoding="utf-8"))
        except (yaml.YAMLError, OSError) as exc:
            raise DeployError(f"Invalid config file '{config_path}': {exc}") from exc

        if parsed is None:
            return {}
        if not isinstance(parsed, dict):
            raise DeployError("Config file must contain a YAML mapping at the root.")

        unknown = sorted(str(key) for key in set(parsed.keys()) - self.SUPPORTED_KEYS)
        if unknown:
            unknown_list = ", ".join(unknown)
            raise DeployError(f"Unknown configuration keys: {unknown_list}")

        # An empty value (`domain:`) means the key was left unset.
        return {key: self._coerce(key, value) for key, value in parsed.items() if value is not None}

    def _coerce(self, key: str, value: Any) -> Any:
        if key in self.FLAG_KEYS:
            if not isinstance(value, bool):
                raise DeployError(f"Config key '{key}' must be true or false, got: {value!r}")
            return value

        if key in self.STRING_KEYS:
            # YAML reads `password: 123456` as an int.
            if isinstance(value, (dict, list, bool)):
                raise DeployError(f"Config key '{key}' must be a string, got: {value!r}")
            return str(value)

        if key == "ssh_port":
            if isinstance(value, bool):
                raise DeployError(f"Config key 'ssh_port' must be an integer, got: {value!r}")
            try:
                port = int(value)
            except (TypeError, ValueError) as exc:
                raise DeployError(f"Config key 'ssh_port' must be an integer, got: {value!r}") from exc
            if not 1 <= port <= 65535:
                raise DeployError(f"Config key 'ssh_port' must be between 1 and 65535, got: {port}")
            return port

        if isinstance(value, bool):
            raise DeployError(f"Config key 'start_delay' must be a number, got: {value!r}")
        try:
            delay = float(value)
        except (TypeError, ValueError) as exc:
            raise DeployError(f"Config key 'start_delay' must be a number, got: {value!r}") from exc
        if delay < 0:
            raise DeployError(f"Config key 'start_delay' must not be negative, got: {value!r}")
        return delay
