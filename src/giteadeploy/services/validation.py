"""Input validation helpers for giteadeploy."""

import ipaddress
import re
from typing import Optional

from giteadeploy.errors import DeployError
from giteadeploy.errors_catalog import actionable_error


class ValidationService:
    """Validates values that end up interpolated into generated files."""

    HOSTNAME_LABEL = re.compile(r"^(?!-)[A-Za-z0-9-]{1,63}(?<!-)$")
    # Compose interpolates `$`; quotes and backslash would need escaping in the manifest.
    FORBIDDEN_PASSWORD_CHARS = set("$\"'\\")

    def validate_ip_address(self, value: str) -> str:
        clean_value = (value or "").strip()
        try:
            address = ipaddress.ip_address(clean_value)
        except ValueError as exc:
            raise DeployError(actionable_error("invalid_ip_address", value=value)) from exc

        if address.version != 4:
            raise DeployError(actionable_error("invalid_ip_address", value=value))
        return clean_value

    def validate_domain(self, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None

        clean_value = value.strip().rstrip(".")
        if not clean_value:
            return None

        labels = clean_value.split(".")
        if len(clean_value) > 253 or not all(self.HOSTNAME_LABEL.match(label) for label in labels):
            raise DeployError(actionable_error("invalid_domain", value=value))
        return clean_value

    def validate_password(self, value: str) -> str:
        if not value:
            raise DeployError(actionable_error("invalid_password"))

        for char in value:
            if char.isspace() or not char.isprintable() or char in self.FORBIDDEN_PASSWORD_CHARS:
                raise DeployError(actionable_error("invalid_password"))
        return value

    def validate_ssh_port(self, value: int) -> int:
        try:
            port = int(value)
        except (TypeError, ValueError) as exc:
            raise DeployError(f"SSH port must be an integer, got: {value}") from exc

        if not 1 <= port <= 65535:
            raise DeployError(f"SSH port must be between 1 and 65535, got: {port}")
        return port
