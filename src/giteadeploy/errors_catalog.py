"""Actionable error catalog for giteadeploy."""

from typing import Dict

_ERROR_MESSAGES: Dict[str, Dict[str, str]] = {
    "ip_not_detected": {
        "what": "Could not detect server IP address.",
        "next": "Provide it explicitly with `-I IP_ADDRESS`.",
    },
    "invalid_ip_address": {
        "what": "Invalid IP address: {value}",
        "next": "Use an IPv4 dotted-quad address such as `192.168.1.10`.",
    },
    "invalid_domain": {
        "what": "Invalid domain name: {value}",
        "next": "Use a hostname such as `git.example.com`.",
    },
    "invalid_password": {
        "what": "The password contains characters that cannot be written to the compose manifest.",
        "next": "Avoid whitespace, quotes, backslash and `$`, or omit `-p` to auto-generate one.",
    },
    "install_dir_exists": {
        "what": "Installation directory {path} already exists.",
        "next": "Choose a different directory with `-i` or allow its removal.",
    },
    "install_dir_missing": {
        "what": "Installation directory {path} does not exist.",
        "next": "Pass the directory used at install time with `-i`.",
    },
    "compose_file_missing": {
        "what": "docker-compose.yml not found in {path}.",
        "next": "This does not appear to be a Gitea installation directory; check the `-i` value.",
    },
    "unsupported_package_manager": {
        "what": "Unsupported package manager.",
        "next": "Install {package} manually and run the installer again.",
    },
    "pip_missing": {
        "what": "pip3 not found; podman-compose cannot be installed.",
        "next": "Install python3-pip first.",
    },
}


def actionable_error(code: str, **kwargs: str) -> str:
    if code not in _ERROR_MESSAGES:
        raise KeyError(f"Unknown error catalog key: {code}")

    template = _ERROR_MESSAGES[code]
    what = template["what"].format(**kwargs)
    next_step = template["next"].format(**kwargs)
    return f"{what} Suggested action: {next_step}"
