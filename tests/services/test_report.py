import stat

from giteadeploy.models import ContainerEngine, InstallConfig
from giteadeploy.services.filesystem import FileSystemService
from giteadeploy.services.report import ReportWriter


class DummyLogger:
    def __init__(self):
        self.warnings = []

    def debug(self, *_args, **_kwargs):
        return None

    def warning(self, msg, *args, **_kwargs):
        self.warnings.append(msg % args if args else msg)


class RecordingConsole:
    def __init__(self):
        self.lines = []

    def print(self, *args, **_kwargs):
        self.lines.append(" ".join(str(arg) for arg in args))

    @property
    def text(self):
        return "\n".join(self.lines)


def _writer(console=None, logger=None) -> ReportWriter:
    logger = logger or DummyLogger()
    console = console or RecordingConsole()
    filesystem_service = FileSystemService(logger=logger, console=console)
    return ReportWriter(logger=logger, console=console, filesystem_service=filesystem_service)


def _config(**overrides) -> InstallConfig:
    values = {
        "db_password": "Abc123def456GHI7",
        "install_dir": "/opt/gitea",
        "ssh_port": 222,
        "ip_address": "192.168.1.20",
        "engine": ContainerEngine.DOCKER,
    }
    values.update(overrides)
    return InstallConfig(**values)


def test_render_readme_for_ip_install():
    content = _writer().render_readme(_config(), ["docker", "compose"])

    assert "- Gitea Web Interface: https://192.168.1.20" in content
    assert "- SSH Access: ssh://git@192.168.1.20:222" in content
    assert "- Database Password: Abc123def456GHI7" in content
    assert "- View logs: `docker compose logs -f`" in content
    assert "docker exec -t gitea-db pg_dumpall" in content
    assert "## Domain Configuration" not in content


def test_render_readme_for_domain_install():
    content = _writer().render_readme(_config(domain="git.example.com"), ["docker-compose"])

    assert "- Gitea Web Interface: https://git.example.com" in content
    assert "- IP Address: 192.168.1.20" in content
    assert "## Domain Configuration" in content
    assert "192.168.1.20 git.example.com" in content


def test_render_readme_for_podman_lists_both_compose_commands():
    config = _config(engine=ContainerEngine.PODMAN)

    content = _writer().render_readme(config, ["podman-compose"])

    assert "- Restart services: `podman-compose restart` or `docker-compose restart`" in content
    assert "podman run --rm --volumes-from gitea" in content
    assert "- Container Engine: podman" in content


def test_write_readme_is_private(tmp_path):
    config = _config(install_dir=str(tmp_path))

    path = _writer().write_readme(config, ["docker", "compose"])

    assert stat.S_IMODE(tmp_path.joinpath("README.md").stat().st_mode) == 0o600
    assert path == str(tmp_path / "README.md")


def test_print_plan_hides_supplied_password():
    console = RecordingConsole()

    _writer(console=console).print_plan(
        ip_address="10.0.0.1",
        domain=None,
        password="secret-value",
        auto_password=False,
        install_dir="/opt/gitea",
        ssh_port=222,
    )

    assert "secret-value" not in console.text
    assert "Database Password: (as provided)" in console.text


def test_print_summary_warns_about_missing_containers():
    console = RecordingConsole()
    logger = DummyLogger()

    _writer(console=console, logger=logger).print_summary(_config(), ["gitea-nginx"])

    assert "Warning: Not all containers are running!" in console.text
    assert "docker logs gitea-nginx" in console.text
    assert logger.warnings == ["Containers not running: gitea-nginx"]


def test_print_summary_shows_generated_password():
    console = RecordingConsole()

    _writer(console=console).print_summary(_config(auto_password=True), [])

    assert "Gitea has been successfully installed!" in console.text
    assert "Database Password: Abc123def456GHI7" in console.text
