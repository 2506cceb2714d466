from click.testing import CliRunner

import giteadeploy.cli as cli_module
from giteadeploy.errors import DeployError


def _fake(captured, exit_code=0):
    class FakeCommand:
        def __init__(self, **kwargs):
            captured.update(kwargs)

        def run(self):
            return exit_code

    return FakeCommand


def test_install_help_exits_zero_without_running(monkeypatch):
    captured = {}
    monkeypatch.setattr(cli_module, "GiteaInstaller", _fake(captured))

    result = CliRunner().invoke(cli_module.install, ["-h"])

    assert result.exit_code == 0
    assert "--ssh-port" in result.output
    assert "-I, --ip-address" in result.output
    assert captured == {}


def test_uninstall_help_exits_zero_without_running(monkeypatch):
    captured = {}
    monkeypatch.setattr(cli_module, "GiteaUninstaller", _fake(captured))

    result = CliRunner().invoke(cli_module.uninstall, ["--help"])

    assert result.exit_code == 0
    assert "-r, --remove-data" in result.output
    assert captured == {}


def test_install_passes_short_options(monkeypatch, tmp_path):
    captured = {}
    monkeypatch.setattr(cli_module, "GiteaInstaller", _fake(captured))
    monkeypatch.chdir(tmp_path)

    result = CliRunner().invoke(
        cli_module.install,
        ["-p", "Secret123", "-i", "/srv/gitea", "-s", "2222", "-I", "10.1.1.1", "-d", "git.example.com"],
    )

    assert result.exit_code == 0
    assert captured["password"] == "Secret123"
    assert captured["install_dir"] == "/srv/gitea"
    assert captured["ssh_port"] == 2222
    assert captured["ip_address"] == "10.1.1.1"
    assert captured["domain"] == "git.example.com"
    assert captured["assume_yes"] is False


def test_install_defaults(monkeypatch, tmp_path):
    captured = {}
    monkeypatch.setattr(cli_module, "GiteaInstaller", _fake(captured))
    monkeypatch.chdir(tmp_path)

    result = CliRunner().invoke(cli_module.install, [])

    assert result.exit_code == 0
    assert captured["password"] is None
    assert captured["install_dir"] == "/opt/gitea"
    assert captured["ssh_port"] == 222
    assert captured["ip_address"] is None
    assert captured["start_delay"] == 5.0


def test_install_uses_config_and_allows_cli_override(monkeypatch, tmp_path):
    config_file = tmp_path / "deploy.yml"
    config_file.write_text(
        "ssh_port: 2022\n" "domain: git.internal\n" "install_dir: /data/gitea\n" "start_delay: 0\n",
        encoding="utf-8",
    )
    captured = {}
    monkeypatch.setattr(cli_module, "GiteaInstaller", _fake(captured))

    result = CliRunner().invoke(cli_module.install, ["--config", str(config_file), "-s", "2200"])

    assert result.exit_code == 0
    assert captured["ssh_port"] == 2200
    assert captured["domain"] == "git.internal"
    assert captured["install_dir"] == "/data/gitea"
    assert captured["start_delay"] == 0.0


def test_uninstall_uses_default_config_file_when_present(monkeypatch, tmp_path):
    (tmp_path / ".giteadeploy.yml").write_text("install_dir: /srv/gitea\nremove_data: true\n", encoding="utf-8")
    captured = {}
    monkeypatch.setattr(cli_module, "GiteaUninstaller", _fake(captured))
    monkeypatch.chdir(tmp_path)

    result = CliRunner().invoke(cli_module.uninstall, ["-y"])

    assert result.exit_code == 0
    assert captured["install_dir"] == "/srv/gitea"
    assert captured["remove_data"] is True
    assert captured["assume_yes"] is True


def test_unknown_option_exits_one(monkeypatch):
    captured = {}
    monkeypatch.setattr(cli_module, "GiteaInstaller", _fake(captured))

    result = CliRunner().invoke(cli_module.install, ["-x"])

    assert result.exit_code == 1
    assert "No such option" in result.output
    assert captured == {}


def test_out_of_range_port_exits_one(monkeypatch):
    monkeypatch.setattr(cli_module, "GiteaInstaller", _fake({}))

    result = CliRunner().invoke(cli_module.install, ["-s", "70000"])

    assert result.exit_code == 1


def test_invalid_config_key_exits_one(monkeypatch, tmp_path):
    config_file = tmp_path / "deploy.yml"
    config_file.write_text("unknown_key: 1\n", encoding="utf-8")
    monkeypatch.setattr(cli_module, "GiteaInstaller", _fake({}))

    result = CliRunner().invoke(cli_module.install, ["--config", str(config_file)])

    assert result.exit_code == 1
    assert "Unknown configuration keys: unknown_key" in result.output


def test_installer_validation_error_exits_one(monkeypatch, tmp_path):
    class RejectingInstaller:
        def __init__(self, **_kwargs):
            raise DeployError("Invalid IP address: nope")

    monkeypatch.setattr(cli_module, "GiteaInstaller", RejectingInstaller)
    monkeypatch.chdir(tmp_path)

    result = CliRunner().invoke(cli_module.install, ["-I", "nope"])

    assert result.exit_code == 1
    assert "Invalid IP address: nope" in result.output


def test_installer_failure_propagates_exit_code(monkeypatch, tmp_path):
    monkeypatch.setattr(cli_module, "GiteaInstaller", _fake({}, exit_code=1))
    monkeypatch.chdir(tmp_path)

    result = CliRunner().invoke(cli_module.install, [])

    assert result.exit_code == 1


def test_badly_typed_config_value_exits_one(monkeypatch, tmp_path):
    config_file = tmp_path / "deploy.yml"
    config_file.write_text("ssh_port: ssh\n", encoding="utf-8")
    captured = {}
    monkeypatch.setattr(cli_module, "GiteaInstaller", _fake(captured))

    result = CliRunner().invoke(cli_module.install, ["--config", str(config_file)])

    assert result.exit_code == 1
    assert "Config key 'ssh_port' must be an integer" in result.output
    assert captured == {}
