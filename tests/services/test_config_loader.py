import pytest

from giteadeploy.errors import DeployError
from giteadeploy.services.config_loader import ConfigLoader


def test_config_loader_loads_yaml_mapping(tmp_path):
    config_file = tmp_path / ".giteadeploy.yml"
    config_file.write_text(
        "install_dir: /srv/gitea\nssh_port: 2222\ndomain: git.example.com\n",
        encoding="utf-8",
    )

    loader = ConfigLoader()
    loaded = loader.load(str(config_file))

    assert loaded["install_dir"] == "/srv/gitea"
    assert loaded["ssh_port"] == 2222
    assert loaded["domain"] == "git.example.com"


def test_config_loader_rejects_unknown_keys(tmp_path):
    config_file = tmp_path / ".giteadeploy.yml"
    config_file.write_text("unknown_key: true\n", encoding="utf-8")

    loader = ConfigLoader()

    with pytest.raises(DeployError, match="Unknown configuration keys"):
        loader.load(str(config_file))


def test_config_loader_rejects_non_mapping(tmp_path):
    config_file = tmp_path / ".giteadeploy.yml"
    config_file.write_text("- a\n- b\n", encoding="utf-8")

    with pytest.raises(DeployError, match="YAML mapping"):
        ConfigLoader().load(str(config_file))


def test_config_loader_returns_empty_without_path():
    assert ConfigLoader().load(None) == {}


def test_config_loader_coerces_values(tmp_path):
    config_file = tmp_path / ".giteadeploy.yml"
    config_file.write_text(
        "password: 123456\nssh_port: '2222'\nstart_delay: 0\ndomain:\nassume_yes: true\n",
        encoding="utf-8",
    )

    loaded = ConfigLoader().load(str(config_file))

    assert loaded == {"password": "123456", "ssh_port": 2222, "start_delay": 0.0, "assume_yes": True}


@pytest.mark.parametrize(
    "content, message",
    [
        ("ssh_port: ssh\n", "must be an integer"),
        ("ssh_port: 70000\n", "between 1 and 65535"),
        ("start_delay: -1\n", "must not be negative"),
        ("start_delay: soon\n", "must be a number"),
        ("remove_data: 'yes please'\n", "must be true or false"),
        ("install_dir: [a, b]\n", "must be a string"),
    ],
)
def test_config_loader_rejects_badly_typed_values(tmp_path, content, message):
    config_file = tmp_path / ".giteadeploy.yml"
    config_file.write_text(content, encoding="utf-8")

    with pytest.raises(DeployError, match=message):
        ConfigLoader().load(str(config_file))
