from giteadeploy.models import ContainerEngine, InstallConfig


def test_server_name_prefers_domain():
    config = InstallConfig(db_password="x", install_dir="/opt/gitea", ssh_port=222, ip_address="10.0.0.1", domain="git.local")

    assert config.server_name == "git.local"


def test_server_name_falls_back_to_ip_address():
    config = InstallConfig(db_password="x", install_dir="/opt/gitea", ssh_port=222, ip_address="10.0.0.1")

    assert config.server_name == "10.0.0.1"
    assert config.engine_cli == "docker"


def test_engine_cli_for_podman():
    config = InstallConfig(
        db_password="x",
        install_dir="/opt/gitea",
        ssh_port=222,
        ip_address="10.0.0.1",
        engine=ContainerEngine.PODMAN,
    )

    assert config.engine_cli == "podman"
