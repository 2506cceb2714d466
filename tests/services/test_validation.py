import pytest

from giteadeploy.errors import DeployError
from giteadeploy.services.validation import ValidationService


def test_validate_ip_address_accepts_dotted_quad():
    assert ValidationService().validate_ip_address(" 192.168.1.10 ") == "192.168.1.10"


@pytest.mark.parametrize("value", ["", "300.1.1.1", "::1", "gitea.local"])
def test_validate_ip_address_rejects_invalid_values(value):
    with pytest.raises(DeployError, match="Invalid IP address"):
        ValidationService().validate_ip_address(value)


def test_validate_domain_keeps_case_and_strips_trailing_dot():
    assert ValidationService().validate_domain(" Git.Example.COM. ") == "Git.Example.COM"


def test_validate_domain_treats_blank_as_absent():
    assert ValidationService().validate_domain("  ") is None
    assert ValidationService().validate_domain(None) is None


def test_validate_domain_rejects_bad_labels():
    with pytest.raises(DeployError, match="Invalid domain name"):
        ValidationService().validate_domain("-bad-.example.com")


@pytest.mark.parametrize("value", ["S3cr#t:pa/ss+", "secret:", "-leading-dash", "{braces}"])
def test_validate_password_allows_symbols(value):
    assert ValidationService().validate_password(value) == value


@pytest.mark.parametrize("value", ["has space", "dollar$sign", "tab\tchar", "", 'quo"te', "single'quote", "back\\slash"])
def test_validate_password_rejects_unsafe_characters(value):
    with pytest.raises(DeployError, match="password"):
        ValidationService().validate_password(value)


def test_validate_ssh_port_bounds():
    service = ValidationService()

    assert service.validate_ssh_port("2222") == 2222
    with pytest.raises(DeployError, match="between 1 and 65535"):
        service.validate_ssh_port(70000)
    with pytest.raises(DeployError, match="must be an integer"):
        service.validate_ssh_port("ssh")
