import pytest

from giteadeploy.errors_catalog import actionable_error


def test_actionable_error_formats_message_with_suggested_action():
    message = actionable_error("install_dir_exists", path="/opt/gitea")

    assert "Installation directory /opt/gitea already exists." in message
    assert "Suggested action:" in message


def test_actionable_error_rejects_unknown_code():
    with pytest.raises(KeyError):
        actionable_error("not_a_real_code")
