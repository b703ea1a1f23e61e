from unittest.mock import patch

import pytest

from sfcleanup.client.session import get_salesforce_client


def config(**overrides):
    cfg = {
        "username": "admin@example.com",
        "password": "hunter2",
        "security_token": "tok",
        "login_url": "https://login.salesforce.com",
        "instance_url": None,
        "session_id": None,
        "api_version": "61.0",
        "auth_method": "password",
    }
    cfg.update(overrides)
    return cfg


@pytest.fixture
def login_config():
    with patch("sfcleanup.client.session.get_salesforce_login_config") as cfg:
        yield cfg


@pytest.fixture
def salesforce_cls():
    with patch("sfcleanup.client.session.Salesforce") as cls:
        yield cls


def test_password_login(login_config, salesforce_cls):
    login_config.return_value = config()

    sf = get_salesforce_client()

    assert sf is salesforce_cls.return_value
    salesforce_cls.assert_called_once_with(
        username="admin@example.com",
        password="hunter2",
        security_token="tok",
        domain="login",
        version="61.0",
    )


def test_sandbox_login_url_uses_test_domain(login_config, salesforce_cls):
    login_config.return_value = config(login_url="https://test.salesforce.com")

    get_salesforce_client()

    assert salesforce_cls.call_args.kwargs["domain"] == "test"


def test_target_org_selects_secret(login_config, salesforce_cls):
    login_config.return_value = config()

    with patch("sfcleanup.client.session.secret_id_for_org", return_value="sfcleanup/qa") as mapper:
        get_salesforce_client(target_org="qa", region_name="eu-west-1")

    mapper.assert_called_once_with("qa")
    login_config.assert_called_once_with(secret_id="sfcleanup/qa", region_name="eu-west-1")


def test_explicit_secret_id_wins(login_config, salesforce_cls):
    login_config.return_value = config()

    get_salesforce_client(target_org="qa", secret_id="other/secret")

    login_config.assert_called_once_with(secret_id="other/secret", region_name=None)


def test_session_auth(login_config, salesforce_cls):
    login_config.return_value = config(
        auth_method="session", instance_url="https://acme.my.salesforce.com", session_id="00D!abc"
    )

    get_salesforce_client()

    salesforce_cls.assert_called_once_with(
        instance_url="https://acme.my.salesforce.com", session_id="00D!abc", version="61.0"
    )


def test_missing_password_credentials(login_config, salesforce_cls):
    login_config.return_value = config(security_token=None)

    with pytest.raises(ValueError, match="Missing required Salesforce credentials"):
        get_salesforce_client()
    salesforce_cls.assert_not_called()


def test_unsupported_auth_method(login_config, salesforce_cls):
    login_config.return_value = config(auth_method="jwt")

    with pytest.raises(NotImplementedError):
        get_salesforce_client()
