import pytest

from config import Config, load_config


def test_defaults(monkeypatch):
    for key in ("ASSISTANT_BASE_URL", "ASSISTANT_TIMEOUT", "SUPER_ADMIN_EMAIL", "PHONE_REGION", "SETTLEMENT_MAX_ATTEMPTS", "LOG_LEVEL"):
        monkeypatch.delenv(key, raising=False)
    config = load_config()

    assert config.assistant_base_url is None
    assert config.assistant_timeout == 10
    assert config.super_admin_email == "support@celstin.com"
    assert config.phone_region == "NG"
    assert config.settlement_max_attempts == 3


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("ASSISTANT_BASE_URL", "https://assistant.test")
    monkeypatch.setenv("SUPER_ADMIN_EMAIL", "Ops@Example.com")
    monkeypatch.setenv("PHONE_REGION", "gh")
    monkeypatch.setenv("SETTLEMENT_MAX_ATTEMPTS", "5")
    config = load_config()

    assert config.assistant_base_url == "https://assistant.test"
    assert config.super_admin_email == "ops@example.com"
    assert config.phone_region == "GH"
    assert config.settlement_max_attempts == 5


@pytest.mark.parametrize(
    "kwargs",
    [{"assistant_timeout": 0}, {"settlement_max_attempts": 0}, {"phone_region": "NGA"}],
)
def test_invalid_config(kwargs):
    with pytest.raises(ValueError):
        Config(**kwargs).validate()
