"""Settings loading and startup helpers."""

import logging

import pydantic
import pytest

from pirelay.common.config import DEFAULT_INDEX_PATH, RelaySettings
from pirelay.common.logging import ContextFilter, correlation_id_ctx, payment_id_ctx
from pirelay.common.startup import startup_config
from pirelay.services.gateway.main import main


ENV_KEYS = ["PORT", "PI_SERVER_API_KEY", "PI_API_BASE", "PI_API_TIMEOUT_SECONDS", "MAX_BODY_BYTES"]


@pytest.fixture
def clean_env(monkeypatch):
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    return monkeypatch


def test_defaults(clean_env):
    settings = RelaySettings(_env_file=None)

    assert settings.port == 3000
    assert settings.pi_api_base == "https://api.minepi.com/v2"
    assert settings.max_body_bytes == 1_000_000
    assert settings.index_path == DEFAULT_INDEX_PATH
    assert not settings.api_key_configured


def test_environment_overrides(clean_env):
    clean_env.setenv("PORT", "8080")
    clean_env.setenv("PI_SERVER_API_KEY", "secret")
    clean_env.setenv("PI_API_BASE", "https://sandbox.example/v2")

    settings = RelaySettings(_env_file=None)

    assert settings.port == 8080
    assert settings.pi_server_api_key == "secret"
    assert settings.pi_api_base == "https://sandbox.example/v2"
    assert settings.api_key_configured


def test_settings_are_immutable(clean_env):
    settings = RelaySettings(_env_file=None)

    with pytest.raises(pydantic.ValidationError):
        settings.port = 1


def test_packaged_index_exists():
    assert DEFAULT_INDEX_PATH.is_file()


def test_startup_config_redacts_secrets(clean_env):
    clean_env.setenv("PI_SERVER_API_KEY", "secret")
    clean_env.setenv("PI_API_BASE", "https://sandbox.example/v2")

    config = startup_config("relay", ["PI_SERVER_API_KEY", "PI_API_BASE", "PORT"])

    assert config == {
        "service": "relay",
        "PI_SERVER_API_KEY": "<redacted>",
        "PI_API_BASE": "https://sandbox.example/v2",
        "PORT": "<unset>",
    }


def test_context_filter_tags_records():
    record = logging.LogRecord("pirelay", logging.INFO, __file__, 1, "hello", None, None)
    corr = correlation_id_ctx.set("corr-9")
    pay = payment_id_ctx.set("pay-9")
    try:
        assert ContextFilter("relay").filter(record)
    finally:
        correlation_id_ctx.reset(corr)
        payment_id_ctx.reset(pay)

    assert (record.service_name, record.correlation_id, record.payment_id) == ("relay", "corr-9", "pay-9")


def test_cli_refuses_to_start_without_key(clean_env, tmp_path):
    clean_env.chdir(tmp_path)

    with pytest.raises(SystemExit) as info:
        main()

    assert str(info.value) == "PI_SERVER_API_KEY is not set"
