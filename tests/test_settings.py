import logging

import pytest

from blueprints.errors import ConfigurationError, UnknownProviderError
from blueprints.settings import ConfigManager, EnvironmentConfig, ProviderSettings, load_config_from_env


def test_defaults_enable_printify_and_printful():
    config = load_config_from_env({})

    assert list(config.providers) == ["printify", "printful", "gooten", "gelato"]
    assert config.providers["printify"].enabled is True
    assert config.providers["printful"].enabled is True
    assert config.providers["gooten"].enabled is False
    assert config.features.caching_enabled is True
    assert config.features.debug_mode is False
    assert config.cache.ttl == 3600


def test_provider_and_global_variables_are_read():
    config = load_config_from_env(
        {
            "GELATO_API_KEY": "gel-key",
            "GELATO_ENABLED": "true",
            "GELATO_ENVIRONMENT": "Sandbox",
            "GELATO_BASE_URL": "https://sandbox.gelato.test/v3",
            "GELATO_WEBHOOK_SECRET": "whsec",
            "PRINTFUL_ENABLED": "0",
            "BLUEPRINTS_DEBUG": "yes",
            "BLUEPRINTS_CACHE_TTL": "120",
            "BLUEPRINTS_CACHING_ENABLED": "false",
        }
    )

    gelato = config.providers["gelato"]
    assert gelato.api_key == "gel-key"
    assert gelato.enabled is True
    assert gelato.environment == "sandbox"
    assert gelato.custom_endpoint == "https://sandbox.gelato.test/v3"
    assert gelato.webhook_secret == "whsec"
    assert config.providers["printful"].enabled is False
    assert config.features.debug_mode is True
    assert config.features.caching_enabled is False
    assert config.cache.ttl == 120


def test_invalid_environment_is_rejected():
    with pytest.raises(ConfigurationError, match="PRINTIFY_ENVIRONMENT"):
        load_config_from_env({"PRINTIFY_ENVIRONMENT": "staging"})


def test_non_integer_cache_setting_is_rejected():
    with pytest.raises(ConfigurationError, match="BLUEPRINTS_CACHE_TTL"):
        load_config_from_env({"BLUEPRINTS_CACHE_TTL": "soon"})


def test_dotenv_file_seeds_environment(tmp_path, monkeypatch):
    for key in ("GOOTEN_API_KEY", "GOOTEN_ENABLED"):
        # setenv first so teardown also removes what load_dotenv writes
        monkeypatch.setenv(key, "")
        monkeypatch.delenv(key)
    dotenv = tmp_path / ".env"
    dotenv.write_text("GOOTEN_API_KEY=from-dotenv\nGOOTEN_ENABLED=true\n")

    manager = ConfigManager.from_env(dotenv_path=str(dotenv))

    assert manager.get_provider_settings("gooten").api_key == "from-dotenv"
    assert manager.is_provider_enabled("gooten") is True


def test_enabled_requires_api_key(env_config):
    env_config.providers["gelato"] = ProviderSettings(enabled=True)
    manager = ConfigManager(env_config)

    assert manager.is_provider_enabled("gelato") is False
    assert manager.get_enabled_providers() == ["printify", "printful", "gooten"]


def test_enabled_without_key_logs_warning(env_config, caplog):
    env_config.providers["gelato"] = ProviderSettings(enabled=True)
    with caplog.at_level(logging.WARNING, logger="blueprints.settings"):
        ConfigManager(env_config)
    assert "gelato is enabled but has no API key" in caplog.text


def test_unknown_provider_settings(env_config):
    manager = ConfigManager(env_config)
    with pytest.raises(UnknownProviderError):
        manager.get_provider_settings("acme")
    with pytest.raises(UnknownProviderError):
        manager.update_provider_config("acme", enabled=True)


def test_get_config_returns_a_copy(env_config):
    manager = ConfigManager(env_config)
    manager.get_config().providers["printify"].api_key = "mutated"
    assert manager.get_provider_settings("printify").api_key == "pfy-key"


def test_update_config_deep_merges(env_config):
    manager = ConfigManager(env_config)

    updated = manager.update_config({"features": {"debug_mode": True}, "cache": {"ttl": 10}})

    assert updated.features.debug_mode is True
    assert updated.features.caching_enabled is True
    assert updated.cache.ttl == 10
    assert updated.cache.max_size == 1000


def test_update_provider_config(env_config):
    manager = ConfigManager(env_config)

    settings = manager.update_provider_config("gelato", api_key="gel-key", enabled=True)

    assert settings.enabled is True
    assert manager.get_enabled_providers() == ["printify", "printful", "gooten", "gelato"]


@pytest.mark.parametrize(
    "updates",
    [
        {"cache": {"ttl": -1}},
        {"cache": {"max_size": 0}},
        {"cache": {"stale_while_revalidate": -5}},
        {"providers": {"printify": {"custom_endpoint": "ftp://printify.test"}}},
    ],
)
def test_invalid_updates_are_rejected_and_config_kept(env_config, updates):
    manager = ConfigManager(env_config)
    before = manager.get_config()

    with pytest.raises(ConfigurationError):
        manager.update_config(updates)

    assert manager.get_config() == before


def test_webhooks_without_secret_warn(caplog):
    config = EnvironmentConfig(
        providers={"printify": ProviderSettings(api_key="k", enabled=True)},
        features={"webhooks_enabled": True},
    )
    with caplog.at_level(logging.WARNING, logger="blueprints.settings"):
        ConfigManager(config)
    assert "no webhook secret" in caplog.text
