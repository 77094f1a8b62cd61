import pytest

from listings.core import config

_ENV_VARS = (
    "API_KEY",
    "PORT",
    "APP_ENV",
    "SCRAPE_TIMEOUT_SECONDS",
    "RATE_LIMIT_WINDOW_SECONDS",
    "RATE_LIMIT_MAX_REQUESTS",
    "DEFAULT_LIMIT",
)


def setup_function(function):
    config.get_settings.cache_clear()


def teardown_function(function):
    config.get_settings.cache_clear()


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(config, "load_dotenv", lambda: None)


def test_get_settings_reads_env(monkeypatch):
    monkeypatch.setenv("API_KEY", "secret")
    monkeypatch.setenv("PORT", "8081")
    monkeypatch.setenv("APP_ENV", "production")
    monkeypatch.setenv("SCRAPE_TIMEOUT_SECONDS", "7.5")
    monkeypatch.setenv("RATE_LIMIT_WINDOW_SECONDS", "60")
    monkeypatch.setenv("RATE_LIMIT_MAX_REQUESTS", "10")
    monkeypatch.setenv("DEFAULT_LIMIT", "5")

    settings = config.get_settings()

    assert settings.api_key == "secret"
    assert settings.port == 8081
    assert settings.app_env == "production"
    assert settings.scrape_timeout == 7.5
    assert settings.rate_limit_window_seconds == 60
    assert settings.rate_limit_max_requests == 10
    assert settings.default_limit == 5


def test_get_settings_defaults_and_warns_when_api_key_missing(caplog):
    with caplog.at_level("WARNING"):
        settings = config.get_settings()

    assert "API_KEY is not configured" in " ".join(caplog.messages)
    assert settings.api_key == ""
    assert settings.port == 3000
    assert settings.scrape_timeout == 15.0
    assert settings.rate_limit_window_seconds == 900
    assert settings.rate_limit_max_requests == 100
    assert settings.default_limit == 10


def test_get_settings_is_cached(monkeypatch):
    monkeypatch.setenv("API_KEY", "first")
    first = config.get_settings()
    monkeypatch.setenv("API_KEY", "second")

    assert config.get_settings() is first
    assert config.get_settings().api_key == "first"
