from __future__ import annotations

import pytest

from showcase import config as config_mod
from showcase.config import DEFAULT_FEATURED_REPOS, Config
from showcase.errors import ConfigError

_ENV_VARS = (
    "GITHUB_USERNAME",
    "GITHUB_TOKEN",
    "FEATURED_REPOS",
    "LISTING_CACHE_TTL",
    "DETAIL_CACHE_TTL",
    "GITHUB_TIMEOUT",
    "APP_ENV",
    "CORS_ORIGINS",
    "PORT",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    monkeypatch.setattr(config_mod, "load_dotenv", lambda: None)
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults(monkeypatch):
    monkeypatch.setenv("GITHUB_USERNAME", "octo")
    config = Config.from_env()

    assert config.github_username == "octo"
    assert config.github_token == ""
    assert config.featured_repos == DEFAULT_FEATURED_REPOS
    assert config.listing_ttl == 600
    assert config.detail_ttl == 3600
    assert config.is_development


def test_overrides(monkeypatch):
    monkeypatch.setenv("GITHUB_USERNAME", "octo")
    monkeypatch.setenv("GITHUB_TOKEN", "secret")
    monkeypatch.setenv("FEATURED_REPOS", "one, two ,,three")
    monkeypatch.setenv("LISTING_CACHE_TTL", "60")
    monkeypatch.setenv("APP_ENV", "production")
    monkeypatch.setenv("CORS_ORIGINS", "https://a.example,https://b.example")
    config = Config.from_env()

    assert config.featured_repos == ("one", "two", "three")
    assert config.listing_ttl == 60
    assert not config.is_development
    assert config.cors_origins == ("https://a.example", "https://b.example")


def test_missing_username():
    with pytest.raises(ConfigError):
        Config.from_env()


def test_bad_number(monkeypatch):
    monkeypatch.setenv("GITHUB_USERNAME", "octo")
    monkeypatch.setenv("PORT", "eighty")
    with pytest.raises(ConfigError):
        Config.from_env()
