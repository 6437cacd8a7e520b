"""
Unit tests for environment configuration.
"""

import pytest

from pantry_chef.config import DEFAULT_SPOONACULAR_BASE_URL, EngineConfig

ENV_VARS = [
    "SPOONACULAR_API_KEY",
    "SPOONACULAR_BASE_URL",
    "PANTRY_CHEF_DATA_DIR",
    "PANTRY_CHEF_SOURCE_TIMEOUT",
    "PANTRY_CHEF_HTTP_TIMEOUT",
    "PANTRY_CHEF_EXTERNAL_CACHE_TTL",
    "PANTRY_CHEF_CACHE_TTL_HOURS",
    "PANTRY_CHEF_CACHE_MAX_ENTRIES",
    "PANTRY_CHEF_LOG_LEVEL",
]


@pytest.fixture
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_defaults(clean_env):
    config = EngineConfig.from_env(load_env_file=False)

    assert config.spoonacular_api_key == ""
    assert config.spoonacular_base_url == DEFAULT_SPOONACULAR_BASE_URL
    assert config.source_timeout_seconds == 4.0
    assert config.cache_ttl_hours == 24
    assert config.cache_max_entries == 50


def test_reads_environment(clean_env):
    clean_env.setenv("SPOONACULAR_API_KEY", "abc123")
    clean_env.setenv("PANTRY_CHEF_DATA_DIR", "/tmp/chef")
    clean_env.setenv("PANTRY_CHEF_SOURCE_TIMEOUT", "1.5")
    clean_env.setenv("PANTRY_CHEF_CACHE_MAX_ENTRIES", "10")
    clean_env.setenv("PANTRY_CHEF_LOG_LEVEL", "debug")

    config = EngineConfig.from_env(load_env_file=False)

    assert config.spoonacular_api_key == "abc123"
    assert config.data_dir == "/tmp/chef"
    assert config.source_timeout_seconds == 1.5
    assert config.cache_max_entries == 10
    assert config.log_level == "DEBUG"


@pytest.mark.parametrize("name,value,attr,default", [
    ("PANTRY_CHEF_SOURCE_TIMEOUT", "soon", "source_timeout_seconds", 4.0),
    ("PANTRY_CHEF_CACHE_TTL_HOURS", "1.5", "cache_ttl_hours", 24),
    ("PANTRY_CHEF_EXTERNAL_CACHE_TTL", "", "external_cache_ttl_seconds", 600),
])
def test_malformed_values_fall_back(clean_env, name, value, attr, default):
    clean_env.setenv(name, value)
    assert getattr(EngineConfig.from_env(load_env_file=False), attr) == default

