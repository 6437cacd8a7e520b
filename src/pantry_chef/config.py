"""
Engine configuration loaded from the environment (and a .env file if present).
"""

import logging
import os
from dataclasses import dataclass

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

DEFAULT_SPOONACULAR_BASE_URL = "https://api.spoonacular.com/recipes"


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning(f"[CONFIG] {name}={raw!r} is not a number, using {default}")
        return default


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning(f"[CONFIG] {name}={raw!r} is not an integer, using {default}")
        return default


@dataclass
class EngineConfig:
    """Runtime settings for PantryChefEngine."""

    spoonacular_api_key: str = ""
    spoonacular_base_url: str = DEFAULT_SPOONACULAR_BASE_URL
    data_dir: str = "data"
    source_timeout_seconds: float = 4.0  # Per-source deadline inside the aggregator
    http_timeout_seconds: float = 8.0
    external_cache_ttl_seconds: int = 600
    cache_ttl_hours: int = 24
    cache_max_entries: int = 50
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, load_env_file: bool = True) -> "EngineConfig":
        """Build a config from environment variables.

        Args:
            load_env_file: Whether to load a .env file first

        Returns:
            EngineConfig with defaults for anything unset or malformed
        """
        if load_env_file:
            load_dotenv()

        return cls(
            spoonacular_api_key=os.environ.get("SPOONACULAR_API_KEY", ""),
            spoonacular_base_url=os.environ.get(
                "SPOONACULAR_BASE_URL", DEFAULT_SPOONACULAR_BASE_URL
            ),
            data_dir=os.environ.get("PANTRY_CHEF_DATA_DIR", "data"),
            source_timeout_seconds=_env_float("PANTRY_CHEF_SOURCE_TIMEOUT", 4.0),
            http_timeout_seconds=_env_float("PANTRY_CHEF_HTTP_TIMEOUT", 8.0),
            external_cache_ttl_seconds=_env_int("PANTRY_CHEF_EXTERNAL_CACHE_TTL", 600),
            cache_ttl_hours=_env_int("PANTRY_CHEF_CACHE_TTL_HOURS", 24),
            cache_max_entries=_env_int("PANTRY_CHEF_CACHE_MAX_ENTRIES", 50),
            log_level=os.environ.get("PANTRY_CHEF_LOG_LEVEL", "INFO").upper(),
        )
