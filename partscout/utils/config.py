"""
Configuration management for PartScout.
Loads and validates settings from YAML files and environment variables.
"""

import os
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field

from partscout.utils.dotenv import load_dotenv_if_present


class GeneralConfig(BaseModel):
    """General configuration."""

    project_name: str = "partscout"
    version: str = "0.1.0"
    log_level: str = "INFO"
    logs_dir: str = "logs"
    log_to_file: bool = False


class SiteConfig(BaseModel):
    """Target site conventions."""

    base_url: str = "https://www.partselect.com"
    # Search endpoint redirects to the canonical detail page on an exact hit
    search_url: str = "https://www.partselect.com/api/search/?searchterm={query}"
    detail_url_pattern: str = r"^https?://[^/]+/PS\d+[^/?#]*\.htm"
    model_path: str = "/Models/{model}/"
    help_path: str = "/Repair/Help/{slug}/"


class BrowserConfig(BaseModel):
    """Browser configuration.

    A single Chromium process is shared by all fetches; each fetch gets its own
    browser context.
    """

    headless: bool = True
    launch_args: list[str] = Field(
        default_factory=lambda: ["--no-sandbox", "--disable-setuid-sandbox"]
    )
    user_agent: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    )
    viewport_width: int = 1920
    viewport_height: int = 1080
    navigation_timeout_seconds: float = 30.0
    wait_until: str = "networkidle"
    idle_timeout_seconds: float = 180.0


class RateLimitConfig(BaseModel):
    """Sliding-window limit for outbound navigations."""

    limit: int = Field(default=60, ge=1)
    window_seconds: float = Field(default=60.0, gt=0)


class FallbackSearchConfig(BaseModel):
    """External search engine used when the site search fails."""

    enabled: bool = True
    search_url: str = "https://html.duckduckgo.com/html/?q={query}"
    site_domain: str = "partselect.com"
    request_timeout_seconds: float = 15.0


class ExtractionConfig(BaseModel):
    """Extraction rule overrides."""

    # Relative to the config directory; missing file means built-in rules only
    rules_file: str = "extraction_rules.yaml"


class Settings(BaseModel):
    """Main settings container."""

    general: GeneralConfig = Field(default_factory=GeneralConfig)
    site: SiteConfig = Field(default_factory=SiteConfig)
    browser: BrowserConfig = Field(default_factory=BrowserConfig)
    rate_limit: RateLimitConfig = Field(default_factory=RateLimitConfig)
    fallback_search: FallbackSearchConfig = Field(default_factory=FallbackSearchConfig)
    extraction: ExtractionConfig = Field(default_factory=ExtractionConfig)


def deep_merge(base: dict, override: dict) -> dict:
    """Deep merge two dictionaries.

    Args:
        base: Base dictionary.
        override: Override dictionary.

    Returns:
        Merged dictionary.
    """
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def get_config_dir() -> Path:
    """Get the configuration directory (PARTSCOUT_CONFIG_DIR or ./config)."""
    return Path(os.environ.get("PARTSCOUT_CONFIG_DIR", "config"))


def load_yaml_with_local_override(
    config_dir: Path,
    filename: str,
    section_key: str | None = None,
) -> dict[str, Any]:
    """Load a YAML file and apply the matching section of local.yaml.

    Args:
        config_dir: Configuration directory path.
        filename: YAML filename (e.g., "settings.yaml").
        section_key: Key in local.yaml for overrides.
                     Defaults to filename without extension.

    Returns:
        Merged configuration dictionary.
    """
    config: dict[str, Any] = {}

    base_path = config_dir / filename
    if base_path.exists():
        with open(base_path, encoding="utf-8") as f:
            config = yaml.safe_load(f) or {}

    local_path = config_dir / "local.yaml"
    if local_path.exists():
        with open(local_path, encoding="utf-8") as f:
            local_overrides = yaml.safe_load(f) or {}
        if section_key is None:
            section_key = Path(filename).stem
        if isinstance(local_overrides.get(section_key), dict):
            config = deep_merge(config, local_overrides[section_key])

    return config


def _parse_env_value(value: str) -> Any:
    """Parse an environment string as bool, int or float where possible."""
    if value.lower() in ("true", "false"):
        return value.lower() == "true"
    try:
        if "." in value:
            return float(value)
        return int(value)
    except ValueError:
        return value


def _apply_env_overrides(config: dict[str, Any]) -> dict[str, Any]:
    """Apply environment variable overrides.

    Environment variables are prefixed with PARTSCOUT_ and use double
    underscores for nested keys.

    Example:
        PARTSCOUT_RATE_LIMIT__LIMIT=30

    Args:
        config: Configuration dictionary.

    Returns:
        Configuration with environment overrides.
    """
    prefix = "PARTSCOUT_"

    for key, value in os.environ.items():
        if not key.startswith(prefix) or key == "PARTSCOUT_CONFIG_DIR":
            continue

        key_path = key[len(prefix) :].lower().split("__")
        if len(key_path) < 2:
            continue

        current = config
        for part in key_path[:-1]:
            if not isinstance(current.get(part), dict):
                current[part] = {}
            current = current[part]

        current[key_path[-1]] = _parse_env_value(value)

    return config


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get application settings.

    Settings are loaded from:
    1. Default values
    2. config/settings.yaml (+ settings section of config/local.yaml)
    3. Environment variables, including a project .env (highest priority)

    Returns:
        Settings instance.
    """
    load_dotenv_if_present()

    config = load_yaml_with_local_override(get_config_dir(), "settings.yaml", "settings")
    config = _apply_env_overrides(config)

    return Settings(**config)


def get_project_root() -> Path:
    """Get the project root directory."""
    # This file lives at partscout/utils/config.py
    return Path(__file__).parent.parent.parent
