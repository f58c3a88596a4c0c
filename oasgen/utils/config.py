"""Configuration loading for oasgen.

Reads config/oasgen.yaml on top of built-in defaults. Environment variables
take precedence for secrets.
"""

import copy
import logging
import os
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("config/oasgen.yaml")

TOKEN_ENV_VAR = "OASGEN_API_TOKEN"

DEFAULT_CONFIG: dict[str, Any] = {
    "document": {
        "openapi": "3.0.0",
        "version": "1.0.0",
        "contact": {
            "name": "Drivly support, bug reports, and feature requests",
            "email": "developers@driv.ly",
        },
        "server_description": "Production",
    },
    "fetch": {
        "proxy_url": "",
        "api_token": "",
        "timeout_seconds": 30,
        "max_concurrency": 10,
        "follow_redirects": True,
    },
    "assembly": {
        "strict": False,
    },
    "viewer_url": "https://elements-demo.stoplight.io/?spec=https://{hostname}/api/oas",
    "host_aliases": {
        "roled.org": "time.series.do",
    },
    "output": {
        "format": "json",
        "indent": 2,
    },
}


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Merge override into base recursively, returning base."""
    for key, value in override.items():
        existing = base.get(key)
        if isinstance(existing, dict) and isinstance(value, dict):
            _deep_merge(existing, value)
        else:
            base[key] = value
    return base


def load_config(config_path: Path | None = None) -> dict[str, Any]:
    """Load configuration from a YAML file merged over the defaults.

    Args:
        config_path: Path to the YAML file. Defaults to config/oasgen.yaml.

    Returns:
        Configuration dictionary
    """
    config = copy.deepcopy(DEFAULT_CONFIG)
    path = config_path or DEFAULT_CONFIG_PATH

    try:
        with path.open() as f:
            loaded = yaml.safe_load(f) or {}
            logger.info("Loaded configuration from %s", path)
    except FileNotFoundError:
        logger.warning("Config file not found: %s. Using defaults.", path)
        loaded = {}
    except yaml.YAMLError:
        logger.exception("Error parsing configuration %s", path)
        loaded = {}

    if not isinstance(loaded, dict):
        logger.warning("Ignoring non-mapping configuration in %s", path)
        loaded = {}

    # Allow a top-level "oasgen:" section like other pipeline configs
    return _deep_merge(config, loaded.get("oasgen", loaded))


def get_api_token(config: dict[str, Any]) -> str:
    """Get the outbound bearer token from environment or config."""
    return os.environ.get(TOKEN_ENV_VAR) or config.get("fetch", {}).get("api_token", "")


def get_auth_headers(config: dict[str, Any]) -> dict[str, str]:
    """Get authentication headers for outbound fetches."""
    token = get_api_token(config)
    if token:
        return {"Authorization": f"Bearer {token}"}
    return {}


def resolve_hostname(hostname: str, config: dict[str, Any]) -> str:
    """Apply host aliases: any hostname containing an alias key is replaced."""
    for fragment, target in config.get("host_aliases", {}).items():
        if fragment in hostname:
            return target
    return hostname
