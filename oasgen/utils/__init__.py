"""Utility modules for oasgen."""

from .config import DEFAULT_CONFIG, get_api_token, get_auth_headers, load_config, resolve_hostname
from .tag_generator import EXAMPLES_TAG, TagGenerator, title_case

__all__ = [
    "DEFAULT_CONFIG",
    "EXAMPLES_TAG",
    "TagGenerator",
    "get_api_token",
    "get_auth_headers",
    "load_config",
    "resolve_hostname",
    "title_case",
]
