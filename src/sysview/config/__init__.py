"""
sysview.config - Configuration loading and defaults
"""

from sysview.config.defaults import CONFIG_FILENAME, DEFAULT_CONFIG
from sysview.config.loader import (
    ConfigLoader,
    _apply_env_overrides,
    _try_parse_env_value,
    find_config_file,
    get_config,
    load_config,
    merge_configs,
    render_config,
    validate_config,
)

__all__ = [
    "CONFIG_FILENAME",
    "DEFAULT_CONFIG",
    "ConfigLoader",
    "_apply_env_overrides",
    "_try_parse_env_value",
    "find_config_file",
    "get_config",
    "load_config",
    "merge_configs",
    "render_config",
    "validate_config",
]
