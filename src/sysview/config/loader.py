"""
sysview.config.loader - Find, parse and merge ``.sysview.toml`` files.

Resolution order, later wins:

1. ``DEFAULT_CONFIG``
2. ``.sysview.toml`` (explicit path, or the nearest one walking up)
3. ``.sysview.local.toml`` beside it (uncommitted developer overrides)
4. ``SYSVIEW_<SECTION>_<KEY>`` environment variables
"""

from __future__ import annotations

import copy
import json
import logging
import os
from pathlib import Path
from typing import Any, Mapping

import tomlkit

from sysview.config.defaults import CONFIG_FILENAME, DEFAULT_CONFIG, LOCAL_CONFIG_FILENAME

logger = logging.getLogger(__name__)

ENV_PREFIX = "SYSVIEW_"


class ConfigLoader:
    """Read-only access to a merged configuration with dotted keys.

    Example:
        >>> loader = ConfigLoader.from_dict({"backend": {"timeout": 5}})
        >>> loader.get("backend.timeout")
        5
    """

    def __init__(self, data: Mapping[str, Any], path: Path | None = None) -> None:
        self._data = dict(data)
        self.path = path

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ConfigLoader:
        return cls(data)

    def get(self, key: str, default: Any = None) -> Any:
        """Look up a dotted key such as ``"backend.base_url"``."""
        node: Any = self._data
        for part in key.split("."):
            if not isinstance(node, Mapping) or part not in node:
                return default
            node = node[part]
        return node

    def section(self, name: str) -> dict[str, Any]:
        value = self._data.get(name)
        return dict(value) if isinstance(value, Mapping) else {}

    def to_dict(self) -> dict[str, Any]:
        return copy.deepcopy(self._data)

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __contains__(self, key: object) -> bool:
        return key in self._data


def find_config_file(start: Path | None = None) -> Path | None:
    """Walk up from ``start`` looking for ``.sysview.toml``.

    Returns:
        Path to the file, or None if no directory up to the root has one.
    """
    current = (start or Path.cwd()).resolve()
    for directory in (current, *current.parents):
        candidate = directory / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None


def merge_configs(base: Mapping[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    """Deep-merge ``override`` over ``base``; neither input is modified."""
    result = copy.deepcopy(dict(base))
    for key, value in override.items():
        if isinstance(value, Mapping) and isinstance(result.get(key), Mapping):
            result[key] = merge_configs(result[key], value)
        else:
            result[key] = copy.deepcopy(value)
    return result


def _read_toml(path: Path) -> dict[str, Any]:
    with open(path, encoding="utf-8") as f:
        return tomlkit.parse(f.read()).unwrap()


def _try_parse_env_value(raw: str) -> Any:
    """Interpret an environment string as JSON, bool, int, float or string.

    Values starting with ``[`` or ``{`` are decoded as JSON; malformed JSON
    is returned unchanged.
    """
    stripped = raw.strip()
    if stripped.startswith(("[", "{")):
        try:
            return json.loads(stripped)
        except json.JSONDecodeError:
            return raw
    lowered = stripped.lower()
    if lowered in ("true", "yes", "on"):
        return True
    if lowered in ("false", "no", "off"):
        return False
    for convert in (int, float):
        try:
            return convert(raw)
        except ValueError:
            continue
    return raw


def _apply_env_overrides(
    config: Mapping[str, Any], environ: Mapping[str, str] | None = None
) -> dict[str, Any]:
    """Apply ``SYSVIEW_<SECTION>_<KEY>`` overrides.

    The first underscore after the prefix separates the section from the
    key, so ``SYSVIEW_BACKEND_BASE_URL`` sets ``backend.base_url``.
    Missing sections are created.
    """
    env = os.environ if environ is None else environ
    result = copy.deepcopy(dict(config))
    for name, raw in env.items():
        if not name.startswith(ENV_PREFIX):
            continue
        section, sep, key = name[len(ENV_PREFIX) :].lower().partition("_")
        if not sep or not key:
            continue
        if not isinstance(result.get(section), dict):
            result[section] = {}
        result[section][key] = _try_parse_env_value(raw)
        logger.debug("config %s.%s overridden from %s", section, key, name)
    return result


def load_config(config_path: Path | None = None) -> dict[str, Any]:
    """Load a config file merged over the defaults.

    A ``.sysview.local.toml`` next to the file is merged on top when it
    exists. Environment overrides are not applied here; see ``get_config``.

    Raises:
        FileNotFoundError: If ``config_path`` is given and does not exist.
        tomlkit.exceptions.ParseError: If a file is not valid TOML.
    """
    config = copy.deepcopy(DEFAULT_CONFIG)
    if config_path is None:
        return config

    config_path = Path(config_path)
    config = merge_configs(config, _read_toml(config_path))

    local_path = config_path.parent / LOCAL_CONFIG_FILENAME
    if local_path.is_file():
        config = merge_configs(config, _read_toml(local_path))
    return config


def get_config(config_path: Path | None = None, start_dir: Path | None = None) -> dict[str, Any]:
    """Resolve the effective configuration for a command.

    Args:
        config_path: Explicit file (``--config``); discovered when None.
        start_dir: Where discovery starts; defaults to the working directory.
    """
    path = config_path or find_config_file(start_dir)
    if path is not None:
        logger.debug("using config file %s", path)
    return _apply_env_overrides(load_config(path))


def validate_config(config: Mapping[str, Any]) -> list[str]:
    """Check value types and ranges.

    Returns:
        Human-readable problems; empty when the config is usable.
    """
    errors: list[str] = []
    loader = ConfigLoader.from_dict(config)

    if not str(loader.get("backend.base_url", "")).startswith(("http://", "https://")):
        errors.append("backend.base_url must be an http(s) URL")
    timeout = loader.get("backend.timeout")
    if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0:
        errors.append("backend.timeout must be a positive number")

    page_size = loader.get("query.page_size")
    if isinstance(page_size, bool) or not isinstance(page_size, int) or not 1 <= page_size <= 200:
        errors.append("query.page_size must be an integer between 1 and 200")

    port = loader.get("server.port")
    if isinstance(port, bool) or not isinstance(port, int) or not 0 < port < 65536:
        errors.append("server.port must be an integer between 1 and 65535")
    demo_size = loader.get("server.demo_size")
    if isinstance(demo_size, bool) or not isinstance(demo_size, int) or demo_size < 0:
        errors.append("server.demo_size must be a non-negative integer")

    level = str(loader.get("logging.level", "")).upper()
    if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
        errors.append("logging.level must be DEBUG, INFO, WARNING, ERROR or CRITICAL")
    return errors


def render_config(config: Mapping[str, Any]) -> str:
    """Render a config dict as TOML text."""
    return tomlkit.dumps(dict(config))
