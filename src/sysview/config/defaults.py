"""
sysview.config.defaults - Built-in configuration values.
"""

from __future__ import annotations

from typing import Any

CONFIG_FILENAME = ".sysview.toml"
LOCAL_CONFIG_FILENAME = ".sysview.local.toml"

DEFAULT_CONFIG: dict[str, Any] = {
    "backend": {
        "base_url": "http://localhost:8080/api/v1",
        "project_id": "default",
        "timeout": 30.0,
    },
    "query": {
        "page_size": 50,
    },
    "server": {
        "host": "127.0.0.1",
        "port": 8080,
        "demo_size": 0,
    },
    "logging": {
        "level": "WARNING",
    },
}
