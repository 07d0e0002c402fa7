"""
sysview.commands.config_cmd - Inspect the effective configuration.

- `sysview config show`       Merged config as TOML (or JSON with --json)
- `sysview config path`       Which .sysview.toml is in effect
- `sysview config validate`   Report invalid values
"""

from __future__ import annotations

import argparse
import json
import sys

from sysview.config import find_config_file, get_config, render_config, validate_config


def run(args: argparse.Namespace) -> int:
    """Run the config command."""
    action = getattr(args, "config_action", None)
    config_path = getattr(args, "config", None)

    if action == "path":
        path = config_path or find_config_file()
        if path is None:
            print("No .sysview.toml found; using defaults.")
            return 1
        print(path)
        return 0

    config = get_config(config_path)

    if action == "show":
        if getattr(args, "json", False):
            print(json.dumps(config, indent=2, sort_keys=True))
        else:
            print(render_config(config), end="")
        return 0

    if action == "validate":
        errors = validate_config(config)
        for error in errors:
            print(f"  {error}", file=sys.stderr)
        if errors:
            print(f"{len(errors)} configuration problem(s).", file=sys.stderr)
            return 1
        print("Configuration OK.")
        return 0

    print("Usage: sysview config <show|path|validate>", file=sys.stderr)
    return 1
