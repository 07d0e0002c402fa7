"""
sysview.commands.validate - Run the static model rules against a backend.

- `sysview validate`                      Load every page and report
- `sysview validate --skip-rule BROKEN_REF`
- `sysview validate --format json`        Result document as JSON
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys

from sysview.commands import show
from sysview.config import get_config
from sysview.errors import StoreError, describe_error
from sysview.query.pagination import QueryRequest
from sysview.validation import Severity


def run(args: argparse.Namespace) -> int:
    """Run the validate command."""
    config = get_config(getattr(args, "config", None))

    try:
        request = QueryRequest(page_size=int(config["query"]["page_size"]), type_tag=args.type)
        backend = show.build_backend(config, args)
        store = asyncio.run(show.load_store(backend, request, all_pages=True))
    except StoreError as e:
        print(f"Error: {describe_error(e)}", file=sys.stderr)
        return 1

    result = store.validate()
    if args.skip_rule:
        result.violations = [v for v in result.violations if v.rule_code not in args.skip_rule]

    if args.format == "json":
        print(json.dumps(result.to_dict(), indent=2))
        return 0 if result.ok else 1

    if len(store) == 0:
        print("No elements found.", file=sys.stderr)
        return 1

    errors = [v for v in result.violations if v.severity is Severity.ERROR]
    warnings = [v for v in result.violations if v.severity is Severity.WARNING]

    if not args.quiet:
        print(f"Found {len(store)} elements")

    if result.violations and not args.quiet:
        print()
        for violation in sorted(result.violations, key=lambda v: (v.severity.value, v.target_id)):
            print(violation)
            print()

    if not args.quiet:
        print("─" * 60)
        valid_count = len(store) - len({v.target_id for v in errors})
        print(f"✓ {valid_count}/{len(store)} elements valid")

        if errors:
            print(f"❌ {len(errors)} errors")
        if warnings:
            print(f"⚠️  {len(warnings)} warnings")

    if errors:
        return 1

    if not args.quiet and not result.violations:
        print("✓ All elements valid")

    return 0
