"""
sysview.commands.serve - Run the reference element backend.

- `sysview serve`               Empty backend on the configured host/port
- `sysview serve --demo 20`     Seed 20 demo requirements first
"""

from __future__ import annotations

import argparse
import logging

from sysview.config import get_config

logger = logging.getLogger(__name__)


def run(args: argparse.Namespace) -> int:
    """Run the serve command."""
    from sysview.server.app import create_app
    from sysview.server.demo_data import seed_demo
    from sysview.server.repository import ElementRepository

    config = get_config(getattr(args, "config", None))
    server = config["server"]

    host = args.host or server["host"]
    port = args.port or server["port"]
    demo_size = args.demo if args.demo is not None else server["demo_size"]

    repository = ElementRepository()
    if demo_size:
        seed_demo(repository, demo_size)

    app = create_app(repository, config)

    print(f"Serving sysview backend on http://{host}:{port}/api/v1")
    print(f"Elements: {len(repository)}")
    logger.info("starting server on %s:%s", host, port)
    try:
        app.run(host=host, port=port, debug=False, use_reloader=False)
    except KeyboardInterrupt:
        print("\nServer stopped.")
    return 0
