"""sysview.server - Reference element backend.

Provides the in-process ElementRepository, the Flask REST wrapper over
it, and a demo dataset for the development server.
"""

from sysview.server.demo_data import seed_demo
from sysview.server.repository import ElementRepository


def create_app(*args, **kwargs):
    """Build the Flask app; imported lazily so the client never loads Flask."""
    from sysview.server.app import create_app as _create_app

    return _create_app(*args, **kwargs)


__all__ = ["ElementRepository", "create_app", "seed_demo"]
