"""
=============================================================================
USERPROXY CLI ENTRY POINT
=============================================================================

    python -m userproxy
    userproxy --version

The service takes no configuration flags: it listens on 0.0.0.0:7000 and
proxies the default upstream. Stop it with Ctrl+C (SIGINT); shutdown
completes within the configured bound and exits with status 0. A port
that cannot be bound exits with status 1.

=============================================================================
"""

import argparse
import sys

from . import __version__
from .app import create_app
from .config import ServerConfig
from .lifecycle import LifecycleManager


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        prog="userproxy",
        description="Proxy for a remote user directory with graceful shutdown",
        epilog="Listens on 0.0.0.0:7000. Press Ctrl+C to stop.",
    )

    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"userproxy {__version__}",
    )

    parser.parse_args(argv)

    config = ServerConfig()
    server, resources = create_app(config)

    return LifecycleManager(server, resources, config).run()


if __name__ == "__main__":
    sys.exit(main())
