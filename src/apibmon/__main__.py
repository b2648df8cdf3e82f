"""
=============================================================================
MONITOR CLI ENTRY POINT
=============================================================================

    # Listen on port 10001, all interfaces
    python -m apibmon 10001

    # Only on loopback, verbose
    python -m apibmon 10001 --host 127.0.0.1 --log-level DEBUG

Exit codes:
    2   usage error (missing or invalid port)
    3   startup error (socket could not be created, bound or listened on)

Otherwise the agent runs until it is killed.

=============================================================================
"""

import argparse
import sys
from typing import Optional, Sequence

from . import __version__
from .config import MonitorConfig, ConfigError, StartupError, LOG_LEVELS
from .server import MonitorServer


EXIT_USAGE = 2
EXIT_STARTUP = 3


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="apibmon",
        description="Report CPU and memory usage to load-test clients over TCP",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Protocol (one command per line):
  HELLO      -> Hi!
  CPU        -> CPU usage since this connection last asked, in percent
  MEM        -> memory usage, in percent
  BYE, QUIT  -> BYE, then the connection is closed
        """,
    )

    parser.add_argument("port", type=int, help="Port to listen on")

    parser.add_argument(
        "--host", "-H",
        default=None,
        help="Address to bind to (default: 0.0.0.0, or $APIBMON_HOST)",
    )

    parser.add_argument(
        "--log-level", "-l",
        choices=LOG_LEVELS,
        type=str.upper,
        default=None,
        help="Logging level (default: INFO, or $APIBMON_LOG_LEVEL)",
    )

    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"apibmon {__version__}",
    )

    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    # Environment supplies defaults, CLI arguments override them
    try:
        config = MonitorConfig.from_env(port=args.port)
        if args.host:
            config.host = args.host
        if args.log_level:
            config.log_level = args.log_level
        config.validate()
    except ConfigError as e:
        parser.error(str(e))  # exits with EXIT_USAGE

    server = MonitorServer(config)

    try:
        server.run()
    except StartupError as e:
        print(f"Fatal error: {e}", file=sys.stderr)
        return EXIT_STARTUP
    except KeyboardInterrupt:
        pass

    return 0


if __name__ == "__main__":
    sys.exit(main())
