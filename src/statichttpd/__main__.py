"""
=============================================================================
CLI ENTRY POINT
=============================================================================

    # Defaults: all interfaces, port 2806, document root ./html
    python -m statichttpd

    # Another root and port
    python -m statichttpd --root ./public --port 8080

    # JSON access log, more workers
    python -m statichttpd --log-format json --workers 32

Environment variables (HTTP_PORT, HTTP_ROOT, ...) provide the defaults;
command-line flags override them. See ServerConfig.from_env().

=============================================================================
"""

import argparse
import os
import sys

from . import __version__
from .server import FileServer
from .config import ServerConfig


def build_parser(defaults: ServerConfig) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="statichttpd",
        description="Minimal multi-threaded static file server",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m statichttpd                          # Serve ./html on :2806
  python -m statichttpd --root ./public          # Another document root
  python -m statichttpd --host 127.0.0.1 -p 8080 # Localhost only
        """
    )

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--host", "-H",
        default=defaults.host,
        help=f"Host to bind to (default: {defaults.host})"
    )

    parser.add_argument(
        "--port", "-p",
        type=int,
        default=defaults.port,
        help=f"Port to listen on (default: {defaults.port})"
    )

    # ─────────────────────────────────────────────────────────────────────
    # CONTENT ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--root", "-r",
        default=defaults.document_root,
        help=f"Document root directory (default: {defaults.document_root})"
    )

    # ─────────────────────────────────────────────────────────────────────
    # PERFORMANCE ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--workers", "-w",
        type=int,
        default=defaults.max_workers,
        help=f"Maximum worker threads (default: {defaults.max_workers})"
    )

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--log-level", "-l",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=defaults.log_level.upper(),
        help=f"Logging level (default: {defaults.log_level})"
    )

    parser.add_argument(
        "--log-format",
        choices=["text", "json"],
        default=defaults.log_format,
        help=f"Access log format (default: {defaults.log_format})"
    )

    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"statichttpd {__version__}"
    )

    return parser


def main(argv=None) -> int:
    """
    Parse arguments, build the server, run it until interrupted.

    Returns:
        Process exit code.
    """
    try:
        # Malformed HTTP_* values fail here, same as bad flags below
        config = ServerConfig.from_env()
        args = build_parser(config).parse_args(argv)

        config.host = args.host
        config.port = args.port
        config.document_root = args.root
        config.max_workers = args.workers
        config.min_workers = min(config.min_workers, args.workers)
        config.log_level = args.log_level
        config.log_format = args.log_format

        if not os.path.isdir(args.root):
            print(f"Warning: document root {args.root!r} is not a directory", file=sys.stderr)

        server = FileServer(config)
        server.run()
    except (ValueError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
