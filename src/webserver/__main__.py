"""
=============================================================================
WEBSERVER CLI ENTRY POINT
=============================================================================

    # Serve ./frontend on 127.0.0.1:3000
    python -m webserver

    # Custom root and port
    python -m webserver --root ./site --port 8080

    # Fixed pool size instead of 80% of the CPUs
    python -m webserver --workers 8

Defaults come from the WEBSERVER_* environment variables (see
ServerConfig.from_env), flags override them.

=============================================================================
"""

import argparse
import sys
from dataclasses import replace
from typing import List, Optional

from . import __version__
from .config import LOG_FORMATS, ServerConfig
from .handlers import NotFoundDocumentError
from .server import HTTPServer


def build_parser(defaults: ServerConfig) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="webserver",
        description="Minimal HTTP/1.1 static page server",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m webserver                         # ./frontend on 127.0.0.1:3000
  python -m webserver --root ./site -p 8080   # Custom root and port
  python -m webserver --workers 8             # 8 worker threads
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
    parser.add_argument(
        "--buffer-size",
        type=int,
        default=defaults.buffer_size,
        help=f"Bytes read per request; longer requests are truncated (default: {defaults.buffer_size})"
    )

    # ─────────────────────────────────────────────────────────────────────
    # WORKER ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--workers", "-w",
        type=int,
        default=defaults.workers,
        help="Number of worker threads (default: CPUs x worker fraction)"
    )
    parser.add_argument(
        "--worker-fraction",
        type=float,
        default=defaults.worker_fraction,
        help=f"Share of CPUs used as workers (default: {defaults.worker_fraction})"
    )

    # ─────────────────────────────────────────────────────────────────────
    # DOCUMENT ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--root", "-r",
        default=defaults.document_root,
        help=f"Document root (default: {defaults.document_root})"
    )

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--log-level", "-l",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        type=str.upper,
        default=defaults.log_level.upper(),
        help="Logging level (default: INFO)"
    )
    parser.add_argument(
        "--log-format",
        choices=LOG_FORMATS,
        default=defaults.log_format,
        help="Access log format (default: text)"
    )

    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"webserver {__version__}"
    )
    return parser


def config_from_args(argv: Optional[List[str]] = None) -> ServerConfig:
    """Translate command-line arguments into a ServerConfig."""
    defaults = ServerConfig.from_env()
    args = build_parser(defaults).parse_args(argv)

    return replace(
        defaults,
        host=args.host,
        port=args.port,
        buffer_size=args.buffer_size,
        workers=args.workers,
        worker_fraction=args.worker_fraction,
        document_root=args.root,
        log_level=args.log_level,
        log_format=args.log_format,
    )


def main(argv: Optional[List[str]] = None) -> int:
    try:
        server = HTTPServer(config_from_args(argv))
        server.run()
    except (ValueError, NotFoundDocumentError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
