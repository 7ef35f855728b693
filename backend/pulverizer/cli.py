"""
Payload Pulverizer — Command Line Entry Point
===============================================

What:  `payload-pulverizer [--db-path PATH]` starts the HTTP server.
How:   Parses arguments, builds Settings with the database path, creates
       the app and runs it under uvicorn.

Exit codes:
    0  Normal shutdown (Ctrl+C / SIGTERM)
    1  Startup failed, e.g. the counter store could not be opened
"""

import argparse
import logging
import sys
from typing import List, Optional

import uvicorn

from pulverizer import __version__
from pulverizer.config import DEFAULT_DB_PATH, Settings
from pulverizer.main import create_app, setup_logging

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_STARTUP_FAILED = 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="payload-pulverizer",
        description="HTTP service that destroys payloads and counts how many it destroyed.",
    )
    parser.add_argument(
        "--db-path",
        default=None,
        help=f"Path to the SQLite database file (default: {DEFAULT_DB_PATH})",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def build_settings(argv: Optional[List[str]] = None) -> Settings:
    """Settings from the environment, with --db-path taking precedence."""
    args = build_parser().parse_args(argv)
    overrides = {}
    if args.db_path is not None:
        overrides["db_path"] = args.db_path
    return Settings(**overrides)


def main(argv: Optional[List[str]] = None) -> int:
    """Run the server until shutdown; return the process exit code."""
    settings = build_settings(argv)
    setup_logging(settings.log_level)

    app = create_app(settings=settings, configure_logging=False)
    config = uvicorn.Config(
        app,
        host=settings.host,
        port=settings.port,
        log_config=None,  # keep our logging configuration
        lifespan="on",
    )
    server = uvicorn.Server(config)
    try:
        server.run()
    except SystemExit as exc:
        # Newer uvicorn releases exit from startup() on a failed lifespan
        logger.error("Server startup failed (uvicorn exit status %s)", exc.code)
        return EXIT_STARTUP_FAILED

    if not server.started:
        logger.error("Server startup failed; see the errors above")
        return EXIT_STARTUP_FAILED
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
