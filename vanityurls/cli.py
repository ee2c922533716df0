"""Command-line entry point: ``vanityurls [CONFIG]``."""

import argparse
import logging
import os
import sys
from typing import List, Optional

import uvicorn

from vanityurls import app as app_module
from vanityurls.config import ConfigError
from vanityurls.telemetry import logger, setup_logging

DEFAULT_PORT = "8080"


def main(argv: Optional[List[str]] = None) -> None:
    """Entry point for the ``vanityurls`` command.

    Loads and validates the configuration before binding the listener, so a
    bad config exits with status 1 instead of a half-started server.

    Args:
        argv: Optional list of command-line arguments. If ``None``, ``sys.argv``
            is used.
    """
    parser = argparse.ArgumentParser(
        prog="vanityurls",
        description="Serve vanity import paths for Go packages.",
    )
    parser.add_argument(
        "config",
        nargs="?",
        default=app_module.CONFIG_PATH,
        help="Path to the YAML configuration (default: %(default)s)",
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Enable debug logging"
    )
    args = parser.parse_args(argv)

    setup_logging(
        app_module.LOG_FILE, level=logging.DEBUG if args.verbose else logging.INFO
    )

    try:
        app_module.reload_resolver(args.config)
    except (FileNotFoundError, ConfigError) as exc:
        logger.error("%s", exc)
        sys.exit(1)

    port = int(os.getenv("PORT") or DEFAULT_PORT)
    logger.info("Listening on 0.0.0.0:%d", port)
    uvicorn.run(app_module.app, host="0.0.0.0", port=port, access_log=False)


if __name__ == "__main__":
    main()
