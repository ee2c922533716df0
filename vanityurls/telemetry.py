"""Logging and access telemetry for the vanity URL server.

Emits log records to stdout and, when a log file is configured, appends them
to an append-only log file for local review.
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger("vanityurls")

_LOG_FORMAT = logging.Formatter(
    "%(asctime)s [%(levelname)s] %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%S",
)


def setup_logging(
    log_file: Optional[str] = None, level: Optional[int] = None
) -> None:
    """Configure the server logger with stdout and optional file handlers.

    Handlers are added once; later calls only change the level, and only
    when one is given. Handlers follow the logger level.

    Args:
        log_file: Path to the append-only log file, or None for stdout only.
        level: Logger level. Defaults to INFO on first setup.
    """
    if level is not None:
        logger.setLevel(level)

    if logger.handlers:
        return

    if level is None:
        logger.setLevel(logging.INFO)

    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.setFormatter(_LOG_FORMAT)
    logger.addHandler(stdout_handler)

    if log_file:
        log_path = Path(log_file)
        os.makedirs(log_path.parent, exist_ok=True)
        file_handler = logging.FileHandler(log_path, mode="a")
        file_handler.setFormatter(_LOG_FORMAT)
        logger.addHandler(file_handler)


def log_request(
    *,
    method: str,
    path: str,
    status: int,
    duration_ms: float,
    route: Optional[str] = None,
    remote: Optional[str] = None,
) -> None:
    """Log a single served request as one JSON line.

    Args:
        method: HTTP method.
        path: Request path as received.
        status: Response status code.
        duration_ms: Time spent handling the request.
        route: The matched route path, if the request resolved to one.
        remote: Client address, if known.
    """
    record: Dict[str, Any] = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "method": method,
        "path": path,
        "status": status,
        "duration_ms": round(duration_ms, 3),
    }

    if route is not None:
        record["route"] = route

    if remote:
        record["remote"] = remote

    logger.info(json.dumps(record))
