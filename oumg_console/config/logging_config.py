# oumg_console/config/logging_config.py

"""Logging for one console invocation.

``setup_logging`` opens ``run_<YYYYMMDD_HHMMSS>.log`` under the logs
directory and hangs two handlers on the ``oumg_console`` logger: the file
keeps DEBUG detail (derived price fields, request attempts), stderr only
shows warnings so JSON on stdout stays parseable.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path

from oumg_console.config.settings import Settings

_FILE_FORMAT = (
    "%(asctime)s | %(levelname)-8s | %(name)s | "
    "%(module)s:%(funcName)s:%(lineno)d | %(message)s"
)
_STDERR_FORMAT = "%(levelname)s %(name)s: %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _file_handler(log_file: Path) -> logging.Handler:
    handler = logging.FileHandler(log_file, encoding="utf-8")
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(_FILE_FORMAT, datefmt=_DATE_FORMAT))
    return handler


def _stderr_handler() -> logging.Handler:
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(logging.WARNING)
    handler.setFormatter(logging.Formatter(_STDERR_FORMAT))
    return handler


def setup_logging(logs_dir: Path | None = None) -> Path:
    """Attach the run's handlers and return the log file path.

    When the ``oumg_console`` logger already has handlers they are left as
    they are and only the would-be path is returned.
    """
    target_dir = logs_dir or Settings.LOGS_DIR
    target_dir.mkdir(parents=True, exist_ok=True)
    log_file = target_dir / f"run_{datetime.now():%Y%m%d_%H%M%S}.log"

    console_logger = logging.getLogger("oumg_console")
    console_logger.setLevel(logging.DEBUG)
    if console_logger.handlers:
        return log_file

    console_logger.addHandler(_file_handler(log_file))
    console_logger.addHandler(_stderr_handler())
    console_logger.info("Run log: %s", log_file)
    return log_file
