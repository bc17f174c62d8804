# pricewise/config/logging_config.py

"""Per-run log files for pricewise.

Every CLI invocation or scheduled daily refresh writes to its own
``logs/run_<YYYYmmdd_HHMMSS>.log``. Handlers hang off the ``pricewise``
logger, so any ``pricewise.<area>`` logger ends up in the run file. The
stderr handler stays quiet (WARNING) unless a lower level is asked for.

The matcher and the daily refresh log and continue past per-item
failures, so the run file is where those tracebacks are kept.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path

from pricewise.config.settings import Settings

_FILE_FORMAT = (
    "%(asctime)s %(levelname)-8s [%(name)s] "
    "%(filename)s:%(lineno)d %(funcName)s(): %(message)s"
)
_STDERR_FORMAT = "%(levelname)s [%(name)s] %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _active_log_file(logger: logging.Logger) -> Path | None:
    for handler in logger.handlers:
        if isinstance(handler, logging.FileHandler):
            return Path(handler.baseFilename)
    return None


def setup_logging(
    logs_dir: Path | None = None,
    console_level: int = logging.WARNING,
) -> Path:
    """Attach the run-file and stderr handlers to the ``pricewise`` logger.

    A second call in the same process changes nothing and returns the
    file already in use.
    """
    package_logger = logging.getLogger("pricewise")
    package_logger.setLevel(logging.DEBUG)

    existing = _active_log_file(package_logger)
    if existing is not None:
        return existing

    run_dir = logs_dir or Settings.LOGS_DIR
    run_dir.mkdir(parents=True, exist_ok=True)
    started = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_file = run_dir / f"run_{started}.log"

    to_file = logging.FileHandler(log_file, encoding="utf-8")
    to_file.setLevel(logging.DEBUG)
    to_file.setFormatter(logging.Formatter(_FILE_FORMAT, _DATE_FORMAT))
    package_logger.addHandler(to_file)

    to_stderr = logging.StreamHandler(sys.stderr)
    to_stderr.setLevel(console_level)
    to_stderr.setFormatter(logging.Formatter(_STDERR_FORMAT))
    package_logger.addHandler(to_stderr)

    package_logger.debug("Run log opened at %s", log_file)
    return log_file
