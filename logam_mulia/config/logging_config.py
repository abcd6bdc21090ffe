# logam_mulia/config/logging_config.py

"""Logging for one CLI invocation.

stdout carries the JSON or RSS document, so nothing here may write to it.
Everything under the ``logam_mulia`` logger goes to a per-run file named
after the scraped site (``logs/anekalogam_20260128_140200.log``), and
only warnings reach stderr unless the run is verbose.
"""

import logging
import re
import sys
from datetime import datetime
from pathlib import Path

from logam_mulia.config.settings import Settings

_FILE_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"
_CONSOLE_FORMAT = "%(levelname)s %(message)s"

_UNSAFE_NAME_RE = re.compile(r"[^A-Za-z0-9_-]+")


def setup_logging(
    run_name: str = "cli",
    verbose: bool = False,
    logs_dir: Path | None = None,
) -> Path:
    """Route ``logam_mulia.*`` records for this run; returns the log file.

    Calling it again replaces the handlers of the previous call.
    """
    target_dir = logs_dir or Settings.LOGS_DIR
    target_dir.mkdir(parents=True, exist_ok=True)
    safe_name = _UNSAFE_NAME_RE.sub("-", run_name).strip("-") or "cli"
    stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_file = target_dir / f"{safe_name}_{stamp}.log"

    project_logger = logging.getLogger("logam_mulia")
    project_logger.setLevel(logging.DEBUG)
    for old in list(project_logger.handlers):
        project_logger.removeHandler(old)
        old.close()

    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter(_FILE_FORMAT))

    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setLevel(logging.INFO if verbose else logging.WARNING)
    stderr_handler.setFormatter(logging.Formatter(_CONSOLE_FORMAT))

    project_logger.addHandler(file_handler)
    project_logger.addHandler(stderr_handler)
    return log_file
