"""Logging for the ``arcoutput`` package.

Modules log per-chunk detail with ``logger.log(TRACE, ...)``; it only shows
up with ``--trace`` (file) or ``--trace --verbose`` (console).
"""

from __future__ import annotations

import logging
import os
from datetime import datetime

TRACE = 5
TRACE_DIR = "debug"
LOGGER_NAME = "arcoutput"

logging.addLevelName(TRACE, "TRACE")

_CONSOLE_FMT = "%(levelname)s %(name)s: %(message)s"
_FILE_FMT = "%(asctime)s.%(msecs)03d %(levelname)s %(name)s:%(funcName)s:%(lineno)d %(message)s"
_FILE_DATEFMT = "%Y-%m-%d %H:%M:%S"


def console_level(*, debug: bool, trace: bool, verbose: bool) -> int:
    """Console threshold for the given CLI/config flags."""
    if trace and verbose:
        return TRACE
    if debug or trace:
        return logging.DEBUG
    return logging.INFO


def _trace_file_handler() -> logging.FileHandler:
    os.makedirs(TRACE_DIR, exist_ok=True)
    timestamp = datetime.now().strftime("%Y-%m-%dT%H-%M-%S")
    fh = logging.FileHandler(os.path.join(TRACE_DIR, f"trace-{timestamp}.log"))
    fh.setLevel(TRACE)
    fh.setFormatter(logging.Formatter(_FILE_FMT, datefmt=_FILE_DATEFMT))
    return fh


def setup_logging(
    *, debug: bool, trace: bool, verbose: bool
) -> logging.Logger:
    """Configure the package logger and return it.

    Console output goes to stderr so it never mixes with normalized
    messages printed on stdout. Calling this again replaces the handlers.
    """
    root = logging.getLogger(LOGGER_NAME)
    for handler in root.handlers:
        handler.close()
    root.handlers.clear()
    root.setLevel(TRACE)

    console = logging.StreamHandler()
    console.setLevel(console_level(debug=debug, trace=trace, verbose=verbose))
    console.setFormatter(logging.Formatter(_CONSOLE_FMT))
    root.addHandler(console)

    if trace:
        root.addHandler(_trace_file_handler())

    return root
