"""A print-based logger for interactive model building.

Standard Python logging disappears in Jupyter notebooks unless carefully
configured. This module provides a simple alternative: print to stdout
with timestamps and level labels. Messages below the threshold set by
the SPIKEGEN_LOG_LEVEL environment variable (default INFO) are dropped.

Usage:
    from spikegen.utils import get_logger
    log = get_logger("models.catalog")
    log.info("Registered %s neuron models", 9)
"""

import os
import sys
from datetime import datetime


LEVELS = {"DEBUG": 10, "INFO": 20, "WARNING": 30, "ERROR": 40}


def _threshold(level=None):
    name = (level or os.environ.get("SPIKEGEN_LOG_LEVEL", "INFO")).upper()
    if name not in LEVELS:
        raise ValueError(f"Unknown log level '{name}'. "
                         f"Available: {list(LEVELS.keys())}")
    return LEVELS[name]


def get_logger(name, out=None, level=None):
    """Create a print-based logger.

    Parameters
    ----------
    name : str
        Logger name, displayed in every message header.
    out : file-like, optional
        Additional output stream (e.g., an open log file).
    level : str, optional
        Minimum level to print. When omitted, SPIKEGEN_LOG_LEVEL is read
        at each call, so it can be changed after the logger is created.

    Returns
    -------
    callable
        A log function with .debug, .info, .warning, .error methods.
    """
    prefix = f"spikegen:{name}"
    line_length = 72
    outputs = [sys.stdout] + ([out] if out else [])
    if level is not None:
        _threshold(level)

    def log(label, msg, args):
        if LEVELS[label] < _threshold(level):
            return
        now = datetime.now().strftime("%H:%M:%S")
        for dest in outputs:
            print(f"{'_' * line_length}", file=dest)
            print(f"{prefix} {label} [{now}]", file=dest)
            try:
                print(msg % args, file=dest)
            except TypeError:
                print(msg, file=dest)

    log.debug = lambda msg, *args: log("DEBUG", msg, args)
    log.info = lambda msg, *args: log("INFO", msg, args)
    log.warning = lambda msg, *args: log("WARNING", msg, args)
    log.error = lambda msg, *args: log("ERROR", msg, args)

    return log
