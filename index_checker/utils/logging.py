"""
Logging for the checker.

One named logger, configured from the environment:

    LOG_LEVEL   0 (default) silent, 1 INFO, 2 or more DEBUG
    LOG_FILE    append to this file instead of logging to stderr

stdout carries the rendered report, so nothing here writes to it.
"""
import logging
import os
import sys

LOGGER_NAME = "index_checker"
SILENT = logging.CRITICAL + 1
# packages may be checked on worker threads (--jobs)
LOG_FORMAT = "%(asctime)s %(levelname)s [%(threadName)s] %(message)s"


def level_from_env(value):
    """Map a LOG_LEVEL value to a logging level. Garbage means silent."""
    try:
        verbosity = int(value or 0)
    except ValueError:
        return SILENT
    if verbosity <= 0:
        return SILENT
    return logging.INFO if verbosity == 1 else logging.DEBUG


def _make_handler(log_file):
    if log_file:
        try:
            return logging.FileHandler(log_file, mode="a", encoding="utf-8")
        except OSError as e:
            print(f"Warning: cannot log to {log_file} ({e}), using stderr", file=sys.stderr)
    return logging.StreamHandler(sys.stderr)


def setup_logger(env=None):
    """(Re)configure the checker's logger from `env` (default: os.environ)."""
    env = os.environ if env is None else env
    log = logging.getLogger(LOGGER_NAME)
    log.propagate = False
    log.setLevel(level_from_env(env.get("LOG_LEVEL")))

    for old in list(log.handlers):
        log.removeHandler(old)
        old.close()

    if log.level != SILENT:
        handler = _make_handler(env.get("LOG_FILE"))
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        log.addHandler(handler)
    return log


logger = setup_logger()
