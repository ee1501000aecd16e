# CONTENTHOST BACKEND

# COMPONENT: CENTRALIZED LOGGING CONFIGURATION
# REQUIREMENTS SATISFIED: environment-controlled verbosity, per-component loggers
"""
contenthost/utils/logging.py

Owns the "contenthost" logger tree. Modules log through children of it
(contenthost.aws.sigv4, contenthost.aws.s3_utils, ...) obtained with
logging.getLogger(__name__); only the parent carries handlers, so a single
setup_logger() call controls every component.

Environment Variables:
    LOG_LEVEL:
        0 → Silent (default)
        1 → INFO: logins, uploads, registrations, deletes, access log
        2 → DEBUG: adds one line per presigned URL (method, bucket, key, expiry)

    LOG_FILE:
        Optional log file path. Unwritable paths fall back to stderr.

Every line names the component that emitted it. Signed URLs, signatures
and secrets are never handed to a logger, so no redaction filter exists.
"""
import os
import sys
import logging

LOGGER_NAME = "contenthost"
LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

# LOG_LEVEL value -> logging level; anything above 2 is treated as 2
_LEVELS = {
    0: logging.CRITICAL + 1,
    1: logging.INFO,
    2: logging.DEBUG,
}


def _level_from_env() -> int:
    try:
        value = int(os.environ.get("LOG_LEVEL", "0"))
    except ValueError:
        return 0
    return max(0, min(value, 2))


def _make_handler(log_file):
    if log_file:
        try:
            return logging.FileHandler(log_file, mode="w", encoding="utf-8")
        except OSError:
            pass
    return logging.StreamHandler(sys.stderr)


def setup_logger() -> logging.Logger:
    """
    (Re)configure the contenthost logger tree from LOG_LEVEL and LOG_FILE.
    """
    verbosity = _level_from_env()

    logger = logging.getLogger(LOGGER_NAME)
    logger.propagate = False
    logger.setLevel(_LEVELS[verbosity])

    for h in list(logger.handlers):
        logger.removeHandler(h)
        h.close()

    if verbosity > 0:
        handler = _make_handler(os.environ.get("LOG_FILE"))
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)

    return logger
