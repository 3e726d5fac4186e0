"""Logging for the plugin. stdout carries the CodeGeneratorResponse, so records go to stderr or nowhere."""

import logging
import sys

_ROOT = "tsgen"


def get_logger(name=None) -> logging.Logger:
    return logging.getLogger(f"{_ROOT}.{name}" if name else _ROOT)


def configure_logging(level: str = "info", to_stderr: bool = False) -> logging.Logger:
    """Install exactly one handler on the tsgen logger: stderr if to_stderr, else a NullHandler."""
    if to_stderr:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter("%(name)s: %(levelname)s: %(message)s"))
    else:
        handler = logging.NullHandler()

    logger = logging.getLogger(_ROOT)
    logger.handlers = [handler]
    logger.setLevel(level.upper())
    logger.propagate = False
    return logger
