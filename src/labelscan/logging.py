import logging
import os
from typing import Optional, Union


ROOT_LOGGER = "labelscan"

# Level first and padded like uvicorn's default formatter, so API logs line up with its access lines.
LOG_FORMAT = "%(levelname)-9s %(asctime)s [%(name)s] %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_LEVELS = {
    "CRITICAL": logging.CRITICAL,
    "ERROR": logging.ERROR,
    "WARN": logging.WARNING,
    "WARNING": logging.WARNING,
    "INFO": logging.INFO,
    "DEBUG": logging.DEBUG,
    "TRACE": logging.DEBUG,
}


def coerce_level(value: Union[str, int, None]) -> int:
    """Map 'debug', 'INFO', 10, ... to a logging level; unknown values give INFO."""
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        return _LEVELS.get(value.upper().strip(), logging.INFO)
    return logging.INFO


def configure(level: Union[str, int, None] = None, log_file: Optional[str] = None) -> logging.Logger:
    """(Re)configure the package logger that every ``get_logger`` child writes through.

    Called lazily from env (LOG_LEVEL, LOG_FILE) on first use, and again by
    ``labelscan serve`` so the package follows uvicorn's --log-level.
    Handlers installed by an earlier call are replaced, never stacked.
    """
    root = logging.getLogger(ROOT_LOGGER)
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    lvl = coerce_level(level)
    root.setLevel(lvl)
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    stream = logging.StreamHandler()
    stream.setFormatter(formatter)
    root.addHandler(stream)

    if log_file:
        try:
            fh = logging.FileHandler(log_file, encoding="utf-8")
        except OSError as exc:
            root.warning("LOG_FILE %s could not be opened (%s); logging to stderr only", log_file, exc)
        else:
            fh.setFormatter(formatter)
            root.addHandler(fh)

    # uvicorn installs its own root-level handlers; keep our records out of them.
    root.propagate = False
    root._labelscan_configured = True  # type: ignore[attr-defined]
    return root


def get_logger(name: str) -> logging.Logger:
    root = logging.getLogger(ROOT_LOGGER)
    if not getattr(root, "_labelscan_configured", False):
        configure(os.environ.get("LOG_LEVEL"), os.environ.get("LOG_FILE"))
    return root.getChild(name)
