from __future__ import annotations

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from PySide6.QtCore import QtMsgType, qInstallMessageHandler

APP_NAME = "confstore"
LOG_LEVEL_ENV = "CONFSTORE_LOG_LEVEL"
LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"

_QT_LEVELS = {
    QtMsgType.QtDebugMsg: logging.DEBUG,
    QtMsgType.QtInfoMsg: logging.INFO,
    QtMsgType.QtWarningMsg: logging.WARNING,
    QtMsgType.QtCriticalMsg: logging.ERROR,
    QtMsgType.QtFatalMsg: logging.CRITICAL,
}

_HANDLER_MARKER = "_confstore_handler"


def _qt_handler(msg_type, context, message) -> None:
    logging.getLogger("qt").log(_QT_LEVELS.get(msg_type, logging.INFO), message)


def log_dir(app_name: str = APP_NAME) -> Path:
    base = os.environ.get("XDG_STATE_HOME", "").strip() or os.path.expanduser("~/.local/state")
    directory = Path(base) / app_name / "logs"
    directory.mkdir(parents=True, exist_ok=True)
    return directory


def resolve_log_level(default: str = "INFO") -> int:
    level_name = os.environ.get(LOG_LEVEL_ENV, default).strip().upper()
    level = getattr(logging, level_name, None)
    return level if isinstance(level, int) else logging.INFO


def setup_logging(app_name: str = APP_NAME, *, log_to_file: bool = True) -> Path | None:
    """Configure root logging once: rotating file (5 MB x 7) plus stderr.

    Returns the log file path, or ``None`` when file logging is disabled.
    """
    level = resolve_log_level()
    formatter = logging.Formatter(LOG_FORMAT, LOG_DATEFMT)
    root = logging.getLogger()
    root.setLevel(level)

    # Calling twice must not duplicate output.
    for handler in list(root.handlers):
        if getattr(handler, _HANDLER_MARKER, False):
            root.removeHandler(handler)
            handler.close()

    logfile: Path | None = None
    if log_to_file:
        try:
            logfile = log_dir(app_name) / f"{app_name}.log"
            file_handler = RotatingFileHandler(logfile, maxBytes=5_000_000, backupCount=7, encoding="utf-8")
        except OSError as exc:
            logfile = None
            print(f"File logging disabled: {exc}", file=sys.stderr)
        else:
            file_handler.setFormatter(formatter)
            file_handler.setLevel(level)
            setattr(file_handler, _HANDLER_MARKER, True)
            root.addHandler(file_handler)

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(formatter)
    console.setLevel(level)
    setattr(console, _HANDLER_MARKER, True)
    root.addHandler(console)

    def _excepthook(exctype, value, tb):
        logging.getLogger("unhandled").error("Uncaught exception", exc_info=(exctype, value, tb))
        sys.__excepthook__(exctype, value, tb)

    sys.excepthook = _excepthook
    qInstallMessageHandler(_qt_handler)

    logging.getLogger(__name__).debug("Logging initialized at %s; file: %s", logging.getLevelName(level), logfile)
    return logfile


__all__ = [
    "LOG_DATEFMT",
    "LOG_FORMAT",
    "LOG_LEVEL_ENV",
    "log_dir",
    "resolve_log_level",
    "setup_logging",
]
