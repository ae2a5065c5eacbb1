"""Route supervisor log records to a per-user file and, on a terminal, to stderr.

The file lives at ``~/.zama/logs/supervisor.log`` unless ``ZAMA_LOG_FILE``
names a file or ``ZAMA_LOG_DIR`` names a directory for it.  Installer
transcripts echo paths under the user's home directory, so formatted records
have the home path and login name masked.
"""

from __future__ import annotations

import logging
import os
import re
import sys
from pathlib import Path

LOG_FILE_ENV = "ZAMA_LOG_FILE"
LOG_DIR_ENV = "ZAMA_LOG_DIR"
LOG_FILE_NAME = "supervisor.log"
LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

_MANAGED_ATTR = "_zama_managed"

_LOGGER = logging.getLogger(__name__)
_file_handler: logging.FileHandler | None = None


def _home_pattern() -> re.Pattern[str] | None:
    homes = {os.path.normpath(home) for home in (str(Path.home()), os.environ.get("HOME", "")) if home}
    homes -= {os.sep, "."}
    if not homes:
        return None
    return re.compile("|".join(re.escape(home) for home in sorted(homes, key=len, reverse=True)))


def _login_pattern() -> re.Pattern[str] | None:
    names = {os.environ.get(var, "").strip() for var in ("USER", "LOGNAME", "USERNAME")}
    names.add(Path.home().name)
    names.discard("")
    if not names:
        return None
    alternatives = "|".join(re.escape(name) for name in sorted(names, key=len, reverse=True))
    return re.compile(rf"(?<!\w)(?:{alternatives})(?!\w)")


_HOME_PATTERN = _home_pattern()
_LOGIN_PATTERN = _login_pattern()


def sanitize_text(message: str) -> str:
    """Mask the user's home directory, then their login name, in ``message``."""

    if _HOME_PATTERN is not None:
        message = _HOME_PATTERN.sub("<user_home>", message)
    if _LOGIN_PATTERN is not None:
        message = _LOGIN_PATTERN.sub("<user>", message)
    return message


class _SanitizingFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        return sanitize_text(super().format(record))


def log_file_path() -> Path:
    explicit = os.environ.get(LOG_FILE_ENV)
    if explicit:
        return Path(explicit).expanduser()
    directory = os.environ.get(LOG_DIR_ENV)
    if directory:
        return Path(directory).expanduser() / LOG_FILE_NAME
    return Path.home() / ".zama" / "logs" / LOG_FILE_NAME


def ensure_app_logging(*, verbose: bool = False) -> Path:
    """Install the supervisor handlers on first use and return the log file path.

    The file records INFO and above; ``verbose`` lowers it to DEBUG and may be
    requested on a later call.
    """

    global _file_handler

    if _file_handler is None:
        path = log_file_path()
        path.parent.mkdir(parents=True, exist_ok=True)
        formatter = _SanitizingFormatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
        root = logging.getLogger()
        root.setLevel(logging.DEBUG)

        _file_handler = logging.FileHandler(path, encoding="utf-8")
        _file_handler.setLevel(logging.INFO)
        _file_handler.setFormatter(formatter)
        setattr(_file_handler, _MANAGED_ATTR, True)
        root.addHandler(_file_handler)

        if _stderr_wants_handler(root):
            console = logging.StreamHandler()
            console.setLevel(logging.INFO)
            console.setFormatter(formatter)
            setattr(console, _MANAGED_ATTR, True)
            root.addHandler(console)
        _LOGGER.info("Writing supervisor logs to %s", path)

    if verbose and _file_handler.level > logging.DEBUG:
        _file_handler.setLevel(logging.DEBUG)
        _LOGGER.debug("Debug records enabled for %s", _file_handler.baseFilename)
    return Path(_file_handler.baseFilename)


def _stderr_wants_handler(root: logging.Logger) -> bool:
    stream = sys.stderr
    try:
        if stream is None or not stream.isatty():
            return False
    except ValueError:  # closed
        return False
    return not any(
        isinstance(handler, logging.StreamHandler) and handler.stream is stream
        for handler in root.handlers
    )


def _reset_for_tests() -> None:
    global _file_handler

    root = logging.getLogger()
    for handler in list(root.handlers):
        if getattr(handler, _MANAGED_ATTR, False):
            root.removeHandler(handler)
            handler.close()
    _file_handler = None


__all__ = ["ensure_app_logging", "log_file_path", "sanitize_text"]
