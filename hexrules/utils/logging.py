"""Logging setup for the server and the headless ``generate`` command.

Console output stays terse. A pass log written with ``log_file`` always records
DEBUG so every diagnostic of a headless run can be inspected afterwards.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

_HANDLER_NAME = "hexrules"

_CONSOLE_FORMAT = "%(asctime)s [%(levelname)-5s] %(name)-28s | %(message)s"
_FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s %(threadName)s | %(message)s"


def _owned(handler: logging.Handler) -> bool:
    return (handler.get_name() or "").startswith(_HANDLER_NAME)


def setup_logging(level: str = "INFO", log_file: str | Path | None = None) -> None:
    """Install the console handler, plus a DEBUG pass log when ``log_file`` is given.

    Calling it again replaces the handlers a previous call installed and leaves
    foreign handlers on the root logger alone.
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    root = logging.getLogger()
    for handler in [h for h in root.handlers if _owned(h)]:
        root.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler(sys.stdout)
    console.set_name(f"{_HANDLER_NAME}.console")
    console.setLevel(numeric_level)
    console.setFormatter(logging.Formatter(fmt=_CONSOLE_FORMAT, datefmt="%H:%M:%S"))
    root.addHandler(console)

    root_level = numeric_level
    if log_file is not None:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        pass_log = logging.FileHandler(path, mode="w", encoding="utf-8")
        pass_log.set_name(f"{_HANDLER_NAME}.file")
        pass_log.setLevel(logging.DEBUG)
        pass_log.setFormatter(logging.Formatter(fmt=_FILE_FORMAT))
        root.addHandler(pass_log)
        root_level = logging.DEBUG
    root.setLevel(root_level)
