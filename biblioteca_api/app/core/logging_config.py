"""
Process-wide logging for the Biblioteca API.

Everything logs through ``logging.getLogger(__name__)`` and propagates
to the root logger, which ``setup_logging`` equips with a console
handler.  When ``LOG_FILE`` is set the same records also go to that
file, appended across restarts, so the lending audit messages (every
permitted borrow and return) survive the process.  Storage faults are
logged with their traceback.
"""

import logging
from pathlib import Path
from typing import Optional

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Handlers installed here carry these names; other handlers on the root
# logger (uvicorn's, pytest's) are left alone.
CONSOLE_HANDLER = "biblioteca.console"
FILE_HANDLER = "biblioteca.file"


def setup_logging(level: str = "INFO", logfile: Optional[str] = None) -> None:
    """Attach the console handler and, if ``logfile`` is given, the file handler.

    Safe to call more than once: a handler that is already installed is
    not added again.  ``level`` is a level name such as ``"DEBUG"``; an
    unknown name falls back to ``INFO``.
    """
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    installed = {handler.get_name() for handler in root.handlers}
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    if CONSOLE_HANDLER not in installed:
        console = logging.StreamHandler()
        console.set_name(CONSOLE_HANDLER)
        console.setFormatter(formatter)
        root.addHandler(console)

    if logfile and FILE_HANDLER not in installed:
        log_path = Path(logfile).resolve()
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, mode="a", encoding="utf-8")
        file_handler.set_name(FILE_HANDLER)
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)
