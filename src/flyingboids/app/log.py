from __future__ import annotations

import logging
import logging.handlers
from pathlib import Path
from typing import Optional

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: str = "INFO", log_file: Optional[str] = None, fmt: str = DEFAULT_FORMAT) -> None:
    """Configure the root logger with a console handler and an optional rotating file."""
    root = logging.getLogger()
    root.setLevel(level.upper())
    if root.hasHandlers():
        root.handlers.clear()

    formatter = logging.Formatter(fmt)
    console = logging.StreamHandler()
    console.setFormatter(formatter)
    root.addHandler(console)

    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        # Rotate at 1MB, keep 5 backups.
        file_handler = logging.handlers.RotatingFileHandler(path, maxBytes=1024 * 1024, backupCount=5)
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    logging.getLogger(__name__).debug("Logging initialised at %s", level.upper())
