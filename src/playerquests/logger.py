import logging
from pathlib import Path
from typing import Optional, Union

from playerquests.runtime_config import get_data_dir

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
LOG_FILE = "playerquests.log"


def setup_logging(level: Union[int, str] = logging.INFO, log_dir: Optional[Path] = None) -> Path:
    """
    Send log records to a file in the data directory.

    The terminal belongs to the console UI, so nothing is logged to stderr.
    Returns the log file path.
    """
    log_dir = log_dir or get_data_dir()
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / LOG_FILE

    root = logging.getLogger()
    for handler in list(root.handlers):
        if getattr(handler, "_playerquests", False):
            root.removeHandler(handler)
            handler.close()

    handler = logging.FileHandler(log_file, encoding="utf-8")
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler._playerquests = True  # type: ignore[attr-defined]
    root.addHandler(handler)
    root.setLevel(level)
    return log_file
