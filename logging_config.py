import logging
from typing import Optional

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

ROOT_LOGGER_NAME = "chatroom"


def setup_logging(log_level: str = "INFO", log_file: Optional[str] = None):
    """Configure the application logger with a console handler and an optional file handler.

    Safe to call more than once; existing handlers are replaced.
    """
    level = getattr(logging, str(log_level).upper(), logging.INFO)
    root = logging.getLogger(ROOT_LOGGER_NAME)
    root.setLevel(level)

    for handler in root.handlers[:]:
        root.removeHandler(handler)

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    root.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    root.propagate = False
    return root


def get_logger(name: str) -> logging.Logger:
    """Return a logger namespaced under the application logger."""
    if name == ROOT_LOGGER_NAME or name.startswith(ROOT_LOGGER_NAME + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")
