import logging
import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_FILE = os.getenv("SECUENCIA_LOG_FILE", "").strip()
LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

# Upper bound on the outward lane search; past it, placement fails instead
# of looping forever.
LANE_SEARCH_LIMIT = int(os.getenv("LANE_SEARCH_LIMIT", "1000"))

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///secuencia.db")


def _attach_file_handler(
    logger_name: str,
    log_file_path: Path,
    level_name: str | None = None,
) -> None:
    logger_level = (level_name or LOG_LEVEL).upper()
    logger_level_value = getattr(logging, logger_level, logging.INFO)

    log_file_path.parent.mkdir(parents=True, exist_ok=True)
    target_logger = logging.getLogger(logger_name)
    if not any(
        isinstance(handler, logging.FileHandler)
        and getattr(handler, "baseFilename", None) == str(log_file_path)
        for handler in target_logger.handlers
    ):
        file_handler = logging.FileHandler(log_file_path, encoding="utf-8")
        file_handler.setLevel(logger_level_value)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        target_logger.addHandler(file_handler)
    target_logger.setLevel(logger_level_value)


def configure_logging(level: str | None = None, log_file: str | None = None) -> None:
    """
    Configure root logging for an embedding application.

    The library never calls this itself; it only logs through module loggers
    under the "secuencia" namespace.
    """
    logging.basicConfig(
        level=(level or LOG_LEVEL).upper(),
        format=LOG_FORMAT,
    )
    log_file = log_file if log_file is not None else LOG_FILE
    if log_file:
        _attach_file_handler("secuencia", Path(log_file).resolve(), level)
