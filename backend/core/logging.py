from __future__ import annotations

import logging
import logging.handlers
from pathlib import Path

from core.config import BACKEND_DIR


LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"
LOG_FILE = "allocator.log"

_ALWAYS_WARNING = ("sqlalchemy.engine", "sqlalchemy.pool")


def _file_handler(log_dir: Path, formatter: logging.Formatter) -> logging.Handler:
    log_dir.mkdir(parents=True, exist_ok=True)
    handler = logging.handlers.RotatingFileHandler(
        log_dir / LOG_FILE,
        maxBytes=10 * 1024 * 1024,
        backupCount=5,
        encoding="utf-8",
    )
    handler.setFormatter(formatter)
    return handler


def setup_logging(*, environment: str, log_dir: Path | None = None) -> None:
    """Configure root logging once per process.

    Development logs everything at DEBUG to the console. Production logs INFO
    to the console and to a rotating file under `backend/logs/`.
    """
    root = logging.getLogger()
    if root.handlers:
        return

    production = (environment or "development").strip().lower() == "production"
    level = logging.INFO if production else logging.DEBUG
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt="%Y-%m-%dT%H:%M:%S%z")

    console = logging.StreamHandler()
    console.setFormatter(formatter)
    handlers: list[logging.Handler] = [console]
    if production:
        handlers.append(_file_handler(log_dir or BACKEND_DIR / "logs", formatter))

    logging.basicConfig(level=level, handlers=handlers)

    for name in _ALWAYS_WARNING:
        logging.getLogger(name).setLevel(logging.WARNING)
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        logging.getLogger(name).setLevel(level)
