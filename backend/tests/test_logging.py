from __future__ import annotations

import logging
from contextlib import contextmanager

from core.logging import LOG_FILE, setup_logging


@contextmanager
def _bare_root():
    """Run with no root handlers, restoring pytest's own afterwards."""
    root = logging.getLogger()
    saved_handlers = root.handlers[:]
    saved_levels = {name: logging.getLogger(name).level for name in ("", "sqlalchemy.engine", "sqlalchemy.pool")}
    root.handlers.clear()
    try:
        yield root
    finally:
        for h in root.handlers:
            h.close()
        root.handlers[:] = saved_handlers
        for name, level in saved_levels.items():
            logging.getLogger(name).setLevel(level)


def test_production_logs_info_to_console_and_file(tmp_path):
    with _bare_root() as root:
        setup_logging(environment=" Production ", log_dir=tmp_path)

        assert root.level == logging.INFO
        assert len(root.handlers) == 2
        assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING

        logging.getLogger("allocator.engine").debug("slot detail")
        logging.getLogger("allocator.runs").info("run completed")
        for h in root.handlers:
            h.flush()

    text = (tmp_path / LOG_FILE).read_text(encoding="utf-8")
    assert "run completed" in text
    assert "slot detail" not in text


def test_development_logs_debug_to_console_only(tmp_path):
    with _bare_root() as root:
        setup_logging(environment="development", log_dir=tmp_path)

        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1

    assert not (tmp_path / LOG_FILE).exists()


def test_setup_is_idempotent():
    with _bare_root() as root:
        setup_logging(environment="development")
        handlers = list(root.handlers)

        setup_logging(environment="production")

        assert root.handlers == handlers
