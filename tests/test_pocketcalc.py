"""
Tests for application startup helpers
"""
import logging

from pocketcalc import setup_logging


def test_setup_logging_writes_log_file(tmp_path):
    root = logging.getLogger("pocketcalc")
    handlers_before = list(root.handlers)
    try:
        log_file = setup_logging(level="WARNING", logs_dir=str(tmp_path / "logs"))
        logging.getLogger("pocketcalc.calculator").debug("engine message")
        for handler in root.handlers:
            handler.flush()

        with open(log_file, encoding="utf-8") as f:
            content = f.read()
        assert "engine message" in content
        assert "pocketcalc.calculator" in content
    finally:
        for handler in root.handlers[len(handlers_before):]:
            handler.close()
        root.handlers = handlers_before
