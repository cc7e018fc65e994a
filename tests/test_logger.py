"""Unit tests for core.logger."""

import logging

from confluence_bot.core.logger import setup_logging


def test_setup_logging_console_and_file(tmp_path):
    logger = setup_logging("DEBUG", tmp_path / "logs", "bot.log")
    try:
        assert logger.name == "confluence_bot"
        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 2
        logging.getLogger("confluence_bot.scanner").info("scan ok")
        for h in logger.handlers:
            h.flush()
        assert "scan ok" in (tmp_path / "logs" / "bot.log").read_text(encoding="utf-8")
    finally:
        for h in logger.handlers:
            h.close()
        logger.handlers.clear()


def test_setup_logging_unknown_level_falls_back_to_info():
    logger = setup_logging("LOUD")
    try:
        assert logger.level == logging.INFO
        assert len(logger.handlers) == 1
    finally:
        logger.handlers.clear()
