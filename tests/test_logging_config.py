#!/usr/bin/env python3
"""Unit tests for command-line logging setup."""
import logging
import sys

import pytest

sys.path.insert(0, str(__file__).rsplit("/tests", 1)[0])
from src.dnac.api.logging_config import init_logging


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    saved_level = root.level
    yield
    for handler in root.handlers[:]:
        if type(handler) in (logging.StreamHandler, logging.FileHandler):
            root.removeHandler(handler)
            handler.close()
    root.setLevel(saved_level)


class TestInitLogging:

    def test_console_and_debug_file(self, tmp_path):
        debug_file = tmp_path / "debug.log"

        init_logging("WARNING", debug_file=str(debug_file))
        logging.getLogger("dnac.test").debug("only in the file")

        handlers = logging.getLogger().handlers
        console = [h for h in handlers if not isinstance(h, logging.FileHandler)]
        files = [h for h in handlers if isinstance(h, logging.FileHandler)]
        assert console[0].level == logging.WARNING
        assert files[0].level == logging.DEBUG

        files[0].flush()
        assert "only in the file" in debug_file.read_text()

    def test_level_from_environment(self, monkeypatch):
        monkeypatch.setenv("DNAC_LOG_LEVEL", "debug")

        init_logging(debug_file=None)

        root = logging.getLogger()
        assert len(root.handlers) == 1
        assert root.handlers[0].level == logging.DEBUG

    def test_unknown_level_falls_back_to_info(self):
        init_logging("chatty", debug_file=None)
        assert logging.getLogger().handlers[0].level == logging.INFO


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
