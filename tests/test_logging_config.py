# tests/test_logging_config.py

"""Tests for pricewise.config.logging_config."""

import logging
import tempfile
import unittest
from pathlib import Path

from pricewise.config.logging_config import setup_logging


class TestLoggingConfig(unittest.TestCase):
    """Handlers attached to the pricewise logger."""

    def setUp(self) -> None:
        """Start each test with a bare pricewise logger and a temp dir."""
        self._reset()
        self._tmp = tempfile.TemporaryDirectory()
        self.logs_dir = Path(self._tmp.name) / "logs"

    def tearDown(self) -> None:
        self._reset()
        self._tmp.cleanup()

    @staticmethod
    def _reset() -> None:
        root_logger = logging.getLogger("pricewise")
        for handler in list(root_logger.handlers):
            handler.close()
            root_logger.removeHandler(handler)

    def test_setup_creates_log_file(self) -> None:
        """The returned run file is created inside logs_dir."""
        log_path = setup_logging(self.logs_dir)
        self.assertTrue(log_path.exists())
        self.assertEqual(log_path.parent, self.logs_dir)

    def test_log_file_naming_convention(self) -> None:
        """Run files are named run_<date>_<time>.log."""
        log_path = setup_logging(self.logs_dir)
        self.assertRegex(log_path.name, r"^run_\d{8}_\d{6}\.log$")

    def test_handler_levels(self) -> None:
        """File handler logs DEBUG, console handler only WARNING."""
        setup_logging(self.logs_dir)
        root_logger = logging.getLogger("pricewise")
        file_handlers = [
            h for h in root_logger.handlers
            if isinstance(h, logging.FileHandler)
        ]
        stream_handlers = [
            h for h in root_logger.handlers
            if isinstance(h, logging.StreamHandler)
            and not isinstance(h, logging.FileHandler)
        ]
        self.assertEqual(file_handlers[0].level, logging.DEBUG)
        self.assertEqual(stream_handlers[0].level, logging.WARNING)

    def test_no_duplicate_handlers(self) -> None:
        """A second call leaves the handler list alone."""
        setup_logging(self.logs_dir)
        count = len(logging.getLogger("pricewise").handlers)
        setup_logging(self.logs_dir)
        self.assertEqual(len(logging.getLogger("pricewise").handlers), count)

    def test_repeat_call_returns_active_file(self) -> None:
        first = setup_logging(self.logs_dir)
        second = setup_logging(Path(self._tmp.name) / "elsewhere")
        self.assertEqual(first, second)

    def test_console_level_override(self) -> None:
        setup_logging(self.logs_dir, console_level=logging.INFO)
        levels = [
            h.level for h in logging.getLogger("pricewise").handlers
            if not isinstance(h, logging.FileHandler)
        ]
        self.assertEqual(levels, [logging.INFO])

    def test_child_loggers_write_to_file(self) -> None:
        """Messages from pricewise.* loggers land in the run file."""
        log_path = setup_logging(self.logs_dir)
        logging.getLogger("pricewise.matcher").info("hello from matcher")
        for handler in logging.getLogger("pricewise").handlers:
            handler.flush()
        content = log_path.read_text(encoding="utf-8")
        self.assertIn("hello from matcher", content)
        self.assertIn("pricewise.matcher", content)


if __name__ == "__main__":
    unittest.main()
