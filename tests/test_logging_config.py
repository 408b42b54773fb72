"""Tests for logging setup."""

import logging

from rich.logging import RichHandler

from devpulse.config import MetricsConfig
from devpulse.logging_config import configure_logging, get_logger, setup_logging


class TestGetLogger:
    """Tests for logger namespacing."""

    def test_root(self):
        """No name returns the package logger."""
        assert get_logger().name == "devpulse"

    def test_module_name_kept(self):
        """Module names already under the package are unchanged."""
        assert get_logger("devpulse.temporal.reconcile").name == "devpulse.temporal.reconcile"

    def test_prefixed(self):
        """Foreign names are namespaced under the package."""
        assert get_logger("collector").name == "devpulse.collector"
        assert get_logger("devpulsex").name == "devpulse.devpulsex"


class TestSetupLogging:
    """Tests for handler and level configuration."""

    def test_default_level(self):
        """Default is WARNING with a rich handler."""
        logger = setup_logging()
        assert logger.level == logging.WARNING
        assert any(isinstance(h, RichHandler) for h in logging.getLogger().handlers)

    def test_verbose_and_quiet(self):
        """verbose -> DEBUG, quiet -> ERROR (quiet wins)."""
        assert setup_logging(verbose=True).level == logging.DEBUG
        assert setup_logging(verbose=True, quiet=True).level == logging.ERROR

    def test_log_file(self, tmp_path):
        """Records are also written to the log file."""
        path = tmp_path / "devpulse.log"
        setup_logging(verbose=True, log_file=str(path))

        get_logger("devpulse.test").warning("Skipping branch %s", "gone")
        for handler in logging.getLogger().handlers:
            handler.flush()

        assert "Skipping branch gone" in path.read_text()

    def test_from_config(self):
        """configure_logging follows the configured verbosity."""
        assert configure_logging(MetricsConfig(verbosity="verbose")).level == logging.DEBUG
        assert configure_logging(MetricsConfig(verbosity="quiet")).level == logging.ERROR
        assert configure_logging(MetricsConfig()).level == logging.WARNING
