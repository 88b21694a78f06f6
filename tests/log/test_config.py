"""
Logging configuration tests.

Tests for primabridge._logging setup.
"""

import logging

import pytest


@pytest.fixture(autouse=True)
def _restore_logger(monkeypatch):
    """Keep handler/level changes and PRIMABRIDGE_LOG_FORMAT local to each test."""
    from primabridge._logging import FORMAT_ENV, logger

    monkeypatch.delenv(FORMAT_ENV, raising=False)
    handlers = logger.handlers[:]
    level = logger.level
    yield
    logger.handlers[:] = handlers
    logger.setLevel(level)


class TestSetupLogging:
    """Tests for setup_logging() function."""

    def test_setup_logging_exported(self):
        """setup_logging is reachable from the package root."""
        import primabridge
        from primabridge._logging import setup_logging

        assert primabridge.setup_logging is setup_logging

    def test_setup_logging_default_level(self):
        """setup_logging() defaults to INFO level."""
        from primabridge._logging import logger, setup_logging

        setup_logging()

        assert logger.level == logging.INFO

    @pytest.mark.parametrize(
        "name,level",
        [
            ("DEBUG", logging.DEBUG),
            ("trace", logging.DEBUG),
            ("warn", logging.WARNING),
            ("fatal", logging.CRITICAL),
        ],
    )
    def test_setup_logging_accepts_string_level(self, name, level):
        """setup_logging() accepts the documented level names."""
        from primabridge._logging import logger, setup_logging

        setup_logging(name)

        assert logger.level == level

    def test_setup_logging_off(self):
        """'off' silences even critical records."""
        from primabridge._logging import logger, setup_logging

        setup_logging("off")

        assert not logger.isEnabledFor(logging.CRITICAL)

    def test_setup_logging_accepts_int_level(self):
        """setup_logging() accepts integer level constants."""
        from primabridge._logging import logger, setup_logging

        setup_logging(logging.WARNING)

        assert logger.level == logging.WARNING

    def test_setup_logging_replaces_handlers(self):
        """setup_logging() leaves exactly one handler."""
        from primabridge._logging import logger, setup_logging

        logger.addHandler(logging.StreamHandler())
        logger.addHandler(logging.StreamHandler())

        setup_logging("INFO")

        assert len(logger.handlers) == 1

    def test_setup_logging_format(self):
        """format= selects the formatter."""
        from primabridge._logging import HumanFormatter, JsonFormatter, logger, setup_logging

        setup_logging("INFO", format="json")
        assert isinstance(logger.handlers[0].formatter, JsonFormatter)

        setup_logging("INFO", format="human")
        assert isinstance(logger.handlers[0].formatter, HumanFormatter)


class TestEnvironment:
    """Tests for PRIMABRIDGE_LOG_LEVEL / PRIMABRIDGE_LOG_FORMAT."""

    def test_level_from_env(self, monkeypatch):
        """The level variable is read case-insensitively."""
        from primabridge._logging import LEVEL_ENV, _get_log_level

        monkeypatch.setenv(LEVEL_ENV, "DEBUG")

        assert _get_log_level() == logging.DEBUG

    def test_unknown_level_defaults_to_info(self, monkeypatch):
        """Unknown level names fall back to INFO."""
        from primabridge._logging import LEVEL_ENV, _get_log_level

        monkeypatch.setenv(LEVEL_ENV, "chatty")

        assert _get_log_level() == logging.INFO

    def test_format_from_env(self, monkeypatch):
        """The format variable wins over TTY detection."""
        from primabridge._logging import FORMAT_ENV, _get_log_format

        monkeypatch.setenv(FORMAT_ENV, "JSON")

        assert _get_log_format() == "json"


class TestLoggerHierarchy:
    """Tests for logger naming."""

    def test_logger_name(self):
        """The package logger is named primabridge."""
        from primabridge._logging import logger

        assert logger.name == "primabridge"

    def test_scoped_logger_uses_package_logger(self):
        """Scoped adapters wrap the package logger."""
        from primabridge._logging import logger, scoped_logger

        adapter = scoped_logger("minimize")

        assert adapter.logger is logger
        assert adapter.extra == {"scope": "minimize"}

    def test_child_inherits_level(self):
        """Child loggers inherit level from the package logger."""
        from primabridge._logging import setup_logging

        setup_logging("DEBUG")

        assert logging.getLogger("primabridge.child").getEffectiveLevel() == logging.DEBUG
