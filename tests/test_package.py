# tests/test_package.py
"""
Tests for package-level exports and logging setup.
"""

import logging

import pytest

import guaranteed_defs


@pytest.fixture
def package_logger():
    logger = logging.getLogger("guaranteed_defs")
    handlers, level = list(logger.handlers), logger.level
    yield logger
    logger.handlers[:] = handlers
    logger.setLevel(level)


class TestExports:

    def test_registry_names_are_bound(self):
        for names in guaranteed_defs._CORE_MODULES.values():
            for name in names:
                assert hasattr(guaranteed_defs, name)
                assert name in guaranteed_defs.__all__

    def test_version(self):
        assert guaranteed_defs.__version__ == "0.1.0"

    def test_quiet_by_default(self, package_logger):
        assert any(
            isinstance(h, logging.NullHandler) for h in package_logger.handlers
        )


class TestConfigureLogging:

    @pytest.mark.parametrize(
        "verbosity, level",
        [(0, logging.WARNING), (1, logging.INFO), (2, logging.DEBUG), (5, logging.DEBUG)],
    )
    def test_levels(self, package_logger, verbosity, level):
        logger = guaranteed_defs.configure_logging(verbosity)
        assert logger is package_logger
        assert logger.level == level

    def test_handler_replaced_not_stacked(self, package_logger):
        guaranteed_defs.configure_logging(1)
        guaranteed_defs.configure_logging(2)
        tagged = [
            h for h in package_logger.handlers if getattr(h, "_guaranteed_defs", False)
        ]
        assert len(tagged) == 1
