"""Tests for logging_config.py."""

import logging

import pytest

from quality_insight.logging_config import ROOT_LOGGER, get_logger, setup_logging


@pytest.fixture(autouse=True)
def restore_root_logging():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


class TestSetupLogging:
    @pytest.mark.parametrize(
        "verbosity,level",
        [("quiet", logging.ERROR), ("normal", logging.WARNING), ("verbose", logging.DEBUG)],
    )
    def test_levels(self, verbosity, level):
        assert setup_logging(verbosity).level == level

    def test_unknown_verbosity_falls_back_to_warning(self):
        assert setup_logging("chatty").level == logging.WARNING

    def test_reconfiguring_replaces_the_handler(self):
        setup_logging("quiet")
        logger = setup_logging("verbose")
        assert logger.name == ROOT_LOGGER
        assert len(logging.getLogger().handlers) == 1


class TestGetLogger:
    def test_module_names_are_namespaced(self):
        assert get_logger("scoring").name == "quality_insight.scoring"

    def test_package_names_are_kept(self):
        assert get_logger("quality_insight.pipeline").name == "quality_insight.pipeline"
