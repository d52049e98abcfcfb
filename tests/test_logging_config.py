import logging

import pytest

from pawcare.config import Settings
from pawcare.logging_config import setup_logging


@pytest.fixture
def root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    root.handlers = handlers
    root.setLevel(level)


def test_setup_logging_installs_one_handler(root_logger):
    first = setup_logging("debug")
    second = setup_logging("warning")

    assert first is second
    assert root_logger.handlers.count(first) == 1
    assert root_logger.level == logging.WARNING


def test_setup_logging_reinstalls_removed_handler(root_logger):
    first = setup_logging()
    root_logger.removeHandler(first)

    second = setup_logging()

    assert second in root_logger.handlers


@pytest.mark.parametrize("environment, production", [("production", True), ("development", False)])
def test_is_production(environment, production):
    assert Settings(ENVIRONMENT=environment).IS_PRODUCTION is production
