import logging

import pytest


@pytest.fixture(autouse=True)
def reset_erdforge_logger():
    """setup_logging() (called by main()) attaches a stderr handler; undo it after every test."""
    yield
    logger = logging.getLogger("erdforge")
    logger.handlers.clear()
    logger.addHandler(logging.NullHandler())
    logger.setLevel(logging.NOTSET)
