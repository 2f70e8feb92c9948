import logging

import pytest


@pytest.fixture(autouse=True)
def reset_package_logger():
    """configure_logging() binds a handler to the current stderr; undo it."""
    yield
    logger = logging.getLogger("repaint_timeline")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
    logger.propagate = True
