"""
Shared pytest fixtures.
"""

import logging

import pytest


@pytest.fixture
def package_caplog(caplog):
    """``caplog`` attached to the ``misckit`` logger, which does not propagate."""
    package_logger = logging.getLogger("misckit")
    package_logger.addHandler(caplog.handler)
    try:
        yield caplog
    finally:
        package_logger.removeHandler(caplog.handler)
