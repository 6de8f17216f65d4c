"""Pytest configuration for element_wrapper tests."""

import logging

import pytest

from builders import publisher_graph


@pytest.fixture
def graph():
    """Fresh publisher model for each test."""
    return publisher_graph()


@pytest.fixture(autouse=True)
def debug_logging(caplog):
    """Capture package logs at DEBUG so log assertions see every record."""
    caplog.set_level(logging.DEBUG, logger="element_wrapper")
    yield
