"""Conftest for unit tests - every test collected here is a unit test."""

import pytest


def pytest_collection_modifyitems(config, items):
    """Add the unit marker to tests that live under tests/unit."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
