"""
Pytest configuration for integration tests.

Every test here runs the real git binary; the whole directory is marked
``integration`` and skipped when git is unavailable.
"""

import pytest


def pytest_collection_modifyitems(config, items):
    for item in items:
        if "tests/integration" in str(item.path).replace("\\", "/"):
            item.add_marker(pytest.mark.integration)


@pytest.fixture(autouse=True)
def _git_required(requires_git):
    """Skip every integration test when git is not installed."""
    yield
