"""
Shared pytest fixtures for the Store Services credential layer.
"""

import pytest

from shared.metrics import MetricsCollector


@pytest.fixture
def metrics():
    """Unregistered metrics collector."""
    return MetricsCollector()


@pytest.fixture
def refresh_uri():
    return "https://collections.mp.microsoft.com/v6.0/b2b/keys/renew"
