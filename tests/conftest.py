"""
Pytest configuration and fixtures shared by the /about test suite.
"""

import sys
from pathlib import Path

import pytest

# Add project root to path
BASE_DIR = Path(__file__).parent.parent
sys.path.insert(0, str(BASE_DIR))

from tests.fixtures.graph_fakes import FakeGraphService, RecordingSink  # noqa: E402


@pytest.fixture(autouse=True)
def setup_test_environment(monkeypatch):
    """Keep developer graph settings out of the tests."""
    for name in ("NEO4J_ENABLED", "NEO4J_URI", "NEO4J_USER", "NEO4J_USERNAME", "NEO4J_PASSWORD", "NEO4J_DATABASE"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def fake_graph():
    return FakeGraphService()


@pytest.fixture
def recording_sink():
    return RecordingSink()
