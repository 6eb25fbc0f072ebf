"""
Shared pytest configuration and fixtures for ReportWeaver tests.

Provides domain objects, fake browser sessions and recording adapters used
across the unit and integration suites.
"""

import sys
from pathlib import Path
from unittest.mock import AsyncMock, Mock

import pytest

# Add project root to Python path for imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from reportweaver.adapters.progress.cli import RecordingStatusAdapter
from reportweaver.core.domain import Error, PortalCredentials, ReportRequest, ReportTarget
from reportweaver.core.session_registry import SessionRegistry

from tests.fixtures.fake_browser import FakeDocuments, FakeSession, FakeSessionFactory


# Domain Model Fixtures
@pytest.fixture
def credentials():
    return PortalCredentials(username="auditor@example.edu", password="s3cret")


@pytest.fixture
def report_target():
    return ReportTarget(target_identifier="example.edu")


@pytest.fixture
def report_request():
    return ReportRequest(
        target_site="example.edu",
        username="auditor@example.edu",
        password="s3cret",
        recipient_email="lead@example.edu"
    )


@pytest.fixture
def sample_errors():
    """Two errors with detail entries, in report order."""
    missing_alt = Error(3, "Missing alternative text", "Errors", "Images need alt text", "Screen readers", "Add alt")
    missing_alt.add_data_entry("https://example.edu/", 2)
    missing_alt.add_data_entry("https://example.edu/about", 1)

    contrast = Error(5, "Very low contrast", "Contrast Errors", "Text contrast", "Low vision", "Darken text")
    contrast.add_data_entry("https://example.edu/news", 5)
    return [missing_alt, contrast]


# Fake Adapter Fixtures
@pytest.fixture
def registry():
    return SessionRegistry()


@pytest.fixture
def status():
    return RecordingStatusAdapter()


@pytest.fixture
def site():
    """URL -> FakePage map shared by every fake session in a test"""
    return {}


@pytest.fixture
def session_factory(site):
    return FakeSessionFactory(site)


@pytest.fixture
def fake_session(site):
    return FakeSession(site)


@pytest.fixture
def fake_documents():
    return FakeDocuments()


@pytest.fixture
def mock_status_port():
    """Mock status notification port."""
    mock = Mock()
    mock.is_enabled.return_value = True
    return mock


@pytest.fixture
def mock_document_port():
    """Mock document generation port."""
    mock = AsyncMock()
    mock.create_report.return_value = "doc-mock"
    return mock


# Pytest Configuration Hooks
def pytest_configure(config):
    """Configure pytest with custom settings."""
    markers = [
        "unit: Unit tests (fast, isolated)",
        "integration: Integration tests (slower, multiple components)",
        "architecture: Architecture validation tests",
        "slow: Tests that wait on real timers",
    ]

    for marker in markers:
        config.addinivalue_line("markers", marker)


def pytest_collection_modifyitems(config, items):
    """Modify test collection to add markers automatically."""
    for item in items:
        # Auto-mark tests based on file path
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
        elif "architecture" in str(item.fspath):
            item.add_marker(pytest.mark.architecture)
