"""
Unit tests for the end-to-end report run, with every collaborator mocked.
"""

import asyncio
from pathlib import Path
from unittest.mock import AsyncMock, Mock

import pytest

from reportweaver.core.domain import DownloadedArtifact, Error
from reportweaver.core.exceptions import AuthenticationError, DocumentGenerationError, ElementTimeout
from reportweaver.core.orchestrator import ReportOrchestrator
from reportweaver.core.report_locator import LocateOutcome, LocateStatus
from reportweaver.core.selectors import PROCESSING_SENTINEL
from tests.fixtures.fake_browser import FakeSessionFactory

PORTAL_URL = "https://portal.example.com/login"


@pytest.fixture
def components():
    locator = Mock()
    locator.navigate_to_reports = AsyncMock()
    locator.locate = AsyncMock(return_value=LocateOutcome(LocateStatus.FOUND, 1, 2, trigger_timestamp=100.0))

    watcher = Mock()
    watcher.wait_for_download = AsyncMock(return_value=DownloadedArtifact(Path("/downloads/report.html"), 101.0, 10))

    pipeline = Mock()
    pipeline.extract = AsyncMock(return_value=[Error(1, "Empty link", "Errors")])

    documents = Mock()
    documents.create_report = AsyncMock(return_value="doc-1")
    documents.share = AsyncMock()

    auth_flow = Mock()
    auth_flow.authenticate = AsyncMock()

    return {
        "auth_flow": auth_flow,
        "locator": locator,
        "watcher": watcher,
        "pipeline": pipeline,
        "documents": documents,
    }


@pytest.fixture
def factory():
    return FakeSessionFactory()


@pytest.fixture
def orchestrator(components, factory, registry, status):
    return ReportOrchestrator(
        portal_url=PORTAL_URL,
        session_factory=factory,
        registry=registry,
        download_dir="/downloads",
        download_timeout=5,
        status=status,
        **components
    )


@pytest.mark.asyncio
async def test_successful_run_creates_and_shares(orchestrator, components, factory, registry, report_request):
    document_id = await orchestrator.run(report_request)

    assert document_id == "doc-1"
    components["auth_flow"].authenticate.assert_awaited_once()
    assert components["auth_flow"].authenticate.await_args.kwargs["url"] == PORTAL_URL
    components["watcher"].wait_for_download.assert_awaited_once_with(
        "/downloads", 100.0, 5, cancel_event=None
    )
    title, errors = components["documents"].create_report.await_args.args
    assert title == "Error Report"
    assert [e.error_name for e in errors] == ["Empty link"]
    components["documents"].share.assert_awaited_once_with("doc-1", "lead@example.edu")
    assert factory.sessions[0].closed
    assert len(registry) == 0


@pytest.mark.asyncio
async def test_execute_reports_details(orchestrator, report_request):
    summary = await orchestrator.execute(report_request)

    assert summary.report_found
    assert summary.shared
    assert summary.artifact_path == str(Path("/downloads/report.html"))
    assert summary.failure is None
    assert summary.elapsed >= 0


@pytest.mark.asyncio
async def test_authentication_failure_yields_sentinel(orchestrator, components, factory, registry, report_request):
    components["auth_flow"].authenticate.side_effect = AuthenticationError("no SSO", state="verify_sso_assertion")

    summary = await orchestrator.execute(report_request)

    assert summary.document_id == PROCESSING_SENTINEL
    assert "no SSO" in summary.failure
    components["locator"].locate.assert_not_awaited()
    assert factory.sessions[0].closed
    assert len(registry) == 0


@pytest.mark.asyncio
async def test_report_not_found_short_circuits(orchestrator, components, factory, report_request):
    components["locator"].locate.return_value = LocateOutcome(LocateStatus.NOT_FOUND, 3, 30)

    assert await orchestrator.run(report_request) == PROCESSING_SENTINEL
    components["watcher"].wait_for_download.assert_not_awaited()
    assert factory.sessions[0].closed


@pytest.mark.asyncio
async def test_no_download_short_circuits(orchestrator, components, factory, report_request):
    components["watcher"].wait_for_download.return_value = None

    assert await orchestrator.run(report_request) == PROCESSING_SENTINEL
    components["pipeline"].extract.assert_not_awaited()
    components["documents"].create_report.assert_not_awaited()
    assert factory.sessions[0].closed


@pytest.mark.asyncio
async def test_listing_timeout_yields_sentinel(orchestrator, components, factory, report_request):
    components["locator"].locate.side_effect = ElementTimeout("rows never appeared")

    assert await orchestrator.run(report_request) == PROCESSING_SENTINEL
    assert factory.sessions[0].closed


@pytest.mark.asyncio
async def test_unexpected_exception_yields_sentinel(orchestrator, components, factory, report_request):
    components["pipeline"].extract.side_effect = KeyError("boom")

    assert await orchestrator.run(report_request) == PROCESSING_SENTINEL
    assert factory.sessions[0].closed


@pytest.mark.asyncio
async def test_empty_document_id_skips_share(orchestrator, components, report_request):
    components["documents"].create_report.return_value = ""

    assert await orchestrator.run(report_request) == PROCESSING_SENTINEL
    components["documents"].share.assert_not_awaited()


@pytest.mark.asyncio
async def test_document_failure_yields_sentinel(orchestrator, components, report_request):
    components["documents"].create_report.side_effect = DocumentGenerationError("quota exceeded")

    assert await orchestrator.run(report_request) == PROCESSING_SENTINEL


@pytest.mark.asyncio
async def test_share_failure_keeps_document_id(orchestrator, components, report_request):
    components["documents"].share.side_effect = DocumentGenerationError("permission denied", document_id="doc-1")

    summary = await orchestrator.execute(report_request)

    assert summary.document_id == "doc-1"
    assert not summary.shared
    assert "permission denied" in summary.failure


@pytest.mark.asyncio
async def test_missing_portal_url_yields_sentinel(components, factory, registry, report_request):
    orchestrator = ReportOrchestrator(
        portal_url="",
        session_factory=factory,
        registry=registry,
        download_dir="/downloads",
        **components
    )

    assert await orchestrator.run(report_request) == PROCESSING_SENTINEL
    assert factory.sessions == []


@pytest.mark.asyncio
async def test_cancellation_before_document_generation(orchestrator, components, report_request):
    cancel = asyncio.Event()

    async def extract_and_cancel(*args, **kwargs):
        cancel.set()
        return []

    components["pipeline"].extract.side_effect = extract_and_cancel

    assert await orchestrator.run(report_request, cancel_event=cancel) == PROCESSING_SENTINEL
    components["documents"].create_report.assert_not_awaited()


@pytest.mark.asyncio
async def test_task_cancellation_still_releases_session(orchestrator, components, factory, registry, report_request):
    started = asyncio.Event()

    async def hang(*args, **kwargs):
        started.set()
        await asyncio.sleep(60)

    components["watcher"].wait_for_download.side_effect = hang

    task = asyncio.create_task(orchestrator.run(report_request))
    await started.wait()
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert factory.sessions[0].closed
    assert len(registry) == 0


@pytest.mark.asyncio
async def test_status_messages_are_sent(orchestrator, status, report_request):
    await orchestrator.run(report_request)

    assert "Performing login..." in status.messages
    assert "Report document created and shared successfully!" in status.messages
