"""
Unit tests for error extraction from an exported report.
"""

import asyncio
import logging
from pathlib import Path

import pytest

from reportweaver.core.authentication import AuthenticationFlow
from reportweaver.core.domain import Error
from reportweaver.core.exceptions import DetailFetchFailure, DocumentationFetchFailure
from reportweaver.core.extraction import CandidateRow, ErrorExtractionPipeline, base_reference_from_url
from tests.fixtures.fake_browser import FakeElement, FakePage, FakeSession, install_pagination
from tests.fixtures.portal_pages import (
    DETAIL, LOGIN, PORTAL_HOST, add_login_form, artifact_page, artifact_row, detail_page, detail_row,
    details_url, doc_url, register_error_pages
)


@pytest.fixture
def artifact_path(tmp_path):
    return tmp_path / "report.html"


@pytest.fixture
def pipeline(session_factory, registry, status):
    return ErrorExtractionPipeline(
        session_factory=session_factory,
        registry=registry,
        auth_flow=AuthenticationFlow(extended_timeout=1),
        wait_timeout=1,
        documentation_timeout=1,
        detail_timeout=1,
        status=status
    )


def _publish_artifact(site, artifact_path, rows, **kwargs):
    site[Path(artifact_path).resolve().as_uri()] = artifact_page(rows, **kwargs)


def _row(count, name, category="Errors"):
    return artifact_row(count, name, category, doc_url(name), details_url(name))


@pytest.mark.asyncio
async def test_qualifying_rows_in_reverse_order(site, fake_session, pipeline, artifact_path, credentials, registry):
    _publish_artifact(site, artifact_path, [
        _row(3, "Missing alt text"),
        _row(2, "Redundant link", "Warnings"),
        _row(1, "Very low contrast", "Contrast Errors"),
    ])
    register_error_pages(site, "Missing alt text", [
        [("/", "2"), ("/about", "1"), ("/news", "4")],
        [("/contact", "1")],
    ])
    register_error_pages(site, "Very low contrast", [[("/", "1")]])
    register_error_pages(site, "Redundant link", [[("/", "9")]])

    errors = await pipeline.extract(fake_session, artifact_path, credentials)

    assert [e.error_name for e in errors] == ["Very low contrast", "Missing alt text"]
    alt = errors[1]
    assert alt.instance_count == 3
    assert alt.error_category == "Errors"
    assert alt.documentation == "Missing alt text documentation"
    assert alt.why_it_matters == "Why Missing alt text matters"
    assert alt.how_to_fix_it == "Fix Missing alt text"
    assert [e.url for e in alt.data_entries] == [
        f"{PORTAL_HOST}/", f"{PORTAL_HOST}/about", f"{PORTAL_HOST}/news", f"{PORTAL_HOST}/contact"
    ]
    assert alt.total_errors == 8
    assert errors[0].total_errors == 1
    assert len(registry) == 0


@pytest.mark.asyncio
async def test_secondary_sessions_are_closed(site, fake_session, pipeline, artifact_path, credentials, session_factory):
    _publish_artifact(site, artifact_path, [_row(3, "Missing alt text")])
    register_error_pages(site, "Missing alt text", [[("/", "3")]])

    await pipeline.extract(fake_session, artifact_path, credentials)

    assert len(session_factory.sessions) == 2
    assert all(s.closed for s in session_factory.sessions)
    assert not fake_session.closed


@pytest.mark.asyncio
@pytest.mark.parametrize("count, category", [(0, "Errors"), (-1, "Errors"), (4, "Alerts"), ("n/a", "Errors")])
async def test_rows_failing_validation_are_skipped(site, fake_session, pipeline, artifact_path, credentials,
                                                   session_factory, count, category):
    _publish_artifact(site, artifact_path, [_row(count, "Skipped", category)])

    errors = await pipeline.extract(fake_session, artifact_path, credentials)

    assert errors == []
    assert session_factory.sessions == []


@pytest.mark.asyncio
async def test_category_match_is_case_insensitive(site, fake_session, pipeline, artifact_path, credentials):
    _publish_artifact(site, artifact_path, [_row(1, "Empty button", "CONTRAST ERRORS")])
    register_error_pages(site, "Empty button", [[("/", "1")]])

    errors = await pipeline.extract(fake_session, artifact_path, credentials)

    assert [e.error_name for e in errors] == ["Empty button"]


@pytest.mark.asyncio
async def test_documentation_failure_discards_only_that_error(site, fake_session, pipeline, artifact_path,
                                                              credentials, session_factory):
    _publish_artifact(site, artifact_path, [_row(2, "No docs"), _row(1, "Documented")])
    register_error_pages(site, "Documented", [[("/", "1")]])
    site[details_url("No docs")] = FakePage()

    errors = await pipeline.extract(fake_session, artifact_path, credentials)

    assert [e.error_name for e in errors] == ["Documented"]
    visited = [url for s in session_factory.sessions for url in s.visited]
    assert details_url("No docs") not in visited


@pytest.mark.asyncio
async def test_detail_failure_keeps_partial_entries(site, fake_session, pipeline, artifact_path, credentials, registry):
    _publish_artifact(site, artifact_path, [_row(5, "Broken paging"), _row(1, "Healthy")])
    register_error_pages(site, "Healthy", [[("/", "1")]])
    register_error_pages(site, "Broken paging", [])

    def broken_detail():
        page = FakePage({DETAIL.details_view: [FakeElement("Details")]})
        next_button = install_pagination(page, DETAIL.rows, DETAIL.next_page, [
            [detail_row("/a", "2"), detail_row("/b", "3")],
            [detail_row("/c", "4")],
        ])
        next_button.on_click = _raise_runtime_error
        return page

    site[details_url("Broken paging")] = broken_detail

    errors = await pipeline.extract(fake_session, artifact_path, credentials)

    assert [e.error_name for e in errors] == ["Healthy", "Broken paging"]
    broken = errors[1]
    assert [e.url for e in broken.data_entries] == [f"{PORTAL_HOST}/a", f"{PORTAL_HOST}/b"]
    assert broken.total_errors == 5
    assert len(registry) == 0


@pytest.mark.asyncio
async def test_bad_detail_rows_are_skipped(site, fake_session, pipeline, artifact_path, credentials):
    _publish_artifact(site, artifact_path, [_row(3, "Mixed rows")])
    register_error_pages(site, "Mixed rows", [[("/ok", "2"), (None, "5"), ("/bad", "many"), ("/also-ok", "1")]])

    errors = await pipeline.extract(fake_session, artifact_path, credentials)

    assert [e.url for e in errors[0].data_entries] == [f"{PORTAL_HOST}/ok", f"{PORTAL_HOST}/also-ok"]
    assert errors[0].total_errors == 3


@pytest.mark.asyncio
async def test_detached_detail_row_skips_only_that_row(site, fake_session, pipeline, artifact_path, credentials):
    _publish_artifact(site, artifact_path, [_row(6, "Re-rendered")])
    register_error_pages(site, "Re-rendered", [])

    def detail_with_detached_row():
        page = FakePage({DETAIL.details_view: [FakeElement("Details")]})
        detached = detail_row("/gone", "7")
        detached.children[DETAIL.uri_cell][0].detached = True
        install_pagination(page, DETAIL.rows, DETAIL.next_page, [
            [detail_row("/a", "1"), detached, detail_row("/b", "2")],
            [detail_row("/c", "3")],
        ])
        return page

    site[details_url("Re-rendered")] = detail_with_detached_row

    errors = await pipeline.extract(fake_session, artifact_path, credentials)

    assert [e.url for e in errors[0].data_entries] == [f"{PORTAL_HOST}/a", f"{PORTAL_HOST}/b", f"{PORTAL_HOST}/c"]
    assert errors[0].total_errors == 6


@pytest.mark.asyncio
async def test_rereading_final_page_leaves_collected_error_unchanged(site, fake_session, pipeline):
    site[details_url("Paged")] = detail_page([[("/a", "1"), ("/b", "2")], [("/c", "3")]])
    await fake_session.open(details_url("Paged"))
    next_button = fake_session.page.elements[DETAIL.next_page][0]

    collected = Error(6, "Paged", "Errors")
    pages = await pipeline._collect_detail_pages(fake_session, collected, PORTAL_HOST)

    assert pages == 2
    assert not next_button.enabled
    assert next_button.clicks == 1
    finalized = [(e.url, e.count) for e in collected.data_entries]
    assert finalized == [(f"{PORTAL_HOST}/a", 1), (f"{PORTAL_HOST}/b", 2), (f"{PORTAL_HOST}/c", 3)]

    # Same final page again, now with next disabled
    reread = Error(3, "Paged", "Errors")
    assert await pipeline._collect_detail_pages(fake_session, reread, PORTAL_HOST) == 1

    assert next_button.clicks == 1
    assert [(e.url, e.count) for e in collected.data_entries] == finalized
    assert collected.total_errors == 6
    assert [(e.url, e.count) for e in reread.data_entries] == [(f"{PORTAL_HOST}/c", 3)]


@pytest.mark.asyncio
async def test_missing_base_reference_leaves_relative_urls(site, fake_session, pipeline, artifact_path, credentials):
    _publish_artifact(site, artifact_path, [_row(1, "Relative")], base_href=None)
    register_error_pages(site, "Relative", [[("/page", "1")]])

    errors = await pipeline.extract(fake_session, artifact_path, credentials)

    assert errors[0].data_entries[0].url == "/page"


@pytest.mark.asyncio
async def test_detail_page_login_when_prompted(site, fake_session, pipeline, artifact_path, credentials):
    _publish_artifact(site, artifact_path, [_row(1, "Behind login")])
    register_error_pages(site, "Behind login", [[("/", "1")]])
    build_detail = site[details_url("Behind login")]
    typed = {}

    def detail_with_login():
        page = build_detail()
        typed.update(add_login_form(page))
        return page

    site[details_url("Behind login")] = detail_with_login

    errors = await pipeline.extract(fake_session, artifact_path, credentials)

    assert errors[0].total_errors == 1
    assert typed[LOGIN.password_input].typed == ["s3cret"]


class TimeoutRecordingSession(FakeSession):
    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.waits = []

    async def wait_visible(self, selector, timeout, scope=None):
        self.waits.append((selector, timeout))
        return await super().wait_visible(selector, timeout, scope)


@pytest.mark.asyncio
async def test_detail_login_check_waits_as_long_as_a_login_step(site, session_factory, registry, credentials, caplog):
    pipeline = ErrorExtractionPipeline(
        session_factory=session_factory,
        registry=registry,
        auth_flow=AuthenticationFlow(extended_timeout=7),
        wait_timeout=1
    )
    session = TimeoutRecordingSession(site)
    await session.open(details_url("Public"))

    with caplog.at_level(logging.WARNING, logger="reportweaver.core.extraction"):
        await pipeline._login_if_required(session, credentials)

    assert session.waits == [(LOGIN.identifier_input, 7)]
    assert "continuing unauthenticated" in caplog.text


@pytest.mark.asyncio
async def test_cancellation_stops_further_rows(site, fake_session, pipeline, artifact_path, credentials, session_factory):
    _publish_artifact(site, artifact_path, [_row(1, "First"), _row(1, "Second")])
    register_error_pages(site, "First", [[("/", "1")]])
    register_error_pages(site, "Second", [[("/", "1")]])
    cancel = asyncio.Event()
    cancel.set()

    errors = await pipeline.extract(fake_session, artifact_path, credentials, cancel_event=cancel)

    assert errors == []
    assert session_factory.sessions == []


@pytest.mark.asyncio
async def test_fetch_documentation_raises_candidate_failure(pipeline):
    candidate = CandidateRow(1, "Ghost", "Errors", doc_url("Ghost"), details_url("Ghost"))

    with pytest.raises(DocumentationFetchFailure) as exc_info:
        await pipeline.fetch_documentation(candidate)

    assert exc_info.value.error_name == "Ghost"


@pytest.mark.asyncio
async def test_fetch_details_raises_candidate_failure(pipeline, credentials):
    error = Error(1, "Ghost", "Errors")

    with pytest.raises(DetailFetchFailure):
        await pipeline.fetch_details(details_url("Ghost"), error, credentials, PORTAL_HOST)

    assert error.data_entries == []


def test_summarize(sample_errors):
    rows = ErrorExtractionPipeline.summarize(sample_errors)
    assert [(r.error_name, r.total_errors) for r in rows] == [("Missing alternative text", 3), ("Very low contrast", 5)]


@pytest.mark.parametrize("url, expected", [
    ("https://portal.example.com/reports/1?x=y", "https://portal.example.com"),
    ("http://localhost:8080/a", "http://localhost"),
])
def test_base_reference_from_url(url, expected):
    assert base_reference_from_url(url) == expected


@pytest.mark.parametrize("url", [None, "", "/relative/path", "file:///tmp/report.html"])
def test_base_reference_from_url_rejects(url):
    with pytest.raises(ValueError):
        base_reference_from_url(url)


def _raise_runtime_error(session):
    raise RuntimeError("portal navigation crashed")
