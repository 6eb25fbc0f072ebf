"""
End-to-end report run.

Composes login, report search, download detection, error extraction and
document generation into one run per request. The caller always gets a
document identifier or the "Processing" sentinel, never an exception.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import List, Optional

from .authentication import AuthenticationFlow
from .domain import Error, ReportRequest
from .download_watcher import DownloadWatcher
from .exceptions import ConfigurationError, ReportWeaverDomainError
from .extraction import ErrorExtractionPipeline
from .ports import BrowserSessionFactory, DocumentGenerationPort, StatusNotificationPort
from .report_locator import ReportLocator
from .selectors import DEFAULT_REPORT_TITLE, PROCESSING_SENTINEL
from .session_registry import SessionRegistry

logger = logging.getLogger(__name__)


@dataclass
class RunSummary:
    """What happened during one run"""

    document_id: str = PROCESSING_SENTINEL
    report_found: bool = False
    artifact_path: Optional[str] = None
    errors: List[Error] = field(default_factory=list)
    shared: bool = False
    failure: Optional[str] = None
    elapsed: float = 0.0


class ReportOrchestrator:
    """Runs the whole extraction for one request"""

    def __init__(
        self,
        portal_url: str,
        session_factory: BrowserSessionFactory,
        registry: SessionRegistry,
        auth_flow: AuthenticationFlow,
        locator: ReportLocator,
        watcher: DownloadWatcher,
        pipeline: ErrorExtractionPipeline,
        documents: DocumentGenerationPort,
        download_dir: str,
        download_timeout: float = 30.0,
        report_title: str = DEFAULT_REPORT_TITLE,
        status: Optional[StatusNotificationPort] = None
    ):
        self.portal_url = portal_url
        self.session_factory = session_factory
        self.registry = registry
        self.auth_flow = auth_flow
        self.locator = locator
        self.watcher = watcher
        self.pipeline = pipeline
        self.documents = documents
        self.download_dir = download_dir
        self.download_timeout = download_timeout
        self.report_title = report_title
        self.status = status

    async def run(self, request: ReportRequest, cancel_event: Optional[asyncio.Event] = None) -> str:
        """
        Produce and share the error report for one request.

        Args:
            request: Target site, portal credentials and recipient
            cancel_event: Optional signal threaded into every bounded wait

        Returns:
            The created document identifier, or "Processing" when none was produced
        """
        summary = await self.execute(request, cancel_event)
        return summary.document_id

    async def execute(self, request: ReportRequest, cancel_event: Optional[asyncio.Event] = None) -> RunSummary:
        """Run the report process and return the full RunSummary"""
        start_time = time.time()
        summary = RunSummary()
        session = None

        try:
            if not self.portal_url:
                raise ConfigurationError("POPE_TECH_URL is not configured", setting="POPE_TECH_URL")

            session = await self.session_factory()
            self.registry.register(session)
            self._notify("Browser session initialized.")

            self._notify("Performing login...")
            await self.auth_flow.authenticate(session, request.credentials, url=self.portal_url)

            await self.locator.navigate_to_reports(session)

            self._notify("Processing report rows...")
            outcome = await self.locator.locate(session, request.target)
            summary.report_found = outcome.found
            if not outcome.found:
                self._notify("No matching report found. Report may be empty.")
                return self._finish(summary, start_time)

            artifact = await self.watcher.wait_for_download(
                self.download_dir,
                outcome.trigger_timestamp,
                self.download_timeout,
                cancel_event=cancel_event
            )
            if artifact is None:
                self._notify("No file was downloaded. Report may be empty.")
                return self._finish(summary, start_time)

            summary.artifact_path = str(artifact.path)
            logger.info("File downloaded at: %s", artifact.path)

            self._notify("Extracting data from downloaded report...")
            summary.errors = await self.pipeline.extract(
                session, artifact.path, request.credentials, cancel_event=cancel_event
            )
            logger.info("Errors passed to report: %s", summary.errors)

            if cancel_event is not None and cancel_event.is_set():
                self._notify("Run cancelled before document generation.")
                return self._finish(summary, start_time)

            self._notify("Generating report document with extracted errors...")
            summary.document_id = await self.documents.create_report(self.report_title, summary.errors)
            if not summary.document_id or summary.document_id == PROCESSING_SENTINEL:
                return self._finish(summary, start_time)

            self._notify("Sharing report document...")
            await self.documents.share(summary.document_id, request.recipient_email)
            summary.shared = True
            self._notify("Report document created and shared successfully!")

        except ReportWeaverDomainError as e:
            summary.failure = str(e)
            self._notify(f"Error during report process: {e}")
            logger.error("Report process failed: %s", e)
        except Exception as e:
            summary.failure = str(e)
            self._notify(f"Error during report process: {e}")
            logger.exception("Unexpected error during report process")
        finally:
            if session is not None:
                self._notify("Closing browser session...")
                await self.registry.release(session)

        return self._finish(summary, start_time)

    def _finish(self, summary: RunSummary, start_time: float) -> RunSummary:
        summary.elapsed = time.time() - start_time
        if not summary.document_id:
            summary.document_id = PROCESSING_SENTINEL
        if summary.document_id == PROCESSING_SENTINEL:
            self._notify("Report document ID is empty. Please try again")
            logger.error("Document ID is empty. Returning '%s'.", PROCESSING_SENTINEL)
        else:
            logger.info("Report process completed in %.1fs: %s", summary.elapsed, summary.document_id)
        return summary

    def _notify(self, message: str) -> None:
        logger.info(message)
        if self.status:
            self.status.notify(message)
