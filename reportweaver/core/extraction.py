"""
Error extraction from an exported report.

Opens the downloaded artifact, reads its error table and, for every error
that qualifies, fetches the documentation page and walks the paginated
detail listing in short-lived secondary sessions. A failure for one error
never affects its siblings.
"""

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Union
from urllib.parse import urlparse

from .authentication import AuthenticationFlow
from .domain import Error, ErrorSummary, PortalCredentials
from .exceptions import DetailFetchFailure, DocumentationFetchFailure, ElementTimeout, StaleElement
from .ports import BrowserSessionFactory, BrowserSessionPort, ElementRef, StatusNotificationPort
from .selectors import ACCEPTED_CATEGORIES, DEFAULT_SELECTORS, PortalSelectors
from .session_registry import SessionRegistry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CandidateRow:
    """A listing row that passed count and category validation"""

    instance_count: int
    error_name: str
    error_category: str
    documentation_url: str
    detail_url: str


class ErrorExtractionPipeline:
    """Builds the error model from an exported report"""

    def __init__(
        self,
        session_factory: BrowserSessionFactory,
        registry: SessionRegistry,
        auth_flow: AuthenticationFlow,
        wait_timeout: float = 10.0,
        documentation_timeout: float = 10.0,
        detail_timeout: float = 30.0,
        selectors: PortalSelectors = DEFAULT_SELECTORS,
        accepted_categories=ACCEPTED_CATEGORIES,
        status: Optional[StatusNotificationPort] = None,
        max_detail_pages: Optional[int] = None
    ):
        """
        Args:
            session_factory: Creates the secondary sessions for each error
            registry: Registry every secondary session is tracked in
            auth_flow: Login flow used on the detail pages
            wait_timeout: Seconds to wait for elements in the artifact
            documentation_timeout: Seconds to wait for documentation text
            detail_timeout: Seconds to wait for elements on detail pages
            selectors: Portal selectors
            accepted_categories: Categories (case-insensitive) that qualify a row
            status: Optional status channel
            max_detail_pages: Optional cap on detail pages walked per error
        """
        self.session_factory = session_factory
        self.registry = registry
        self.auth_flow = auth_flow
        self.wait_timeout = wait_timeout
        self.documentation_timeout = documentation_timeout
        self.detail_timeout = detail_timeout
        self.selectors = selectors
        self.accepted_categories = frozenset(c.lower() for c in accepted_categories)
        self.status = status
        self.max_detail_pages = max_detail_pages

    async def extract(
        self,
        session: BrowserSessionPort,
        artifact_path: Union[str, Path],
        credentials: PortalCredentials,
        cancel_event: Optional[asyncio.Event] = None
    ) -> List[Error]:
        """
        Extract every documented error from the artifact.

        Args:
            session: Session used to open the artifact
            artifact_path: Local path of the exported report
            credentials: Portal credentials for the detail pages
            cancel_event: Optional signal; when set no further rows are processed

        Returns:
            Documented errors in reverse discovery order

        Raises:
            ElementTimeout: If the artifact shows no error rows
        """
        uri = Path(artifact_path).resolve().as_uri()
        self._notify(f"Starting data extraction from file: {artifact_path}")
        await session.open(uri)

        await session.wait_present(self.selectors.artifact.rows, self.wait_timeout)
        rows = await session.find_all(self.selectors.artifact.rows)
        self._notify(f"Number of rows found: {len(rows)}")

        base_reference = await self._extract_base_reference(session)

        errors: List[Error] = []
        for index, row in enumerate(rows, start=1):
            if cancel_event is not None and cancel_event.is_set():
                self._notify("Extraction cancelled; remaining rows skipped.")
                break

            candidate = await self._parse_row(session, row, index)
            if candidate is None:
                continue

            self._notify(f"Found valid error: {candidate.error_name}")
            try:
                error = await self.fetch_documentation(candidate)
            except DocumentationFetchFailure as e:
                self._notify(f"Error fetching documentation for {candidate.error_name}: {e}")
                logger.warning("Discarding %s: %s", candidate.error_name, e)
                continue

            errors.append(error)
            try:
                await self.fetch_details(candidate.detail_url, error, credentials, base_reference)
            except DetailFetchFailure as e:
                self._notify(f"Error fetching details for {error.error_name}: {e}")
                logger.warning("Keeping %d partial entries for %s: %s",
                               len(error.data_entries), error.error_name, e)

        self._notify(f"Data extraction completed. Errors found: {len(errors)}")
        errors.reverse()
        return errors

    @staticmethod
    def summarize(errors: List[Error]) -> List[ErrorSummary]:
        """Summary rows for the given errors, in the same order"""
        return [ErrorSummary.from_error(error) for error in errors]

    async def fetch_documentation(self, candidate: CandidateRow) -> Error:
        """
        Read the documentation page of a candidate in a fresh session.

        Raises:
            DocumentationFetchFailure: If the page or any text field cannot be read
        """
        self._notify(f"Fetching error documentation for: {candidate.error_name}")
        doc = self.selectors.documentation
        try:
            async with self.registry.managed(self.session_factory) as doc_session:
                await doc_session.open(candidate.documentation_url)
                documentation = await self._visible_text(doc_session, doc.documentation)
                why_it_matters = await self._visible_text(doc_session, doc.why_it_matters)
                how_to_fix_it = await self._visible_text(doc_session, doc.how_to_fix_it)
        except Exception as e:
            raise DocumentationFetchFailure(
                f"Documentation unavailable: {e}",
                error_name=candidate.error_name,
                url=candidate.documentation_url
            ) from e

        self._notify(f"Successfully retrieved documentation for: {candidate.error_name}")
        return Error(
            instance_count=candidate.instance_count,
            error_name=candidate.error_name,
            error_category=candidate.error_category,
            documentation=documentation,
            why_it_matters=why_it_matters,
            how_to_fix_it=how_to_fix_it
        )

    async def fetch_details(
        self,
        detail_url: str,
        error: Error,
        credentials: PortalCredentials,
        base_reference: str
    ) -> int:
        """
        Walk the detail listing of one error in a fresh session.

        Entries are appended to ``error`` as they are read, so whatever was
        collected before a failure is kept.

        Returns:
            Number of pages read

        Raises:
            DetailFetchFailure: If the walk ended on an unexpected failure
        """
        self._notify(f"Fetching error details for: {error.error_name}")
        detail = self.selectors.detail
        try:
            async with self.registry.managed(self.session_factory) as detail_session:
                await detail_session.open(detail_url)
                await self._login_if_required(detail_session, credentials)

                details_view = await detail_session.wait_visible(detail.details_view, self.detail_timeout)
                await detail_session.click(details_view)

                return await self._collect_detail_pages(detail_session, error, base_reference)
        except Exception as e:
            raise DetailFetchFailure(
                f"Detail collection stopped: {e}",
                error_name=error.error_name,
                url=detail_url,
                entries_kept=len(error.data_entries)
            ) from e

    async def _collect_detail_pages(self, session: BrowserSessionPort, error: Error, base_reference: str) -> int:
        detail = self.selectors.detail
        pages = 0

        while True:
            self._notify(f"Processing error count pages for: {error.error_name}")
            try:
                await session.wait_present(detail.rows, self.detail_timeout)
            except ElementTimeout:
                self._notify(f"Pagination ended for: {error.error_name}")
                break

            rows = await session.find_all(detail.rows)
            pages += 1
            for row in rows:
                await self._append_entry(session, row, error, base_reference)

            if self.max_detail_pages is not None and pages >= self.max_detail_pages:
                break
            if not rows:
                break

            try:
                next_button = await session.wait_visible(detail.next_page, self.detail_timeout)
            except ElementTimeout:
                self._notify(f"Pagination ended for: {error.error_name}")
                break
            if not await session.is_enabled(next_button):
                self._notify(f"No more pages available for error: {error.error_name}")
                break

            await session.click(next_button)
            try:
                await session.wait_stale(rows[0], self.detail_timeout)
            except ElementTimeout:
                self._notify(f"Pagination ended for: {error.error_name}")
                break

        return pages

    async def _append_entry(self, session: BrowserSessionPort, row: ElementRef, error: Error, base_reference: str) -> None:
        detail = self.selectors.detail
        try:
            uri_cell = await session.wait_present(detail.uri_cell, self.detail_timeout, scope=row)
            count_cell = await session.wait_present(detail.count_cell, self.detail_timeout, scope=row)
            relative = (await session.text(uri_cell)).strip()
            count = int((await session.text(count_cell)).strip())
            entry = error.add_data_entry(base_reference + relative, count)
        except (ElementTimeout, StaleElement, ValueError) as e:
            self._notify("Cell not found in current row.")
            logger.warning("Skipping detail row for %s: %s", error.error_name, e)
            return

        logger.debug("Extracted error data - URL: %s, Count: %d", entry.url, entry.count)

    async def _parse_row(self, session: BrowserSessionPort, row: ElementRef, index: int) -> Optional[CandidateRow]:
        artifact = self.selectors.artifact
        try:
            count_cell = await session.wait_present(artifact.instance_count_cell, self.wait_timeout, scope=row)
            instance_count = int((await session.text(count_cell)).strip())
            name_link = await session.wait_present(artifact.error_name_link, self.wait_timeout, scope=row)
            error_name = (await session.text(name_link)).strip()
            category_cell = await session.wait_present(artifact.category_cell, self.wait_timeout, scope=row)
            category = (await session.text(category_cell)).strip()

            if instance_count <= 0 or category.lower() not in self.accepted_categories:
                return None

            doc_link = await session.wait_present(artifact.documentation_link, self.wait_timeout, scope=row)
            documentation_url = await session.attribute(doc_link, "href")
            detail_url = await session.attribute(name_link, "href")
        except Exception as e:
            self._notify(f"Error processing row: {e}")
            logger.info("Skipping row %d: %s", index, e)
            return None

        if not documentation_url or not detail_url:
            logger.info("Skipping row %d: missing link target", index)
            return None

        return CandidateRow(
            instance_count=instance_count,
            error_name=error_name,
            error_category=category,
            documentation_url=documentation_url,
            detail_url=detail_url
        )

    async def _extract_base_reference(self, session: BrowserSessionPort) -> str:
        self._notify("Extracting base URL...")
        try:
            anchor = await session.wait_visible(self.selectors.artifact.base_reference_anchor, self.wait_timeout)
            base = base_reference_from_url(await session.attribute(anchor, "href"))
        except Exception as e:
            self._notify(f"Error extracting base URL: {e}")
            logger.warning("Error extracting base URL: %s", e)
            return ""

        self._notify(f"Base URL extracted: {base}")
        return base

    async def _login_if_required(self, session: BrowserSessionPort, credentials: PortalCredentials) -> None:
        # A fresh session lands on the login page unless the portal lets it through.
        # The form can take as long as any login step to render.
        try:
            await session.wait_visible(self.auth_flow.selectors.identifier_input, self.auth_flow.extended_timeout)
        except ElementTimeout:
            logger.warning("No login form on detail page after %.0fs; continuing unauthenticated",
                           self.auth_flow.extended_timeout)
            return
        await self.auth_flow.authenticate(session, credentials)

    async def _visible_text(self, session: BrowserSessionPort, selector: str) -> str:
        element = await session.wait_visible(selector, self.documentation_timeout)
        return (await session.text(element)).strip()

    def _notify(self, message: str) -> None:
        logger.info(message)
        if self.status:
            self.status.notify(message)


def base_reference_from_url(url: Optional[str]) -> str:
    """
    Protocol and host of ``url``.

    Raises:
        ValueError: If ``url`` has no scheme or host
    """
    parsed = urlparse(url or "")
    if not parsed.scheme or not parsed.hostname:
        raise ValueError(f"Cannot derive base URL from {url!r}")
    return f"{parsed.scheme}://{parsed.hostname}"
