"""
Report listing search.

Walks the paginated report listing looking for the one row that matches a
target site, export format and scan type, then triggers its export.
"""

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from .domain import ReportTarget
from .exceptions import ElementTimeout, ListingExhausted, StaleElement
from .ports import BrowserSessionPort, ElementRef, StatusNotificationPort
from .selectors import DEFAULT_SELECTORS, ListingSelectors

logger = logging.getLogger(__name__)


class LocateStatus(Enum):
    FOUND = "found"
    NOT_FOUND = "not_found"


@dataclass
class LocateOutcome:
    """Result of a listing search"""

    status: LocateStatus
    pages_examined: int = 0
    rows_examined: int = 0
    trigger_timestamp: Optional[float] = None  # epoch seconds just before the export click
    row_text: str = ""

    @property
    def found(self) -> bool:
        return self.status is LocateStatus.FOUND


class ReportLocator:
    """Finds and exports the matching report row"""

    def __init__(
        self,
        wait_timeout: float = 20.0,
        selectors: ListingSelectors = DEFAULT_SELECTORS.listing,
        status: Optional[StatusNotificationPort] = None,
        max_pages: Optional[int] = None
    ):
        self.wait_timeout = wait_timeout
        self.selectors = selectors
        self.status = status
        self.max_pages = max_pages

    async def navigate_to_reports(self, session: BrowserSessionPort) -> None:
        """
        Open the reports section from the portal sidebar.

        Raises:
            ElementTimeout: If the navigation controls do not appear
        """
        self._notify("Navigating to reports...")
        toggle = await session.wait_visible(self.selectors.sidebar_toggle, self.wait_timeout)
        await session.click(toggle)
        link = await session.wait_visible(self.selectors.reports_link, self.wait_timeout)
        await session.click(link)

    async def locate(self, session: BrowserSessionPort, target: ReportTarget) -> LocateOutcome:
        """
        Search the listing and click the export control of the first match.

        Rows are examined in page order, then row order. No rows after the
        match and no later pages are examined.

        Args:
            session: Session showing the reports listing
            target: Identifier, format and scan-type filters

        Returns:
            LocateOutcome with status FOUND or NOT_FOUND

        Raises:
            ElementTimeout: If the listing rows never appear on the first page
        """
        self._notify("Fetching report rows...")
        rows = await self._read_rows(session)
        logger.info("Number of rows found: %d", len(rows))

        outcome = LocateOutcome(status=LocateStatus.NOT_FOUND)

        while True:
            outcome.pages_examined += 1

            for row in rows:
                outcome.rows_examined += 1
                try:
                    if not await self._row_matches(session, row, target):
                        continue
                    outcome.row_text = (await session.text(row)).strip()
                except ElementTimeout as e:
                    logger.debug("Row %d lacks an expected cell: %s", outcome.rows_examined, e)
                    self._notify("Cell not found in current row, skipping...")
                    continue
                except StaleElement as e:
                    logger.debug("Row %d was re-rendered while being read: %s", outcome.rows_examined, e)
                    self._notify("Row changed while reading it, skipping...")
                    continue

                self._notify(f"Matching row found: {outcome.row_text}")
                trigger = await session.wait_present(self.selectors.export_trigger, self.wait_timeout, scope=row)
                self._notify("Clicking download button...")
                outcome.trigger_timestamp = time.time()
                await session.click(trigger)
                outcome.status = LocateStatus.FOUND
                return outcome

            if self.max_pages is not None and outcome.pages_examined >= self.max_pages:
                self._notify(f"Stopped after {outcome.pages_examined} pages.")
                break

            next_rows = await self._advance_page(session, rows)
            if next_rows is None:
                break
            rows = next_rows

        self._notify("Desired row not found after processing all pages.")
        logger.warning("No report row matched %s after %d pages", target, outcome.pages_examined)
        return outcome

    async def require(self, session: BrowserSessionPort, target: ReportTarget) -> LocateOutcome:
        """
        Like ``locate`` but raise when nothing matches.

        Raises:
            ListingExhausted: If no row qualifies on any page
        """
        outcome = await self.locate(session, target)
        if not outcome.found:
            raise ListingExhausted(
                f"No report found for {target.target_identifier!r}",
                target_identifier=target.target_identifier,
                pages_examined=outcome.pages_examined
            )
        return outcome

    async def _row_matches(self, session: BrowserSessionPort, row: ElementRef, target: ReportTarget) -> bool:
        # Cheapest predicate first; a mismatch short-circuits the rest
        entity_cell = await session.wait_present(self.selectors.entity_cell, self.wait_timeout, scope=row)
        if target.target_identifier not in await session.text(entity_cell):
            return False

        format_cell = await session.wait_present(self.selectors.format_cell, self.wait_timeout, scope=row)
        if (await session.text(format_cell)).strip().lower() != target.format_filter.strip().lower():
            return False

        await session.wait_present(self.selectors.scan_type_cells, self.wait_timeout)
        wanted = target.scan_type_filter.strip().lower()
        for cell in await session.find_all(self.selectors.scan_type_cells):
            if (await session.text(cell)).strip().lower() == wanted:
                return True
        return False

    async def _read_rows(self, session: BrowserSessionPort) -> List[ElementRef]:
        await session.wait_present(self.selectors.rows, self.wait_timeout)
        return await session.find_all(self.selectors.rows)

    async def _advance_page(self, session: BrowserSessionPort, rows: List[ElementRef]) -> Optional[List[ElementRef]]:
        """Click "next" and fence on the old first row; None means pagination ended"""
        if not rows:
            return None

        self._notify("Checking for next page...")
        try:
            next_button = await session.wait_visible(self.selectors.next_page, self.wait_timeout)
        except ElementTimeout:
            self._notify("Next page button not found. Ending pagination.")
            return None

        if not await session.is_enabled(next_button):
            self._notify("No more pages available.")
            return None

        self._notify("Navigating to next page...")
        await session.click(next_button)
        try:
            await session.wait_stale(rows[0], self.wait_timeout)
            return await self._read_rows(session)
        except ElementTimeout:
            self._notify("Listing did not refresh after paging. Ending pagination.")
            return None

    def _notify(self, message: str) -> None:
        logger.info(message)
        if self.status:
            self.status.notify(message)
