"""
Playwright browser session adapter.

Implements the BrowserSessionPort interface on top of Playwright. A single
browser process is shared by a factory; every session is its own isolated
browser context with one page.
"""

import asyncio
import logging
import uuid
from datetime import datetime
from pathlib import Path
from typing import Any, Awaitable, Dict, List, Optional, TypeVar

from playwright.async_api import Browser, BrowserContext, Download, ElementHandle, Page, async_playwright
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from ...core.exceptions import BrowserSessionError, ElementTimeout, StaleElement
from ...core.polling import PollTimeout, poll_until

logger = logging.getLogger(__name__)

T = TypeVar('T')

# Reads a DOM property when one exists (so href comes back absolute), else the attribute
_ATTRIBUTE_SCRIPT = """
(element, name) => {
    const value = element[name];
    if (typeof value === 'string' || typeof value === 'boolean' || typeof value === 'number') {
        return String(value);
    }
    return element.getAttribute(name);
}
"""


class PlaywrightBrowserSession:
    """One isolated browser context driven through Playwright"""

    def __init__(self, context: BrowserContext, page: Page, timeout_ms: int = 30000,
                 download_dir: Optional[str] = None):
        self.session_id = uuid.uuid4().hex[:12]
        self.created_at = datetime.now()
        self._context = context
        self._page = page
        self.timeout = timeout_ms
        self.download_dir = Path(download_dir) if download_dir else None
        self._closed = False
        self._pending_downloads: List[asyncio.Task] = []

        self._page.set_default_timeout(self.timeout)
        self._page.set_default_navigation_timeout(self.timeout)
        if self.download_dir is not None:
            self._page.on("download", self._on_download)

    @property
    def page(self) -> Page:
        if self._closed or self._page.is_closed():
            raise BrowserSessionError("Session is closed", session_id=self.session_id)
        return self._page

    async def open(self, url: str) -> None:
        try:
            await self.page.goto(url)
            await self.page.wait_for_load_state('domcontentloaded')
        except PlaywrightError as e:
            raise BrowserSessionError(f"Failed to navigate to {url}: {e}", session_id=self.session_id)

    async def find_one(self, selector: str, scope: Optional[ElementHandle] = None) -> Optional[ElementHandle]:
        root = scope or self.page
        return await self._element_call(f"find {selector}", root.query_selector(selector))

    async def find_all(self, selector: str, scope: Optional[ElementHandle] = None) -> List[ElementHandle]:
        root = scope or self.page
        return await self._element_call(f"find all {selector}", root.query_selector_all(selector))

    async def wait_visible(self, selector: str, timeout: float, scope: Optional[ElementHandle] = None) -> ElementHandle:
        return await self._wait_for(selector, "visible", timeout, scope)

    async def wait_present(self, selector: str, timeout: float, scope: Optional[ElementHandle] = None) -> ElementHandle:
        return await self._wait_for(selector, "attached", timeout, scope)

    async def wait_stale(self, ref: ElementHandle, timeout: float) -> None:
        async def detached() -> Optional[bool]:
            try:
                connected = await ref.evaluate("element => element.isConnected")
            except PlaywrightError:
                # Handle was disposed together with its execution context
                return True
            return None if connected else True

        try:
            await poll_until(detached, timeout=timeout, interval=0.1, description="element to detach")
        except PollTimeout as e:
            raise ElementTimeout(str(e), timeout=timeout)

    async def click(self, ref: ElementHandle) -> None:
        await self._element_call("click", ref.click())

    async def send_keys(self, ref: ElementHandle, text: str) -> None:
        await self._element_call("type", ref.type(text))

    async def text(self, ref: ElementHandle) -> str:
        return await self._element_call("read text", ref.inner_text())

    async def attribute(self, ref: ElementHandle, name: str) -> Optional[str]:
        return await self._element_call(f"read {name}", ref.evaluate(_ATTRIBUTE_SCRIPT, name))

    async def is_enabled(self, ref: ElementHandle) -> bool:
        return await self._element_call("check enabled", ref.is_enabled())

    async def close(self) -> None:
        """
        Close the page and its browser context.

        Raises:
            BrowserSessionError: If Playwright fails to close the context
        """
        if self._closed:
            return
        self._closed = True
        try:
            if self._pending_downloads:
                await asyncio.gather(*self._pending_downloads, return_exceptions=True)
            if not self._page.is_closed():
                await self._page.close()
            await self._context.close()
        except PlaywrightError as e:
            raise BrowserSessionError(f"Failed to close session: {e}", session_id=self.session_id)

    async def _wait_for(self, selector: str, state: str, timeout: float,
                        scope: Optional[ElementHandle]) -> ElementHandle:
        root = scope or self.page
        try:
            element = await root.wait_for_selector(selector, state=state, timeout=timeout * 1000)
        except PlaywrightTimeoutError:
            raise ElementTimeout(f"'{selector}' not {state} after {timeout}s", selector=selector, timeout=timeout)
        except PlaywrightError as e:
            raise ElementTimeout(f"'{selector}' lookup failed: {e}", selector=selector, timeout=timeout)
        if element is None:
            raise ElementTimeout(f"'{selector}' not {state}", selector=selector, timeout=timeout)
        return element

    async def _element_call(self, action: str, call: Awaitable[T]) -> T:
        try:
            return await call
        except PlaywrightTimeoutError as e:
            raise ElementTimeout(f"Could not {action}: {e}", session_id=self.session_id)
        except PlaywrightError as e:
            # Usually "Element is not attached to the DOM" after a re-render
            raise StaleElement(f"Could not {action}: {e}", action=action, session_id=self.session_id)

    def _on_download(self, download: Download) -> None:
        # Playwright keeps downloads in a temp dir; copy them to the watched folder
        self._pending_downloads.append(asyncio.ensure_future(self._save_download(download)))

    async def _save_download(self, download: Download) -> None:
        target = self.download_dir / download.suggested_filename
        try:
            await download.save_as(target)
            logger.info("Saved download to %s", target)
        except PlaywrightError as e:
            logger.error("Failed to save download %s: %s", download.suggested_filename, e)

    def __repr__(self) -> str:
        return f"PlaywrightBrowserSession(session_id={self.session_id!r}, created_at={self.created_at:%H:%M:%S})"


class PlaywrightSessionFactory:
    """
    Creates isolated Playwright sessions sharing one browser process.

    Usage:
        async with PlaywrightSessionFactory(headless=True) as factory:
            session = await factory()
    """

    def __init__(
        self,
        headless: bool = True,
        timeout_ms: int = 30000,
        download_dir: Optional[str] = None,
        browser_config: Optional[Dict[str, Any]] = None
    ):
        """
        Args:
            headless: Whether to run browser in headless mode
            timeout_ms: Default timeout for browser operations in milliseconds
            download_dir: Folder downloads are saved to; None disables saving
            browser_config: Optional overrides (headless, timeout)
        """
        self.headless = headless
        self.timeout = timeout_ms
        self.download_dir = download_dir
        if browser_config:
            if 'headless' in browser_config:
                self.headless = browser_config['headless']
            if 'timeout' in browser_config:
                self.timeout = browser_config['timeout']

        self._playwright = None
        self._browser: Optional[Browser] = None
        self._lock = asyncio.Lock()

    async def __call__(self) -> PlaywrightBrowserSession:
        browser = await self._ensure_browser()
        try:
            context = await browser.new_context(
                accept_downloads=True,
                viewport={'width': 1280, 'height': 720}
            )
            page = await context.new_page()
        except PlaywrightError as e:
            raise BrowserSessionError(f"Failed to create browser session: {e}")

        session = PlaywrightBrowserSession(context, page, timeout_ms=self.timeout, download_dir=self.download_dir)
        logger.debug("Created browser session %s", session.session_id)
        return session

    async def _ensure_browser(self) -> Browser:
        async with self._lock:
            try:
                if not self._playwright:
                    self._playwright = await async_playwright().start()
                if not self._browser or not self._browser.is_connected():
                    self._browser = await self._playwright.chromium.launch(headless=self.headless)
            except PlaywrightError as e:
                raise BrowserSessionError(f"Failed to launch browser: {e}")
            return self._browser

    async def stop(self) -> None:
        """Shut down the shared browser process"""
        async with self._lock:
            try:
                if self._browser:
                    await self._browser.close()
                if self._playwright:
                    await self._playwright.stop()
            except PlaywrightError as e:
                logger.warning("Error while stopping Playwright: %s", e)
            finally:
                self._browser = None
                self._playwright = None

    async def __aenter__(self) -> 'PlaywrightSessionFactory':
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.stop()
