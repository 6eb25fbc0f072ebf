"""
Unit tests for the Playwright session adapter's error translation.

Element handles are mocked, so no browser is launched.
"""

from unittest.mock import AsyncMock, Mock

import pytest
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from reportweaver.adapters.browser.playwright_session import PlaywrightBrowserSession
from reportweaver.core.exceptions import ElementTimeout, StaleElement


@pytest.fixture
def browser_session():
    page = Mock()
    page.is_closed.return_value = False
    return PlaywrightBrowserSession(context=AsyncMock(), page=page)


@pytest.fixture
def detached_handle():
    handle = AsyncMock()
    detached = PlaywrightError("Element is not attached to the DOM")
    handle.inner_text.side_effect = detached
    handle.evaluate.side_effect = detached
    handle.click.side_effect = detached
    handle.is_enabled.side_effect = detached
    handle.query_selector_all.side_effect = detached
    return handle


@pytest.mark.asyncio
async def test_text_of_detached_element_raises_stale_element(browser_session, detached_handle):
    with pytest.raises(StaleElement) as exc_info:
        await browser_session.text(detached_handle)

    assert exc_info.value.action == "read text"
    assert "not attached" in str(exc_info.value)


@pytest.mark.asyncio
@pytest.mark.parametrize("operation", [
    lambda s, h: s.attribute(h, "href"),
    lambda s, h: s.click(h),
    lambda s, h: s.is_enabled(h),
    lambda s, h: s.find_all("td", scope=h),
])
async def test_element_operations_translate_playwright_errors(browser_session, detached_handle, operation):
    with pytest.raises(StaleElement):
        await operation(browser_session, detached_handle)


@pytest.mark.asyncio
async def test_click_timeout_raises_element_timeout(browser_session):
    handle = AsyncMock()
    handle.click.side_effect = PlaywrightTimeoutError("Timeout 30000ms exceeded")

    with pytest.raises(ElementTimeout):
        await browser_session.click(handle)


@pytest.mark.asyncio
async def test_attached_element_reads_through(browser_session):
    handle = AsyncMock()
    handle.inner_text.return_value = "Missing alt text"

    assert await browser_session.text(handle) == "Missing alt text"
