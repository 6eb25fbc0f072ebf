"""
Port interfaces for accessibility report extraction.

These interfaces define the contracts between the domain layer and infrastructure.
They enable dependency inversion and allow for easy testing with fake implementations.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional, Protocol, Sequence

from .domain import Error, FileEntry

# Element handles are opaque to the core. A handle is only valid until the
# page re-renders, so callers never keep one across a pagination boundary.
ElementRef = Any


class BrowserSessionPort(Protocol):
    """Port for one isolated page-automation context"""

    session_id: str
    created_at: datetime

    async def open(self, url: str) -> None:
        """
        Navigate the session to ``url``.

        Raises:
            BrowserSessionError: If navigation fails
        """
        ...

    async def find_one(self, selector: str, scope: Optional[ElementRef] = None) -> Optional[ElementRef]:
        """
        Find the first element matching ``selector`` without waiting.

        Returns:
            Element handle, or None when nothing matches
        """
        ...

    async def find_all(self, selector: str, scope: Optional[ElementRef] = None) -> List[ElementRef]:
        """
        Find every element matching ``selector`` without waiting.

        Returns:
            List of element handles in document order (possibly empty)
        """
        ...

    async def wait_visible(self, selector: str, timeout: float, scope: Optional[ElementRef] = None) -> ElementRef:
        """
        Wait until an element matching ``selector`` is visible.

        Raises:
            ElementTimeout: If no visible match appears within ``timeout`` seconds
        """
        ...

    async def wait_present(self, selector: str, timeout: float, scope: Optional[ElementRef] = None) -> ElementRef:
        """
        Wait until an element matching ``selector`` is attached to the DOM.

        Raises:
            ElementTimeout: If no match appears within ``timeout`` seconds
        """
        ...

    async def wait_stale(self, ref: ElementRef, timeout: float) -> None:
        """
        Wait until ``ref`` has been detached from the DOM.

        Raises:
            ElementTimeout: If the element is still attached after ``timeout`` seconds
        """
        ...

    async def click(self, ref: ElementRef) -> None:
        """
        Click an element previously returned by a lookup or wait.

        Element operations (click, send_keys, text, attribute, is_enabled)
        raise StaleElement when the handle was detached by a re-render.
        """
        ...

    async def send_keys(self, ref: ElementRef, text: str) -> None:
        ...

    async def text(self, ref: ElementRef) -> str:
        ...

    async def attribute(self, ref: ElementRef, name: str) -> Optional[str]:
        ...

    async def is_enabled(self, ref: ElementRef) -> bool:
        ...

    async def close(self) -> None:
        """
        Close the session and release browser resources.
        """
        ...


class BrowserSessionFactory(Protocol):
    """Creates new, unregistered browser sessions"""

    async def __call__(self) -> BrowserSessionPort:
        ...


class FileSystemPort(Protocol):
    """Port for directory listings used by the download watcher"""

    def list(self, directory: str) -> List[FileEntry]:
        """
        List entries of ``directory``.

        Returns:
            FileEntry per entry; an unreadable or missing directory yields []
        """
        ...


class DocumentGenerationPort(Protocol):
    """Port for the document backend that receives the final error list"""

    async def create_report(self, title: str, errors: Sequence[Error]) -> str:
        """
        Create a report document.

        Args:
            title: Document title
            errors: Errors in the order they should appear

        Returns:
            Identifier of the created document

        Raises:
            DocumentGenerationError: If the document cannot be created
        """
        ...

    async def share(self, document_id: str, email_address: str) -> None:
        """
        Share a created document with a recipient.

        Raises:
            DocumentGenerationError: If sharing fails
        """
        ...


class StatusNotificationPort(Protocol):
    """Port for best-effort, fire-and-forget status messages"""

    def notify(self, message: str) -> None:
        """
        Publish a status message. Must never raise.
        """
        ...


class ConfigurationPort(Protocol):
    """Port for configuration management"""

    def get_portal_config(self) -> Dict[str, Any]:
        """
        Get portal settings (entry URL, wait timeouts).

        Raises:
            ConfigurationError: If the portal URL is not configured
        """
        ...

    def get_browser_config(self) -> Dict[str, Any]:
        ...

    def get_download_config(self) -> Dict[str, Any]:
        ...

    def get_server_config(self) -> Dict[str, Any]:
        ...

    def validate_config(self) -> bool:
        ...
