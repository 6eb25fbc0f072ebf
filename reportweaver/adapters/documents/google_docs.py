"""
Google Docs document adapter.

Creates the report as a Google Doc and shares it through the Drive
permissions API, using plain REST calls over aiohttp with a bearer token.
"""

import asyncio
import logging
from typing import Any, Dict, Optional, Sequence

import aiohttp

from ...core.domain import Error
from ...core.exceptions import DocumentGenerationError
from .text import render_report_text

logger = logging.getLogger(__name__)

DOCS_API = "https://docs.googleapis.com/v1/documents"
DRIVE_API = "https://www.googleapis.com/drive/v3/files"


class GoogleDocsReportAdapter:
    """DocumentGenerationPort backed by the Google Docs and Drive REST APIs"""

    def __init__(
        self,
        access_token: str,
        share_role: str = "writer",
        send_notification_email: bool = True,
        timeout_seconds: int = 30,
        docs_api: str = DOCS_API,
        drive_api: str = DRIVE_API
    ):
        """
        Args:
            access_token: OAuth bearer token with Docs and Drive scopes
            share_role: Drive role granted to the recipient (writer, reader, ...)
            send_notification_email: Ask Drive to email the recipient
            timeout_seconds: Timeout for each HTTP request
        """
        if not access_token:
            raise DocumentGenerationError("A Google access token is required")
        self.access_token = access_token
        self.share_role = share_role
        self.send_notification_email = send_notification_email
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds)
        self.docs_api = docs_api.rstrip('/')
        self.drive_api = drive_api.rstrip('/')

    async def create_report(self, title: str, errors: Sequence[Error]) -> str:
        """
        Create a document and fill it with the report text.

        Returns:
            The Google document ID

        Raises:
            DocumentGenerationError: If either API call fails
        """
        async with self._session() as session:
            created = await self._request(session, "POST", self.docs_api, json={"title": title})
            document_id = created.get("documentId")
            if not document_id:
                raise DocumentGenerationError("Docs API response carried no documentId")
            logger.info("Created document with ID: %s", document_id)

            body = render_report_text(title, errors)
            await self._request(
                session, "POST", f"{self.docs_api}/{document_id}:batchUpdate",
                json={"requests": [{"insertText": {"location": {"index": 1}, "text": body}}]},
                document_id=document_id
            )
        return document_id

    async def share(self, document_id: str, email_address: str) -> None:
        """
        Grant ``email_address`` access to the document.

        Raises:
            DocumentGenerationError: If the Drive call fails
        """
        permission = {"type": "user", "role": self.share_role, "emailAddress": email_address}
        params = {"sendNotificationEmail": "true" if self.send_notification_email else "false"}
        async with self._session() as session:
            await self._request(
                session, "POST", f"{self.drive_api}/{document_id}/permissions",
                json=permission, params=params, document_id=document_id
            )
        logger.info("Document %s shared with %s", document_id, email_address)

    def _session(self) -> aiohttp.ClientSession:
        headers = {"Authorization": f"Bearer {self.access_token}"}
        return aiohttp.ClientSession(timeout=self.timeout, headers=headers)

    async def _request(
        self,
        session: aiohttp.ClientSession,
        method: str,
        url: str,
        document_id: Optional[str] = None,
        **kwargs
    ) -> Dict[str, Any]:
        try:
            async with session.request(method, url, **kwargs) as response:
                if response.status >= 400:
                    detail = await response.text()
                    raise DocumentGenerationError(
                        f"{method} {url} returned {response.status}: {detail[:200]}",
                        document_id=document_id,
                        status=response.status
                    )
                if response.content_type == "application/json":
                    return await response.json()
                return {}
        except aiohttp.ClientError as e:
            raise DocumentGenerationError(f"Network error calling {url}: {e}", document_id=document_id)
        except asyncio.TimeoutError:
            raise DocumentGenerationError(f"Request to {url} timed out", document_id=document_id)
