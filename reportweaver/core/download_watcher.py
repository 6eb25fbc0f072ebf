"""
Download directory watcher.

Detects the export file the portal produces after the download control is
clicked: the newest regular file written after the click, no longer growing,
with an expected extension.
"""

import asyncio
import logging
from pathlib import Path
from typing import List, Optional

from .domain import DownloadedArtifact, FileEntry
from .exceptions import DownloadTimeout
from .polling import PollTimeout, cancellable_sleep, poll_until
from .ports import FileSystemPort, StatusNotificationPort
from .selectors import ALLOWED_ARTIFACT_EXTENSIONS, HIDDEN_NAMES, IN_PROGRESS_SUFFIXES

logger = logging.getLogger(__name__)


class DownloadWatcher:
    """Polls a directory for a completed, stable export artifact"""

    def __init__(
        self,
        filesystem: FileSystemPort,
        poll_interval: float = 1.0,
        settle_interval: float = 2.0,
        allowed_extensions=ALLOWED_ARTIFACT_EXTENSIONS,
        status: Optional[StatusNotificationPort] = None
    ):
        self.filesystem = filesystem
        self.poll_interval = poll_interval
        self.settle_interval = settle_interval
        self.allowed_extensions = frozenset(ext.lower() for ext in allowed_extensions)
        self.status = status

    async def wait_for_download(
        self,
        directory: str,
        trigger_timestamp: float,
        timeout_seconds: float,
        cancel_event: Optional[asyncio.Event] = None
    ) -> Optional[DownloadedArtifact]:
        """
        Wait for the export artifact to appear.

        Args:
            directory: Download directory to watch
            trigger_timestamp: Epoch seconds of the export click; only files
                modified strictly after it are considered
            timeout_seconds: Overall deadline
            cancel_event: Optional signal; when set the wait ends like a timeout

        Returns:
            The accepted artifact, or None on timeout or cancellation
        """
        self._notify(f"Monitoring download folder: {directory}")

        async def check() -> Optional[DownloadedArtifact]:
            candidate = self._newest_candidate(directory, trigger_timestamp)
            if candidate is None:
                return None
            if await self._is_complete(directory, candidate, cancel_event):
                return DownloadedArtifact(
                    path=Path(directory) / candidate.name,
                    modified_at=candidate.modified_at,
                    size=candidate.size
                )
            return None

        try:
            result = await poll_until(
                check,
                timeout=timeout_seconds,
                interval=self.poll_interval,
                cancel_event=cancel_event,
                description=f"download in {directory}"
            )
        except PollTimeout as e:
            if e.cancelled:
                self._notify("Download wait was cancelled.")
            else:
                self._notify("Download timeout reached. No valid file detected.")
            return None

        self._notify(f"File downloaded successfully: {result.value.name}")
        return result.value

    async def require_download(
        self,
        directory: str,
        trigger_timestamp: float,
        timeout_seconds: float,
        cancel_event: Optional[asyncio.Event] = None
    ) -> DownloadedArtifact:
        """
        Like ``wait_for_download`` but raise instead of returning None.

        Raises:
            DownloadTimeout: If no artifact is accepted before the deadline
        """
        artifact = await self.wait_for_download(directory, trigger_timestamp, timeout_seconds, cancel_event)
        if artifact is None:
            raise DownloadTimeout(
                f"No completed download in {directory} after {timeout_seconds}s",
                directory=directory,
                timeout=timeout_seconds
            )
        return artifact

    def _newest_candidate(self, directory: str, trigger_timestamp: float) -> Optional[FileEntry]:
        newest: Optional[FileEntry] = None
        for entry in self._candidates(directory, trigger_timestamp):
            # >= so that a tie goes to the entry listed later
            if newest is None or entry.modified_at >= newest.modified_at:
                newest = entry
        return newest

    def _candidates(self, directory: str, trigger_timestamp: float) -> List[FileEntry]:
        return [
            entry for entry in self.filesystem.list(directory)
            if entry.is_file
            and entry.modified_at > trigger_timestamp
            and not _is_hidden(entry.name)
        ]

    async def _is_complete(
        self,
        directory: str,
        candidate: FileEntry,
        cancel_event: Optional[asyncio.Event]
    ) -> bool:
        if _has_in_progress_suffix(candidate.name):
            self._notify(f"File is still downloading: {candidate.name}")
            return False

        if Path(candidate.name).suffix.lower() not in self.allowed_extensions:
            logger.debug("Ignoring %s: unexpected extension", candidate.name)
            return False

        if await cancellable_sleep(self.settle_interval, cancel_event):
            return False

        resampled = next(
            (e for e in self.filesystem.list(directory) if e.name == candidate.name),
            None
        )
        if resampled is None or resampled.size != candidate.size:
            logger.debug("File %s is still growing", candidate.name)
            return False
        return True

    def _notify(self, message: str) -> None:
        logger.info(message)
        if self.status:
            self.status.notify(message)


def _is_hidden(name: str) -> bool:
    return name in HIDDEN_NAMES or name.startswith('.')


def _has_in_progress_suffix(name: str) -> bool:
    lowered = name.lower()
    return any(lowered.endswith(suffix) for suffix in IN_PROGRESS_SUFFIXES)
