"""
Local filesystem adapter for the download watcher.
"""

import logging
import os
from pathlib import Path
from typing import List

from ...core.domain import FileEntry

logger = logging.getLogger(__name__)


def default_download_dir() -> str:
    """The user's Downloads folder"""
    return str(Path.home() / "Downloads")


class LocalFileSystemAdapter:
    """Lists a local directory as FileEntry objects"""

    def list(self, directory: str) -> List[FileEntry]:
        entries = []
        try:
            with os.scandir(directory) as it:
                for dir_entry in it:
                    try:
                        stat = dir_entry.stat()
                        entries.append(FileEntry(
                            name=dir_entry.name,
                            size=stat.st_size,
                            modified_at=stat.st_mtime,
                            is_file=dir_entry.is_file()
                        ))
                    except OSError:
                        # Entry vanished between listing and stat (e.g. a renamed partial download)
                        continue
        except (FileNotFoundError, NotADirectoryError, PermissionError) as e:
            logger.warning("Cannot list %s: %s", directory, e)
            return []
        return entries
