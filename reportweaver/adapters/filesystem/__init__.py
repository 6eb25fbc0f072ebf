"""
Filesystem adapters.
"""

from .local import LocalFileSystemAdapter, default_download_dir

__all__ = ['LocalFileSystemAdapter', 'default_download_dir']
