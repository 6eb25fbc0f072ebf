"""
Document generation adapters.
"""

from .google_docs import GoogleDocsReportAdapter
from .local_report import LocalReportAdapter

__all__ = ['GoogleDocsReportAdapter', 'LocalReportAdapter']
