"""
ReportWeaver Accessibility Report Extraction

Logs in to the accessibility-reporting portal, exports the report for one
site, extracts its errors and hands them to a document backend.
"""

__version__ = "1.0.0"
__description__ = "Accessibility report extraction with a ports-and-adapters core"
