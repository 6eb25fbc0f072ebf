"""
Request/response front door.
"""

from .app import ReportServer, build_report_server

__all__ = ['ReportServer', 'build_report_server']
