"""
Domain-Specific Exceptions

Defines the exception taxonomy for the report extraction pipeline. Each class
marks how far a failure propagates: run-level failures abort the whole report
run, candidate-level failures are isolated to one error.
"""

import logging
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


# Base domain exception hierarchy
class ReportWeaverDomainError(Exception):
    """Base exception for all report extraction domain errors"""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.context = context or {}
        self.domain = "ReportWeaver"


class AuthenticationError(ReportWeaverDomainError):
    """Raised when the portal login sequence fails; fatal to the session's use"""

    def __init__(self, message: str, username: Optional[str] = None, state: Optional[str] = None, **context):
        super().__init__(message, context)
        self.username = username
        self.state = state


class ElementTimeout(ReportWeaverDomainError):
    """Raised when a bounded wait for an element or condition expires"""

    def __init__(self, message: str, selector: Optional[str] = None, timeout: Optional[float] = None, **context):
        super().__init__(message, context)
        self.selector = selector
        self.timeout = timeout


class StaleElement(ReportWeaverDomainError):
    """Raised when an element handle was detached from the page before it could be used"""

    def __init__(self, message: str, action: Optional[str] = None, **context):
        super().__init__(message, context)
        self.action = action


class DownloadTimeout(ReportWeaverDomainError):
    """Raised when no completed export file appears before the deadline"""

    def __init__(self, message: str, directory: Optional[str] = None, timeout: Optional[float] = None, **context):
        super().__init__(message, context)
        self.directory = directory
        self.timeout = timeout


class ListingExhausted(ReportWeaverDomainError):
    """Raised when every listing page was examined without a matching report"""

    def __init__(self, message: str, target_identifier: Optional[str] = None, pages_examined: int = 0, **context):
        super().__init__(message, context)
        self.target_identifier = target_identifier
        self.pages_examined = pages_examined


class CandidateError(ReportWeaverDomainError):
    """Base for failures scoped to a single candidate error"""

    def __init__(self, message: str, error_name: Optional[str] = None, **context):
        super().__init__(message, context)
        self.error_name = error_name


class DocumentationFetchFailure(CandidateError):
    """Documentation page could not be read; the candidate is discarded"""
    pass


class DetailFetchFailure(CandidateError):
    """Detail pages could not be fully walked; partial entries are kept"""
    pass


class SessionCloseFailure(ReportWeaverDomainError):
    """Closing a browser session failed; logged, never propagated"""

    def __init__(self, message: str, session_id: Optional[str] = None, **context):
        super().__init__(message, context)
        self.session_id = session_id


class BrowserSessionError(ReportWeaverDomainError):
    """Raised when a browser session cannot be created or navigated"""

    def __init__(self, message: str, session_id: Optional[str] = None, **context):
        super().__init__(message, context)
        self.session_id = session_id


class ConfigurationError(ReportWeaverDomainError):
    """Raised when required configuration is missing or invalid"""

    def __init__(self, message: str, setting: Optional[str] = None, **context):
        super().__init__(message, context)
        self.setting = setting


class DocumentGenerationError(ReportWeaverDomainError):
    """Raised when the document backend fails to create or share a report"""

    def __init__(self, message: str, document_id: Optional[str] = None, **context):
        super().__init__(message, context)
        self.document_id = document_id


# Context managers for error boundary handling
class ErrorBoundary:
    """Context manager that logs non-domain errors crossing an architectural boundary"""

    def __init__(self, boundary_name: str, context: Optional[Dict[str, Any]] = None):
        self.boundary_name = boundary_name
        self.context = context or {}

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type and issubclass(exc_type, Exception) and not issubclass(exc_type, ReportWeaverDomainError):
            logger.error("Infrastructure error at %s: %s", self.boundary_name, exc_val, extra={"context": self.context})
        return False  # Don't suppress exceptions
