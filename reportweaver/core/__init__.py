"""
Core domain layer

Contains the extraction pipeline, domain models, and port interfaces
that are independent of browser, filesystem and document infrastructure.
"""

from .domain import (
    Error,
    DataEntry,
    ErrorSummary,
    FileEntry,
    DownloadedArtifact,
    PortalCredentials,
    ReportTarget,
    ReportRequest
)

from .session_registry import SessionRegistry
from .authentication import AuthenticationFlow, AuthState
from .report_locator import ReportLocator, LocateOutcome, LocateStatus
from .download_watcher import DownloadWatcher
from .extraction import ErrorExtractionPipeline
from .orchestrator import ReportOrchestrator, RunSummary
from .workers import ReportWorkerPool, ReportHandle

from .ports import (
    BrowserSessionPort,
    BrowserSessionFactory,
    FileSystemPort,
    DocumentGenerationPort,
    StatusNotificationPort,
    ConfigurationPort
)

from .exceptions import (
    ReportWeaverDomainError,
    AuthenticationError,
    ElementTimeout,
    StaleElement,
    DownloadTimeout,
    ListingExhausted,
    DocumentationFetchFailure,
    DetailFetchFailure,
    SessionCloseFailure,
    BrowserSessionError,
    ConfigurationError,
    DocumentGenerationError
)

__all__ = [
    # Domain models
    'Error',
    'DataEntry',
    'ErrorSummary',
    'FileEntry',
    'DownloadedArtifact',
    'PortalCredentials',
    'ReportTarget',
    'ReportRequest',

    # Services
    'SessionRegistry',
    'AuthenticationFlow',
    'AuthState',
    'ReportLocator',
    'LocateOutcome',
    'LocateStatus',
    'DownloadWatcher',
    'ErrorExtractionPipeline',
    'ReportOrchestrator',
    'RunSummary',
    'ReportWorkerPool',
    'ReportHandle',

    # Ports
    'BrowserSessionPort',
    'BrowserSessionFactory',
    'FileSystemPort',
    'DocumentGenerationPort',
    'StatusNotificationPort',
    'ConfigurationPort',

    # Exceptions
    'ReportWeaverDomainError',
    'AuthenticationError',
    'ElementTimeout',
    'StaleElement',
    'DownloadTimeout',
    'ListingExhausted',
    'DocumentationFetchFailure',
    'DetailFetchFailure',
    'SessionCloseFailure',
    'BrowserSessionError',
    'ConfigurationError',
    'DocumentGenerationError'
]
