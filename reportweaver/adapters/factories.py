"""
Adapter Factory

Infrastructure layer wiring: builds the document backend and a fully
assembled ReportOrchestrator from configuration, so entry points never
construct core services by hand.
"""

from typing import Optional

from ..core.authentication import AuthenticationFlow
from ..core.download_watcher import DownloadWatcher
from ..core.exceptions import ConfigurationError, ErrorBoundary
from ..core.extraction import ErrorExtractionPipeline
from ..core.orchestrator import ReportOrchestrator
from ..core.ports import (
    BrowserSessionFactory, ConfigurationPort, DocumentGenerationPort, FileSystemPort, StatusNotificationPort
)
from ..core.report_locator import ReportLocator
from ..core.session_registry import SessionRegistry
from .config import EnvironmentConfigAdapter
from .documents.google_docs import GoogleDocsReportAdapter
from .documents.local_report import LocalReportAdapter
from .filesystem.local import LocalFileSystemAdapter


def create_document_adapter(config: EnvironmentConfigAdapter, backend: Optional[str] = None) -> DocumentGenerationPort:
    """
    Create the configured document backend.

    Args:
        config: Configuration adapter
        backend: Override for the configured backend ("google" or "local")

    Raises:
        ConfigurationError: If the backend is unknown or misconfigured
    """
    settings = config.get_document_config()
    backend = (backend or settings['backend']).lower()

    with ErrorBoundary("create_document_adapter", {"backend": backend}):
        if backend == "google":
            if not settings['google_access_token']:
                raise ConfigurationError(
                    "GOOGLE_ACCESS_TOKEN is required for the google document backend",
                    setting='GOOGLE_ACCESS_TOKEN'
                )
            return GoogleDocsReportAdapter(
                access_token=settings['google_access_token'],
                share_role=settings['share_role']
            )
        elif backend == "local":
            return LocalReportAdapter(output_dir=settings['output_dir'])
        else:
            raise ConfigurationError(f"Unknown document backend: {backend!r}", setting='REPORTWEAVER_DOCUMENT_BACKEND')


def build_orchestrator(
    config: ConfigurationPort,
    session_factory: BrowserSessionFactory,
    registry: SessionRegistry,
    documents: DocumentGenerationPort,
    status: Optional[StatusNotificationPort] = None,
    filesystem: Optional[FileSystemPort] = None
) -> ReportOrchestrator:
    """Assemble the pipeline components from configuration"""
    portal = config.get_portal_config()
    download = config.get_download_config()

    auth_flow = AuthenticationFlow(extended_timeout=portal['extended_timeout'], status=status)
    locator = ReportLocator(wait_timeout=portal['wait_timeout'], status=status)
    watcher = DownloadWatcher(
        filesystem=filesystem or LocalFileSystemAdapter(),
        poll_interval=download['poll_interval'],
        settle_interval=download['settle_interval'],
        status=status
    )
    pipeline = ErrorExtractionPipeline(
        session_factory=session_factory,
        registry=registry,
        auth_flow=auth_flow,
        wait_timeout=portal['wait_timeout'],
        status=status
    )

    return ReportOrchestrator(
        portal_url=portal['portal_url'],
        session_factory=session_factory,
        registry=registry,
        auth_flow=auth_flow,
        locator=locator,
        watcher=watcher,
        pipeline=pipeline,
        documents=documents,
        download_dir=download['download_dir'],
        download_timeout=download['timeout'],
        report_title=portal['report_title'],
        status=status
    )
