"""
Report Server

aiohttp front door for report generation. Each POST runs the full pipeline
on the bounded worker pool and answers with the created document ID as
plain text. Status messages stream to websocket subscribers, and an
administrative endpoint force-closes every live browser session.
"""

import asyncio
import logging
from datetime import datetime
from typing import Any, Dict, Optional

from aiohttp import web

from ..adapters.browser.playwright_session import PlaywrightSessionFactory
from ..adapters.config import EnvironmentConfigAdapter
from ..adapters.factories import build_orchestrator, create_document_adapter
from ..adapters.progress.websocket import WebSocketStatusAdapter
from ..core.domain import ReportRequest
from ..core.orchestrator import ReportOrchestrator
from ..core.session_registry import SessionRegistry
from ..core.workers import ReportWorkerPool

logger = logging.getLogger(__name__)


class ReportServer:
    """
    HTTP and websocket front door for the report pipeline.

    Routes:
        POST /                          run a report, answers with the document ID
        POST /api/server/stop-sessions  force-close every registered session
        GET  /ws/status                 status message stream
        GET  /health                    liveness
    """

    def __init__(
        self,
        orchestrator: ReportOrchestrator,
        registry: SessionRegistry,
        pool: ReportWorkerPool,
        status: Optional[WebSocketStatusAdapter] = None,
        request_timeout: float = 600.0,
        cancel_on_timeout: bool = False,
        cors_origin: Optional[str] = None,
        session_factory: Optional[PlaywrightSessionFactory] = None
    ):
        self.orchestrator = orchestrator
        self.registry = registry
        self.pool = pool
        self.status = status or WebSocketStatusAdapter()
        self.request_timeout = request_timeout
        self.cancel_on_timeout = cancel_on_timeout
        self.cors_origin = cors_origin
        self.session_factory = session_factory
        self.started_at = datetime.now()

        self._runner: Optional[web.AppRunner] = None
        self._site: Optional[web.TCPSite] = None

    def build_app(self) -> web.Application:
        app = web.Application(middlewares=[self._cors_middleware])
        app.router.add_post('/', self._handle_report)
        app.router.add_post('/api/server/stop-sessions', self._handle_stop_sessions)
        app.router.add_get('/ws/status', self.status.handle)
        app.router.add_get('/health', self._handle_health)
        app.router.add_route('OPTIONS', '/{path:.*}', self._handle_preflight)
        app.on_shutdown.append(self._on_shutdown)
        return app

    @web.middleware
    async def _cors_middleware(self, request: web.Request, handler) -> web.StreamResponse:
        response = await handler(request)
        if self.cors_origin and not isinstance(response, web.WebSocketResponse):
            response.headers['Access-Control-Allow-Origin'] = self.cors_origin
        return response

    async def _handle_preflight(self, request: web.Request) -> web.Response:
        return web.Response(status=204, headers={
            'Access-Control-Allow-Methods': 'GET, POST, OPTIONS',
            'Access-Control-Allow-Headers': 'Content-Type',
        })

    async def _handle_report(self, request: web.Request) -> web.Response:
        try:
            payload = await request.json()
            report_request = ReportRequest.from_payload(payload)
        except ValueError as e:
            logger.warning("Rejected report request: %s", e)
            return web.Response(status=400, text=f"Invalid request: {e}")

        logger.info("Report requested for %s", report_request.target_site)
        handle = self.pool.submit(lambda cancel_event: self.orchestrator.run(report_request, cancel_event))

        try:
            document_id = await handle.result(self.request_timeout, cancel_on_timeout=self.cancel_on_timeout)
        except asyncio.TimeoutError:
            logger.error("Report generation request timed out")
            return web.Response(status=503, text="Request timed out. Please try again later.")
        except asyncio.CancelledError:
            if handle.done() and handle.task.cancelled():
                return web.Response(status=503, text="Request was interrupted. Try again later.")
            raise
        except Exception as e:
            logger.exception("Error generating report")
            return web.Response(status=500, text=f"Error generating report: {e}")

        logger.info("Document ID: %s", document_id)
        return web.Response(text=document_id, content_type='text/plain')

    async def _handle_stop_sessions(self, request: web.Request) -> web.Response:
        closed = await self.registry.close_all()
        logger.info("Force-closed %d browser sessions", closed)
        return web.Response(text=f"All active browser sessions have been stopped ({closed} closed).")

    async def _handle_health(self, request: web.Request) -> web.Response:
        return web.json_response({
            'status': 'ok',
            'active_sessions': len(self.registry),
            'runs_in_flight': self.pool.in_flight,
            'runs_pending': self.pool.pending,
            'status_clients': self.status.client_count,
            'uptime_seconds': (datetime.now() - self.started_at).total_seconds(),
        })

    async def _on_shutdown(self, app: web.Application) -> None:
        await self.pool.shutdown(cancel=True)
        await self.registry.close_all()
        await self.status.close()
        if self.session_factory:
            await self.session_factory.stop()

    async def start(self, host: str = '127.0.0.1', port: int = 8080) -> None:
        """Start serving in the current event loop"""
        self._runner = web.AppRunner(self.build_app())
        await self._runner.setup()
        self._site = web.TCPSite(self._runner, host, port)
        await self._site.start()
        logger.info("ReportWeaver listening on http://%s:%d", host, port)

    async def stop(self) -> None:
        if self._runner:
            await self._runner.cleanup()
        self._runner = None
        self._site = None
        logger.info("ReportWeaver server stopped")


def build_report_server(config: EnvironmentConfigAdapter, overrides: Optional[Dict[str, Any]] = None) -> ReportServer:
    """
    Wire a ReportServer from configuration.

    Args:
        config: Configuration adapter
        overrides: Optional server config overrides (host, port, ...)

    Raises:
        ConfigurationError: If required configuration is missing
    """
    server_config = {**config.get_server_config(), **(overrides or {})}
    browser_config = config.get_browser_config()
    download_config = config.get_download_config()

    status = WebSocketStatusAdapter()
    registry = SessionRegistry()
    session_factory = PlaywrightSessionFactory(
        headless=browser_config['headless'],
        timeout_ms=browser_config['timeout'],
        download_dir=download_config['download_dir']
    )
    orchestrator = build_orchestrator(
        config,
        session_factory=session_factory,
        registry=registry,
        documents=create_document_adapter(config),
        status=status
    )

    return ReportServer(
        orchestrator=orchestrator,
        registry=registry,
        pool=ReportWorkerPool(max_workers=server_config['max_workers']),
        status=status,
        request_timeout=server_config['request_timeout'],
        cancel_on_timeout=server_config['cancel_on_timeout'],
        cors_origin=server_config['cors_origin'],
        session_factory=session_factory
    )
