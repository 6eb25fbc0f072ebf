#!/usr/bin/env python3
"""
ReportWeaver CLI

Command-line interface for producing accessibility error reports from the
Pope Tech portal. ``run`` produces one report in the foreground, ``serve``
starts the HTTP/websocket front door.
"""

import argparse
import asyncio
import getpass
import logging
import os
import sys
from typing import List, Optional

from dotenv import load_dotenv
from rich.logging import RichHandler

from ..adapters.browser.playwright_session import PlaywrightSessionFactory
from ..adapters.config import EnvironmentConfigAdapter
from ..adapters.documents.local_report import LocalReportAdapter
from ..adapters.factories import build_orchestrator, create_document_adapter
from ..adapters.progress.cli import create_status_adapter
from ..core.domain import ReportRequest
from ..core.exceptions import ConfigurationError
from ..core.orchestrator import RunSummary
from ..core.selectors import PROCESSING_SENTINEL
from ..core.session_registry import SessionRegistry
from ..server.app import build_report_server

logger = logging.getLogger(__name__)


def configure_logging(verbose: bool = False) -> None:
    """Route log records through rich; REPORTWEAVER_LOG_LEVEL picks the level"""
    level = "DEBUG" if verbose else os.getenv('REPORTWEAVER_LOG_LEVEL', 'INFO').upper()
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=verbose)]
    )


async def run_report(args, config: EnvironmentConfigAdapter) -> RunSummary:
    """Produce one report in the foreground"""
    password = args.password or getpass.getpass("Pope Tech password: ")
    request = ReportRequest(
        target_site=args.site,
        username=args.username,
        password=password,
        recipient_email=args.email
    )

    browser_config = config.get_browser_config()
    if args.headed:
        browser_config['headless'] = False
    download_config = config.get_download_config()

    if args.local:
        output_dir = args.output_dir or config.get_document_config()['output_dir']
        documents = LocalReportAdapter(output_dir=output_dir)
    else:
        documents = create_document_adapter(config)

    status = create_status_adapter("silent" if args.quiet else "cli")
    registry = SessionRegistry()

    async with PlaywrightSessionFactory(
        download_dir=download_config['download_dir'],
        browser_config=browser_config
    ) as session_factory:
        orchestrator = build_orchestrator(
            config,
            session_factory=session_factory,
            registry=registry,
            documents=documents,
            status=status
        )
        try:
            return await orchestrator.execute(request)
        finally:
            await registry.close_all()


async def serve(args, config: EnvironmentConfigAdapter) -> None:
    """Run the front door until interrupted"""
    overrides = {}
    if args.host:
        overrides['host'] = args.host
    if args.port:
        overrides['port'] = args.port
    server_config = {**config.get_server_config(), **overrides}

    server = build_report_server(config, overrides)
    await server.start(server_config['host'], server_config['port'])
    try:
        await asyncio.Event().wait()
    finally:
        await server.stop()


def print_run_results(summary: RunSummary, args) -> None:
    """Print report run results"""
    if args.quiet:
        print(summary.document_id)
        return

    if summary.document_id != PROCESSING_SENTINEL:
        print("✅ Report created successfully!")
        print(f"   📄 Document ID: {summary.document_id}")
        print(f"   📊 Errors: {len(summary.errors)} "
              f"({sum(e.total_errors for e in summary.errors)} occurrences)")
        if summary.shared:
            print(f"   📧 Shared with: {args.email}")
    elif summary.failure:
        print(f"❌ Report failed: {summary.failure}")
    elif not summary.report_found:
        print(f"⚠️  No matching report found for {args.site}")
    else:
        print("⚠️  No report document was produced")

    if summary.artifact_path:
        print(f"   📁 Artifact: {summary.artifact_path}")
    print(f"   ⏱️  Elapsed: {summary.elapsed:.2f}s")


def create_argument_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser"""
    parser = argparse.ArgumentParser(
        prog='reportweaver',
        description='ReportWeaver - Accessibility error reports from the Pope Tech portal',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog='''
Examples:
  # Produce a report and share it as a Google Doc
  reportweaver run --site example.edu --username me@example.edu --email lead@example.edu

  # Write the report locally instead of to Google Docs
  reportweaver run --site example.edu --username me@example.edu --email lead@example.edu --local -o out

  # Start the HTTP front door
  reportweaver serve --port 8080
        '''
    )
    parser.add_argument('-v', '--verbose', action='store_true', help='Enable verbose output')

    subparsers = parser.add_subparsers(dest='command', required=True)

    run_parser = subparsers.add_parser('run', help='Produce one report')
    run_parser.add_argument('--site', required=True, help='Website identifier as listed in the portal')
    run_parser.add_argument('--username', required=True, help='Portal username (email)')
    run_parser.add_argument('--password', help='Portal password (prompted when omitted)')
    run_parser.add_argument('--email', required=True, help='Recipient email address for the report')
    run_parser.add_argument(
        '-o', '--output-dir',
        default=None,
        help='Folder for local reports (default: REPORTWEAVER_OUTPUT_DIR or ./reports)'
    )
    run_parser.add_argument('--local', action='store_true', help='Write JSON/CSV reports instead of Google Docs')
    run_parser.add_argument('-q', '--quiet', action='store_true', help='Only print the document ID')
    run_parser.add_argument('--headed', action='store_true', help='Run the browser with its window visible')

    serve_parser = subparsers.add_parser('serve', help='Start the HTTP/websocket front door')
    serve_parser.add_argument('--host', help='Bind address (default: REPORTWEAVER_HOST or 127.0.0.1)')
    serve_parser.add_argument('--port', type=int, help='Port (default: REPORTWEAVER_PORT or 8080)')

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point"""
    # Load environment variables at the entry point
    load_dotenv()

    parser = create_argument_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)
    config = EnvironmentConfigAdapter()

    try:
        if args.command == 'serve':
            asyncio.run(serve(args, config))
            return 0

        summary = asyncio.run(run_report(args, config))
        print_run_results(summary, args)
        return 0 if summary.document_id != PROCESSING_SENTINEL else 1

    except ConfigurationError as e:
        print(f"❌ Configuration error: {e}")
        return 2
    except KeyboardInterrupt:
        print("\n🛑 Cancelled by user")
        return 130


if __name__ == "__main__":
    sys.exit(main())
