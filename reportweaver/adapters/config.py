"""
Configuration adapter.

Reads portal, browser, download, server and document-backend settings from
environment variables (a local .env file is loaded at the entry point).
Credentials are not configuration: they arrive with each request.
"""

import os
from typing import Any, Dict

from dotenv import load_dotenv

from ..core.exceptions import ConfigurationError
from .filesystem.local import default_download_dir


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ('1', 'true', 'yes', 'on')


def _env_float(name: str, default: str) -> float:
    raw = os.getenv(name, default)
    try:
        return float(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}", setting=name)


def _env_int(name: str, default: str) -> int:
    raw = os.getenv(name, default)
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}", setting=name)


class EnvironmentConfigAdapter:
    """Configuration adapter that reads from environment variables"""

    def __init__(self, load_env_file: bool = False):
        if load_env_file:
            load_dotenv()

    def get_portal_config(self) -> Dict[str, Any]:
        """Get portal configuration from environment"""
        portal_url = os.getenv('POPE_TECH_URL', '').strip()
        if not portal_url:
            raise ConfigurationError(
                "Portal URL not found. Set the POPE_TECH_URL environment variable",
                setting='POPE_TECH_URL'
            )
        return {
            'portal_url': portal_url,
            'wait_timeout': _env_float('REPORTWEAVER_WAIT_TIMEOUT', '20'),
            'extended_timeout': _env_float('REPORTWEAVER_EXTENDED_TIMEOUT', '60'),
            'report_title': os.getenv('REPORTWEAVER_REPORT_TITLE', 'Error Report'),
        }

    def get_browser_config(self) -> Dict[str, Any]:
        """Get browser configuration from environment"""
        return {
            'headless': _env_bool('REPORTWEAVER_HEADLESS', 'true'),
            'timeout': _env_int('REPORTWEAVER_BROWSER_TIMEOUT', '30000'),
        }

    def get_download_config(self) -> Dict[str, Any]:
        """Get download watcher configuration"""
        return {
            'download_dir': os.getenv('REPORTWEAVER_DOWNLOAD_DIR') or default_download_dir(),
            'timeout': _env_float('REPORTWEAVER_DOWNLOAD_TIMEOUT', '30'),
            'poll_interval': _env_float('REPORTWEAVER_DOWNLOAD_POLL_INTERVAL', '1'),
            'settle_interval': _env_float('REPORTWEAVER_DOWNLOAD_SETTLE_INTERVAL', '2'),
        }

    def get_server_config(self) -> Dict[str, Any]:
        """Get request/response front door configuration"""
        return {
            'host': os.getenv('REPORTWEAVER_HOST', '127.0.0.1'),
            'port': _env_int('REPORTWEAVER_PORT', '8080'),
            'max_workers': _env_int('REPORTWEAVER_MAX_WORKERS', '10'),
            'request_timeout': _env_float('REPORTWEAVER_REQUEST_TIMEOUT', '600'),
            'cancel_on_timeout': _env_bool('REPORTWEAVER_CANCEL_ON_TIMEOUT', 'false'),
            'cors_origin': os.getenv('REPORTWEAVER_CORS_ORIGIN', 'http://localhost:5173'),
        }

    def get_document_config(self) -> Dict[str, Any]:
        """Get document backend configuration"""
        return {
            'backend': os.getenv('REPORTWEAVER_DOCUMENT_BACKEND', 'google').strip().lower(),
            'google_access_token': os.getenv('GOOGLE_ACCESS_TOKEN', ''),
            'output_dir': os.getenv('REPORTWEAVER_OUTPUT_DIR', 'reports'),
            'share_role': os.getenv('REPORTWEAVER_SHARE_ROLE', 'writer'),
        }

    def validate_config(self) -> bool:
        """Validate that required configuration is present"""
        try:
            self.get_portal_config()
            self.get_browser_config()
            self.get_download_config()
            self.get_server_config()
            document = self.get_document_config()
        except ConfigurationError:
            return False
        if document['backend'] == 'google' and not document['google_access_token']:
            return False
        return True
