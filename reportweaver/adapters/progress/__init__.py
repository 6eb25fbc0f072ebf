"""
Status notification adapters.
"""

from .cli import CLIStatusAdapter, CompositeStatusAdapter, RecordingStatusAdapter, create_status_adapter
from .silent import SilentStatusAdapter
from .websocket import WebSocketStatusAdapter

__all__ = [
    'CLIStatusAdapter',
    'CompositeStatusAdapter',
    'RecordingStatusAdapter',
    'SilentStatusAdapter',
    'WebSocketStatusAdapter',
    'create_status_adapter'
]
