"""
CLI Status Adapter

Prints pipeline status messages to the terminal using rich.
"""

import logging
import sys
from datetime import datetime
from typing import List, Optional

from rich.console import Console
from rich.markup import escape

from .silent import SilentStatusAdapter

logger = logging.getLogger(__name__)


class CLIStatusAdapter:
    """Status messages on a rich console, one timestamped line each"""

    def __init__(self, console: Optional[Console] = None, show_time: bool = True):
        self.console = console or Console(stderr=True)
        self.show_time = show_time
        self.message_count = 0

    def notify(self, message: str) -> None:
        self.message_count += 1
        if self.show_time:
            stamp = datetime.now().strftime("%H:%M:%S")
            self.console.print(f"[dim]{stamp}[/dim] [bold blue]›[/bold blue] {escape(message)}", highlight=False)
        else:
            self.console.print(message, highlight=False, markup=False)

    def is_enabled(self) -> bool:
        return True


class RecordingStatusAdapter:
    """Keeps every message in memory; useful for tests and post-run summaries"""

    def __init__(self, echo: Optional[object] = None):
        self.messages: List[str] = []
        self.echo = echo

    def notify(self, message: str) -> None:
        self.messages.append(message)
        if self.echo is not None:
            self.echo.notify(message)

    def is_enabled(self) -> bool:
        return True


class CompositeStatusAdapter:
    """Fans one message out to several adapters; a failing adapter never blocks the others"""

    def __init__(self, *adapters):
        self.adapters = [a for a in adapters if a is not None]

    def notify(self, message: str) -> None:
        for adapter in self.adapters:
            try:
                adapter.notify(message)
            except Exception as e:
                logger.warning("Status adapter %s failed: %s", type(adapter).__name__, e)

    def is_enabled(self) -> bool:
        return any(getattr(a, 'is_enabled', lambda: True)() for a in self.adapters)


def create_status_adapter(status_type: str = "auto", **kwargs):
    """
    Factory function to create the appropriate status adapter.

    Args:
        status_type: Type of adapter ("cli", "silent", "auto")
        **kwargs: Additional arguments for the adapter

    Returns:
        Configured status adapter
    """
    if status_type == "auto":
        if sys.stderr.isatty():
            return CLIStatusAdapter(**kwargs)
        return SilentStatusAdapter()

    elif status_type == "cli":
        return CLIStatusAdapter(**kwargs)

    elif status_type == "silent":
        return SilentStatusAdapter()

    else:
        raise ValueError(f"Unknown status type: {status_type}")
