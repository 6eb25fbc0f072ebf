"""
Silent Status Adapter

No-op status adapter for batch jobs, tests, or situations where
status messages are not desired.
"""


class SilentStatusAdapter:
    """Silent status adapter that performs no operations"""

    def notify(self, message: str) -> None:
        """Silent - do nothing"""
        pass

    def is_enabled(self) -> bool:
        """Status reporting is disabled"""
        return False
