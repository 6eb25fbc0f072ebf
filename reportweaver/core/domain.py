"""
Core domain models for accessibility report extraction.

These models define the error data collected from the reporting portal and
the request/value objects used throughout the application, independent of
any browser or document infrastructure.
"""

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class DataEntry:
    """A single page on which an error occurs, with its occurrence count"""

    url: str
    count: int

    def __post_init__(self):
        """Validate count is a non-negative integer"""
        if isinstance(self.count, bool) or not isinstance(self.count, int):
            raise TypeError(f"DataEntry count must be an int, got: {type(self.count).__name__}")
        if self.count < 0:
            raise ValueError(f"DataEntry count must be non-negative, got: {self.count}")


class Error:
    """
    An accessibility error discovered in an exported report.

    Documentation fields are fixed at creation. The only mutation allowed is
    appending DataEntry objects while walking the detail pages, and
    total_errors is always the sum of their counts.
    """

    __slots__ = (
        '_instance_count', '_error_name', '_error_category',
        '_documentation', '_why_it_matters', '_how_to_fix_it',
        '_data_entries', '_total_errors'
    )

    def __init__(
        self,
        instance_count: int,
        error_name: str,
        error_category: str,
        documentation: str = "",
        why_it_matters: str = "",
        how_to_fix_it: str = ""
    ):
        self._instance_count = instance_count
        self._error_name = error_name
        self._error_category = error_category
        self._documentation = documentation
        self._why_it_matters = why_it_matters
        self._how_to_fix_it = how_to_fix_it
        self._data_entries: List[DataEntry] = []
        self._total_errors = 0

    @property
    def instance_count(self) -> int:
        return self._instance_count

    @property
    def error_name(self) -> str:
        return self._error_name

    @property
    def error_category(self) -> str:
        return self._error_category

    @property
    def documentation(self) -> str:
        return self._documentation

    @property
    def why_it_matters(self) -> str:
        return self._why_it_matters

    @property
    def how_to_fix_it(self) -> str:
        return self._how_to_fix_it

    @property
    def data_entries(self) -> List[DataEntry]:
        """Copy of the collected entries, in collection order"""
        return list(self._data_entries)

    @property
    def total_errors(self) -> int:
        return self._total_errors

    @property
    def identity(self) -> tuple:
        return (self._error_name, self._error_category)

    def add_data_entry(self, url: str, count: int) -> DataEntry:
        """Append a detail entry and recompute the total"""
        entry = DataEntry(url=url, count=count)
        self._data_entries.append(entry)
        self._total_errors = sum(e.count for e in self._data_entries)
        return entry

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error_name": self._error_name,
            "error_category": self._error_category,
            "instance_count": self._instance_count,
            "documentation": self._documentation,
            "why_it_matters": self._why_it_matters,
            "how_to_fix_it": self._how_to_fix_it,
            "total_errors": self._total_errors,
            "data_entries": [{"url": e.url, "count": e.count} for e in self._data_entries],
        }

    def __repr__(self) -> str:
        return (
            f"Error(error_name={self._error_name!r}, error_category={self._error_category!r}, "
            f"instance_count={self._instance_count}, total_errors={self._total_errors}, "
            f"data_entries={len(self._data_entries)})"
        )


@dataclass(frozen=True)
class ErrorSummary:
    """Summary table row for one finalized error"""

    error_name: str
    total_errors: int

    @classmethod
    def from_error(cls, error: Error) -> 'ErrorSummary':
        return cls(error_name=error.error_name, total_errors=error.total_errors)


@dataclass(frozen=True)
class FileEntry:
    """Directory listing entry returned by the filesystem port"""

    name: str
    size: int
    modified_at: float  # seconds since epoch
    is_file: bool = True


@dataclass(frozen=True)
class DownloadedArtifact:
    """A completed export file found in the download directory"""

    path: Path
    modified_at: float
    size: int

    @property
    def name(self) -> str:
        return self.path.name

    def as_uri(self) -> str:
        return self.path.resolve().as_uri()


@dataclass(frozen=True)
class PortalCredentials:
    """Portal login credentials"""

    username: str
    password: str

    def __post_init__(self):
        if not self.username or not self.password:
            raise ValueError("Username and password are required")

    def __repr__(self) -> str:
        return f"PortalCredentials(username={self.username!r}, password='***')"


@dataclass(frozen=True)
class ReportTarget:
    """Filters identifying the one report row to export"""

    target_identifier: str
    format_filter: str = "html"
    scan_type_filter: str = "Website"

    def __post_init__(self):
        if not self.target_identifier or not self.target_identifier.strip():
            raise ValueError("target_identifier must not be empty")


@dataclass
class ReportRequest:
    """One incoming report request"""

    target_site: str
    username: str
    password: str = field(repr=False)
    recipient_email: str
    received_at: datetime = field(default_factory=datetime.now)

    # Field aliases accepted in request payloads
    _ALIASES = {
        'target_site': ('targetSite', 'target_site', 'website'),
        'username': ('username',),
        'password': ('password',),
        'recipient_email': ('recipientEmail', 'recipient_email', 'email'),
    }

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> 'ReportRequest':
        """
        Build a request from a JSON payload.

        Raises:
            ValueError: If a required field is missing or blank
        """
        if not isinstance(payload, dict):
            raise ValueError("Request payload must be a JSON object")

        values: Dict[str, Optional[str]] = {}
        missing = []
        for attr, keys in cls._ALIASES.items():
            value = next((payload[k] for k in keys if payload.get(k)), None)
            if not isinstance(value, str) or not value.strip():
                missing.append(keys[0])
            else:
                values[attr] = value.strip()

        if missing:
            raise ValueError(f"Missing required fields: {', '.join(missing)}")

        return cls(**values)

    @property
    def credentials(self) -> PortalCredentials:
        return PortalCredentials(username=self.username, password=self.password)

    @property
    def target(self) -> ReportTarget:
        return ReportTarget(target_identifier=self.target_site)

    def __repr__(self) -> str:
        return (
            f"ReportRequest(target_site={self.target_site!r}, username={self.username!r}, "
            f"recipient_email={self.recipient_email!r})"
        )
