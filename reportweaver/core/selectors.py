"""
Portal selectors and extraction constants.

Grouped in frozen dataclasses so tests and alternative portal skins can
substitute their own without touching the services.
"""

from dataclasses import dataclass
from typing import FrozenSet


@dataclass(frozen=True)
class LoginSelectors:
    identifier_input: str = "#email"
    sso_mode_marker: str = "#login-mode-sso"
    sso_enabled_flag: str = "#sso-enabled"
    identifier_submit: str = (
        "#login-form > div.form-group.form-submission > div:nth-child(1) > div:nth-child(1) > button"
    )
    username_input: str = "#username"
    password_input: str = "#password"
    credentials_submit: str = "#main-content > div.idp3_form-submit-container > button"
    trust_browser_button: str = "#trust-browser-button"


@dataclass(frozen=True)
class ListingSelectors:
    sidebar_toggle: str = "#left-sidebar app-navigation ul > li:nth-child(2) > button"
    reports_link: str = "a:has-text('Reports')"
    rows: str = "#reports-table > data-table > div > div tbody tr"
    entity_cell: str = ".column-entities"
    format_cell: str = ".column-format"
    scan_type_cells: str = ".ng-star-inserted"
    export_trigger: str = "button:has(.fa-download)"
    next_page: str = "#reports-table data-table-pagination button.pagination-nextpage"


@dataclass(frozen=True)
class ArtifactSelectors:
    rows: str = ".section-body-table > table > tbody > tr"
    base_reference_anchor: str = (
        "body > div > main > div:nth-child(2) > div:nth-child(4) > div:nth-child(3) "
        "> div > div > table > tbody > tr:nth-child(1) > th > a"
    )
    instance_count_cell: str = "td:nth-child(4)"
    error_name_link: str = "th > span > a"
    category_cell: str = "td:nth-child(3)"
    documentation_link: str = "td:nth-child(1) > a"


@dataclass(frozen=True)
class DocumentationSelectors:
    documentation: str = "#result-documentation-content p"
    why_it_matters: str = "#result-documentation-content p:nth-child(2)"
    how_to_fix_it: str = "#result-documentation-content p:nth-child(4)"


@dataclass(frozen=True)
class DetailSelectors:
    details_view: str = ".table > tbody > tr > td:nth-child(7) > a"
    rows: str = ".data-table .data-table-row-wrapper tr"
    uri_cell: str = ".column-uri"
    count_cell: str = ".column-count"
    next_page: str = ".pagination-nextpage"


@dataclass(frozen=True)
class PortalSelectors:
    login: LoginSelectors = LoginSelectors()
    listing: ListingSelectors = ListingSelectors()
    artifact: ArtifactSelectors = ArtifactSelectors()
    documentation: DocumentationSelectors = DocumentationSelectors()
    detail: DetailSelectors = DetailSelectors()


DEFAULT_SELECTORS = PortalSelectors()

# Expected value of the hidden SSO flag on the login page
SSO_ENABLED_VALUE = "true"

# Listing categories that produce report errors (compared case-insensitively)
ACCEPTED_CATEGORIES: FrozenSet[str] = frozenset({"errors", "contrast errors"})

ALLOWED_ARTIFACT_EXTENSIONS: FrozenSet[str] = frozenset({".pdf", ".xlsx", ".txt", ".csv", ".html"})
IN_PROGRESS_SUFFIXES: FrozenSet[str] = frozenset({".crdownload", ".part", ".tmp", ".download"})
HIDDEN_NAMES: FrozenSet[str] = frozenset({".DS_Store", "Thumbs.db", "desktop.ini"})

PROCESSING_SENTINEL = "Processing"
DEFAULT_REPORT_TITLE = "Error Report"
