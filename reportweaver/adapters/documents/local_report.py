"""
Local report document adapter.

Writes the report as a JSON document plus a CSV summary table to a local
folder. The document ID is the JSON file's stem. Sharing is recorded in
the document itself since there is nobody to notify locally.
"""

import json
import logging
import re
from datetime import datetime
from pathlib import Path
from typing import Sequence

import pandas as pd

from ...core.domain import Error
from ...core.exceptions import DocumentGenerationError
from .text import summary_rows

logger = logging.getLogger(__name__)


def _slugify(title: str) -> str:
    slug = re.sub(r'[^a-z0-9]+', '-', title.lower()).strip('-')
    return slug or 'report'


class LocalReportAdapter:
    """DocumentGenerationPort that writes JSON and CSV files"""

    def __init__(self, output_dir: str = "reports", indent: int = 2, ensure_ascii: bool = False):
        self.output_dir = Path(output_dir)
        self.indent = indent
        self.ensure_ascii = ensure_ascii

    async def create_report(self, title: str, errors: Sequence[Error]) -> str:
        """
        Write ``<slug>-<timestamp>.json`` and the matching ``-summary.csv``.

        Raises:
            DocumentGenerationError: If the files cannot be written
        """
        created_at = datetime.now()
        document_id = f"{_slugify(title)}-{created_at:%Y%m%d-%H%M%S-%f}"
        document = {
            "document_id": document_id,
            "title": title,
            "created_at": created_at.isoformat(),
            "summary": [{"error_name": s.error_name, "total_errors": s.total_errors} for s in summary_rows(errors)],
            "errors": [error.to_dict() for error in errors],
            "shared_with": [],
        }

        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
            self._write(document_id, document)
            self._write_summary(document_id, errors)
        except OSError as e:
            raise DocumentGenerationError(f"Failed to write report {document_id}: {e}", document_id=document_id)

        logger.info("Created local report %s", self._document_path(document_id))
        return document_id

    async def share(self, document_id: str, email_address: str) -> None:
        """
        Record ``email_address`` as a recipient of the document.

        Raises:
            DocumentGenerationError: If the document does not exist
        """
        path = self._document_path(document_id)
        try:
            with open(path, 'r', encoding='utf-8') as f:
                document = json.load(f)
            if email_address not in document["shared_with"]:
                document["shared_with"].append(email_address)
            self._write(document_id, document)
        except (OSError, ValueError, KeyError) as e:
            raise DocumentGenerationError(f"Failed to share report {document_id}: {e}", document_id=document_id)
        logger.info("Document %s shared with %s", document_id, email_address)

    def summary_path(self, document_id: str) -> Path:
        return self.output_dir / f"{document_id}-summary.csv"

    def _document_path(self, document_id: str) -> Path:
        return self.output_dir / f"{document_id}.json"

    def _write(self, document_id: str, document: dict) -> None:
        with open(self._document_path(document_id), 'w', encoding='utf-8') as f:
            json.dump(document, f, indent=self.indent, ensure_ascii=self.ensure_ascii)

    def _write_summary(self, document_id: str, errors: Sequence[Error]) -> None:
        df = pd.DataFrame(
            [{"Error": s.error_name, "Total Errors": s.total_errors} for s in summary_rows(errors)],
            columns=["Error", "Total Errors"]
        )
        df.to_csv(self.summary_path(document_id), index=False, encoding='utf-8')
