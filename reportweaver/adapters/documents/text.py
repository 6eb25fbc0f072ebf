"""
Plain-text layout of a report document.

Both document backends lay the report out the same way: a summary table
first, then one section per error in the order received. No styling is
applied.
"""

from typing import List, Sequence

from ...core.domain import Error, ErrorSummary


def summary_rows(errors: Sequence[Error]) -> List[ErrorSummary]:
    return [ErrorSummary.from_error(error) for error in errors]


def render_report_text(title: str, errors: Sequence[Error]) -> str:
    lines = [title, "", "Summary", ""]

    lines.append("Errors by Page")
    for row in summary_rows(errors):
        lines.append(f"{row.error_name}\t{row.total_errors}")
    lines.append("")

    for error in errors:
        lines.append(error.error_name)
        lines.append("")
        if error.documentation:
            lines.append(error.documentation)
            lines.append("")
        lines.append("Why it matters:")
        lines.append(error.why_it_matters)
        lines.append("")
        lines.append("How to fix it:")
        lines.append(error.how_to_fix_it)
        lines.append("")
        lines.append(f"Page\tErrors ({error.total_errors} total)")
        for entry in error.data_entries:
            lines.append(f"{entry.url}\t{entry.count}")
        lines.append("")

    return "\n".join(lines)
