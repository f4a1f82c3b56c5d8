from __future__ import annotations

from collections.abc import Sequence

from ..models.import_result import ImportReport
from ..models.row_error import RowError

"""Result reporting for a roster import.

Two renderings of the same ImportReport:
- render_summary_line: machine-readable, one line, stable key order
- render_result_message: the sentence shown to the user
"""

__all__ = [
    "render_summary_line",
    "render_error_preview",
    "render_result_message",
    "ERROR_PREVIEW_LIMIT",
]

ERROR_PREVIEW_LIMIT = 3


def _format_seconds(value: float) -> str:
    if value == 0:
        return "0"
    if value == int(value):
        return str(int(value))
    if value < 0.01:
        # avoid scientific notation for very small numbers
        return f"{value:.6f}".rstrip("0").rstrip(".")
    return f"{value:.3f}".rstrip("0").rstrip(".")


def render_summary_line(report: ImportReport) -> str:
    """Render the SUMMARY line.

    Format:
    SUMMARY saved={records} classes={classes} auto_generated={auto}
    skipped={skipped} written={written} elapsed_sec={elapsed}

    ``saved`` is the number of records that reached the write step after
    deduplication; ``written`` is what the store confirmed (0 in dry-run).
    """
    result = report.result
    return (
        f"SUMMARY saved={len(result.records)} "
        f"classes={len(result.classes_touched)} "
        f"auto_generated={result.auto_generated_count} "
        f"skipped={result.skipped_rows} "
        f"written={report.written} "
        f"elapsed_sec={_format_seconds(report.elapsed_seconds)}"
    )


def render_error_preview(errors: Sequence[RowError], limit: int = ERROR_PREVIEW_LIMIT) -> str:
    """First ``limit`` error messages joined by `` | ``, plus a count of the rest."""
    if not errors:
        return ""
    preview = " | ".join(e.message for e in errors[:limit])
    if len(errors) > limit:
        preview += f" ...and {len(errors) - limit} more"
    return preview


def render_result_message(report: ImportReport) -> str:
    result = report.result
    if report.write_error is not None:
        return f"Saved {report.written} of {len(result.records)} students before failure: {report.write_error}"

    saved = len(result.records)
    message = f"{saved} students saved across {len(result.classes_touched)} class(es)."
    if report.dry_run:
        message = f"{saved} students ready across {len(result.classes_touched)} class(es) (dry run, nothing saved)."
    if result.auto_generated_count:
        message += f" {result.auto_generated_count} admission number(s) auto-generated."
    if result.skipped_rows:
        message += f" {result.skipped_rows} rows skipped."
    return message
