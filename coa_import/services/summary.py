from __future__ import annotations

from ..models.import_result import ProcessingResult

"""SUMMARY line rendering.

Format::

    SUMMARY files={n}/{n} success={s} failed={f} inserted={i} updated={u} skipped_rows={k} elapsed_sec={e}
"""


def _format_seconds(value: float) -> str:
    if value == 0:
        return "0"
    if value == int(value):
        return str(int(value))
    if value < 0.01:
        # avoid scientific notation for very small numbers
        return f"{value:.6f}".rstrip("0").rstrip(".")
    return f"{value:.3f}".rstrip("0").rstrip(".")


def render_summary_line(result: ProcessingResult) -> str:
    """Render the SUMMARY line of a directory run.

    >>> from datetime import datetime, timezone
    >>> t = datetime(2024, 1, 1, tzinfo=timezone.utc)
    >>> render_summary_line(ProcessingResult(
    ...     success_files=1, failed_files=1, inserted_rows=10, updated_rows=2,
    ...     skipped_rows=3, start_time=t, end_time=t, elapsed_seconds=2.0))
    'SUMMARY files=2/2 success=1 failed=1 inserted=10 updated=2 skipped_rows=3 elapsed_sec=2'
    """
    total = result.total_files
    return (
        f"SUMMARY files={total}/{total} "
        f"success={result.success_files} "
        f"failed={result.failed_files} "
        f"inserted={result.inserted_rows} "
        f"updated={result.updated_rows} "
        f"skipped_rows={result.skipped_rows} "
        f"elapsed_sec={_format_seconds(result.elapsed_seconds)}"
    )
