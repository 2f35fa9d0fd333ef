"""
Plain-text summary tables for pipeline runs.

Used by the CLI to print a compact overview: per-plate calibration, result
counts and issues grouped by reason.
"""

from collections import Counter
from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    from poxc.assay.pipeline import PipelineResult


# Table formatting constants
TABLE_WIDTH = 70
TABLE_SEP = "-" * TABLE_WIDTH
TABLE_HEADER = "=" * TABLE_WIDTH


def _format_header(title: str) -> str:
    """Format a table header with title."""
    return f"{TABLE_HEADER}\n{title}\n{TABLE_HEADER}"


def _format_value(value: float, fmt: str = ".4f") -> str:
    if value is None or (isinstance(value, float) and not np.isfinite(value)):
        return "n/a"
    return f"{value:{fmt}}"


def format_calibration_table(result: "PipelineResult") -> str:
    """Per-plate slope, intercept and R² with review flags."""
    lines = [
        f"{'Plate':<20} {'Slope':>12} {'Intercept':>12} {'R2':>8} {'Levels':>7}  Flag",
        TABLE_SEP,
    ]
    for row in result.calibration.itertuples(index=False):
        flag = "LOW R2" if getattr(row, "low_r_squared", False) else ""
        lines.append(
            f"{row.plate_id:<20} {_format_value(row.slope, '.4g'):>12} "
            f"{_format_value(row.intercept, '.4g'):>12} {_format_value(row.r_squared):>8} "
            f"{row.n_levels:>7}  {flag}"
        )
    if result.calibration.empty:
        lines.append("(no plates calibrated)")
    return "\n".join(lines)


def format_issue_table(result: "PipelineResult") -> str:
    """Issue counts by reason, fatal issues first."""
    counts = Counter((issue.reason, issue.fatal) for issue in result.issues)
    lines = [f"{'Reason':<36} {'Count':>8} {'Skipped':>10}", TABLE_SEP]
    for (reason, fatal), count in sorted(counts.items(), key=lambda kv: (not kv[0][1], kv[0][0])):
        lines.append(f"{reason:<36} {count:>8} {'yes' if fatal else 'no':>10}")
    if not counts:
        lines.append("(no issues)")
    return "\n".join(lines)


def format_summary(result: "PipelineResult") -> str:
    """
    Render a full run summary.

    Parameters
    ----------
    result : PipelineResult
        Pipeline output

    Returns
    -------
    str
        Multi-line text report
    """
    n_results = len(result.results)
    n_high_cv = int(result.results["high_cv"].sum()) if "high_cv" in result.results else 0

    lines = [
        _format_header("POXC Calibration Summary"),
        format_calibration_table(result),
        "",
        _format_header("Results"),
        f"{'Samples computed':<36} {n_results:>8}",
        f"{'Samples with high CV':<36} {n_high_cv:>8}",
        f"{'Skipped items':<36} {len(result.skipped):>8}",
        "",
        _format_header("Issues"),
        format_issue_table(result),
        TABLE_HEADER,
    ]
    return "\n".join(lines)
