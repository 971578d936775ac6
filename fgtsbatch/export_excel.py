"""Excel export of a run's outcome record."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import pandas as pd

from .telemetry import latest_run_path, load_run


def export_run_to_excel(run_path: Path, dest_path: Optional[Path] = None) -> Path:
    """Write ``run_path``'s entries to an Excel workbook and return its path.

    Sheets: every entry, succeeded entries, failed entries, counts per
    status and counts per failure code and owner.
    """

    payload = load_run(run_path)

    df = pd.DataFrame(payload.get("entries", []))
    if df.empty:
        df = pd.DataFrame([{"info": "No entries in run"}])

    has_status = "status" in df.columns
    succeeded = df[df["status"] == "succeeded"].copy() if has_status else pd.DataFrame()
    failed = df[df["status"] == "failed"].copy() if has_status else pd.DataFrame()

    summary_status = (
        df.groupby("status").size().reset_index(name="count") if has_status else pd.DataFrame()
    )
    summary_failures = pd.DataFrame()
    if not failed.empty and {"error_code", "owner"} <= set(failed.columns):
        summary_failures = (
            failed.fillna({"error_code": "unknown"})
            .groupby(["error_code", "owner"])
            .size()
            .reset_index(name="count")
            .sort_values("count", ascending=False)
        )

    if dest_path is None:
        dest_path = Path(run_path).with_suffix(".xlsx")
    dest_path = Path(dest_path)
    dest_path.parent.mkdir(parents=True, exist_ok=True)

    with pd.ExcelWriter(dest_path, engine="openpyxl") as writer:
        df.to_excel(writer, index=False, sheet_name="All")
        succeeded.to_excel(writer, index=False, sheet_name="Succeeded")
        failed.to_excel(writer, index=False, sheet_name="Failed")
        summary_status.to_excel(writer, index=False, sheet_name="Summary_Status")
        if not summary_failures.empty:
            summary_failures.to_excel(writer, index=False, sheet_name="Summary_Failures")

    return dest_path


def export_latest_run_to_excel(runs_dir: Path, exports_dir: Path) -> Path:
    """Export the most recent run in ``runs_dir`` into ``exports_dir``."""

    run_path = latest_run_path(runs_dir)
    if run_path is None:
        raise FileNotFoundError(f"No run telemetry available to export in {runs_dir}")
    return export_run_to_excel(run_path, Path(exports_dir) / f"{run_path.stem}.xlsx")


__all__ = ["export_run_to_excel", "export_latest_run_to_excel"]
