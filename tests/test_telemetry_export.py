from __future__ import annotations

from pathlib import Path

import pandas as pd
import pytest

from fgtsbatch.error_codes import ErrorCode
from fgtsbatch.export_excel import export_latest_run_to_excel, export_run_to_excel
from fgtsbatch.telemetry import RunTelemetry, latest_run_path, load_run


def _sample_run(runs_dir: Path) -> Path:
    telemetry = RunTelemetry(runs_dir, "05/2024")
    telemetry.add("succeeded", "", {"id": "11222333000181", "owner": "Ana"})
    telemetry.add(
        "failed",
        "guide_downloaded: no download",
        {"id": "55666777000188", "owner": "Bruno", "error_code": ErrorCode.DOWNLOAD_TIMEOUT},
    )
    telemetry.add(
        "failed",
        "profile_validated: rejected",
        {"id": "66777888000199", "owner": "Bruno", "error_code": ErrorCode.INVALID_IDENTIFIER},
    )
    return telemetry.finalize({"totals": {"total": 3, "succeeded": 1, "failed": 2}})


def test_finalize_writes_run_json(tmp_path: Path) -> None:
    path = _sample_run(tmp_path / "runs")

    payload = load_run(path)

    assert path.name.startswith("run_")
    assert payload["period"] == "05/2024"
    assert payload["summary"] == {"count_succeeded": 1, "count_failed": 2}
    assert payload["totals"]["failed"] == 2
    assert payload["ended_at"] >= payload["started_at"]
    assert payload["failures_by_owner"] == {"Bruno": 2}
    assert latest_run_path(tmp_path / "runs") == path


def test_latest_run_path_missing_dir(tmp_path: Path) -> None:
    assert latest_run_path(tmp_path / "nothing") is None


def test_export_run_to_excel_sheets(tmp_path: Path) -> None:
    run_path = _sample_run(tmp_path / "runs")

    dest = export_run_to_excel(run_path, tmp_path / "exports" / "summary.xlsx")

    workbook = pd.ExcelFile(dest)
    assert workbook.sheet_names == ["All", "Succeeded", "Failed", "Summary_Status", "Summary_Failures"]
    failures = workbook.parse("Summary_Failures")
    assert set(failures["error_code"]) == {ErrorCode.DOWNLOAD_TIMEOUT, ErrorCode.INVALID_IDENTIFIER}
    assert set(failures["owner"]) == {"Bruno"}
    status = workbook.parse("Summary_Status").set_index("status")["count"].to_dict()
    assert status == {"failed": 2, "succeeded": 1}


def test_export_latest_run(tmp_path: Path) -> None:
    run_path = _sample_run(tmp_path / "runs")

    dest = export_latest_run_to_excel(tmp_path / "runs", tmp_path / "exports")

    assert dest == tmp_path / "exports" / f"{run_path.stem}.xlsx"
    assert dest.exists()


def test_export_latest_run_without_runs(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        export_latest_run_to_excel(tmp_path / "runs", tmp_path / "exports")
