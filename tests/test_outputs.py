from __future__ import annotations

from datetime import datetime
from pathlib import Path

from fgtsbatch.error_log import append_error_log, error_log_path, format_error_line
from fgtsbatch.outputs import build_output_dirs
from fgtsbatch.periods import period_for
from fgtsbatch.worklist import WorkItem

PERIOD = period_for(2024, 5)
ITEM = WorkItem(id="11222333000181", owner="Ana Paula", display_name="ACME LTDA")


def test_build_output_dirs_creates_owner_and_report_dirs(tmp_path: Path) -> None:
    target = build_output_dirs(tmp_path, PERIOD, "Ana Paula")

    assert target.owner_dir == tmp_path / "2024" / "maio" / "Ana_Paula"
    assert target.report_dir == tmp_path / "2024" / "maio" / "RE"
    assert target.owner_safe == "Ana_Paula"
    assert target.owner_dir.is_dir()
    assert target.report_dir.is_dir()

    assert build_output_dirs(tmp_path, PERIOD, "Ana Paula") == target


def test_build_output_dirs_defaults_owner(tmp_path: Path) -> None:
    target = build_output_dirs(tmp_path, PERIOD, None)

    assert target.owner_dir.name == "Unknown"


def test_format_error_line_flattens_reason() -> None:
    line = format_error_line(
        ITEM, PERIOD, "period_set:\n  combobox   not found", datetime(2024, 6, 3, 14, 5, 9)
    )

    assert line == (
        "[2024-06-03 14:05:09] ID: 11222333000181 | Name: ACME LTDA | Owner: Ana Paula | "
        "Period: 05/2024 | ERROR: period_set: combobox not found\n"
    )


def test_append_error_log_appends_one_line_per_failure(tmp_path: Path) -> None:
    now = datetime(2024, 6, 3, 9, 0, 0)

    first = append_error_log(tmp_path, PERIOD, ITEM, "first", now=now)
    second = append_error_log(tmp_path, PERIOD, ITEM, "second", now=now)

    assert first == second == tmp_path / "errors_download_20240603.txt"
    assert error_log_path(tmp_path, now) == first
    lines = first.read_text(encoding="utf-8").splitlines()
    assert [line.rsplit("ERROR: ", 1)[1] for line in lines] == ["first", "second"]


def test_append_error_log_defaults_to_utc_date(tmp_path: Path, monkeypatch) -> None:
    from datetime import timezone

    from fgtsbatch import error_log

    # 22:30 in Sao Paulo on June 3rd is already June 4th in UTC.
    late_evening = datetime(2024, 6, 4, 1, 30, 0, tzinfo=timezone.utc)
    monkeypatch.setattr(error_log, "_utc_now", lambda: late_evening)

    path = append_error_log(tmp_path, PERIOD, ITEM, "boom")

    assert path.name == "errors_download_20240604.txt"
    assert path.read_text(encoding="utf-8").startswith("[2024-06-04 01:30:00]")
