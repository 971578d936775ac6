from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest
import requests

from fgtsbatch import healthcheck
from tests.test_workflow import make_cfg
from tests.test_worklist import SPREADSHEET_NAME, _write_payroll_workbook


class _FakeResponse:
    def __init__(self, payload: dict[str, Any], status: int = 200) -> None:
        self._payload = payload
        self.status_code = status

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"status {self.status_code}")

    def json(self) -> dict[str, Any]:
        return self._payload


def test_run_health_checks_happy_path(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    _write_payroll_workbook(tmp_path / SPREADSHEET_NAME, [])
    requested: list[str] = []

    def _get(url: str, timeout: float) -> _FakeResponse:
        requested.append(url)
        return _FakeResponse({"Browser": "Chrome/126.0.6478.127"})

    monkeypatch.setattr(healthcheck.requests, "get", _get)

    result = healthcheck.run_health_checks(make_cfg(tmp_path))

    assert result.ok is True
    assert result.checks["config"]["ok"] is True
    assert result.checks["output_dir"]["ok"] is True
    assert result.checks["spreadsheet"]["path"].endswith(SPREADSHEET_NAME)
    assert result.checks["cdp"]["browser"] == "Chrome/126.0.6478.127"
    assert requested == ["http://127.0.0.1:9222/json/version"]


def test_run_health_checks_reports_unreachable_browser(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    def _get(url: str, timeout: float) -> _FakeResponse:
        raise requests.ConnectionError("connection refused")

    monkeypatch.setattr(healthcheck.requests, "get", _get)

    result = healthcheck.run_health_checks(make_cfg(tmp_path))

    assert result.ok is False
    assert result.checks["cdp"]["ok"] is False
    assert "refused" in result.checks["cdp"]["error"]
    assert result.checks["spreadsheet"]["ok"] is False


def test_run_health_checks_handles_invalid_config(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr(healthcheck.requests, "get", lambda url, timeout: _FakeResponse({}, 500))

    result = healthcheck.run_health_checks(make_cfg(tmp_path, action_timeout_ms=0))

    assert result.ok is False
    assert result.checks["config"]["ok"] is False
    assert result.checks["cdp"]["ok"] is False
