from __future__ import annotations

import tempfile
from dataclasses import dataclass
from typing import Any

import requests

from .config import RunConfig
from .config_validation import validate_runtime_config
from .logging_utils import _batch_event
from .worklist import WorklistError, find_spreadsheet

CDP_PROBE_TIMEOUT_SECONDS = 5


@dataclass
class HealthResult:
    ok: bool
    checks: dict[str, dict[str, Any]]


def _check_output_dir(cfg: RunConfig) -> dict[str, Any]:
    try:
        cfg.output_base_dir.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(dir=cfg.output_base_dir):
            pass
        return {"ok": True, "output_base_dir": str(cfg.output_base_dir)}
    except OSError as exc:
        return {"ok": False, "output_base_dir": str(cfg.output_base_dir), "error": str(exc)}


def _check_cdp(cfg: RunConfig) -> dict[str, Any]:
    url = cfg.cdp_url.rstrip("/") + "/json/version"
    try:
        resp = requests.get(url, timeout=CDP_PROBE_TIMEOUT_SECONDS)
        resp.raise_for_status()
        browser = resp.json().get("Browser", "")
        return {"ok": True, "url": url, "browser": browser}
    except (requests.RequestException, ValueError) as exc:
        return {"ok": False, "url": url, "error": str(exc)}


def run_health_checks(cfg: RunConfig) -> HealthResult:
    checks: dict[str, dict[str, Any]] = {}

    try:
        validate_runtime_config(cfg, "check")
        checks["config"] = {"ok": True}
    except ValueError as exc:
        checks["config"] = {"ok": False, "error": str(exc)}

    checks["output_dir"] = _check_output_dir(cfg)

    try:
        path = find_spreadsheet(cfg.spreadsheet_dir, cfg.spreadsheet_keyword)
        checks["spreadsheet"] = {"ok": True, "path": str(path)}
    except WorklistError as exc:
        checks["spreadsheet"] = {"ok": False, "error": str(exc)}

    checks["cdp"] = _check_cdp(cfg)

    overall_ok = all(check.get("ok", False) for check in checks.values())

    _batch_event(
        "state" if overall_ok else "error",
        phase="health",
        context="healthcheck",
        ok=overall_ok,
        checks=checks,
    )

    return HealthResult(ok=overall_ok, checks=checks)


__all__ = ["HealthResult", "run_health_checks"]
