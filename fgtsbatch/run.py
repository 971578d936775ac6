"""Batch driver for FGTS quick guide downloads.

Workflow:

- Compute the target period (the month before today).
- Read the unified payroll spreadsheet and build the company work list.
- Attach to the Chrome instance already logged in to FGTS Digital.
- For each company, run the portal workflow up to ``max_attempts`` times,
  resetting to the services page between attempts.
- Companies that still fail get one line in their owner's error log.
- Print total/succeeded/failed and write the run telemetry JSON.

Only spreadsheet, session and configuration problems abort the run.
"""

from __future__ import annotations

import argparse
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Sequence, Tuple

from playwright.sync_api import Page

from .config import RunConfig
from .config_validation import validate_runtime_config
from .error_codes import ErrorCode
from .error_log import append_error_log
from .export_excel import export_run_to_excel
from .healthcheck import run_health_checks
from .logging_utils import _batch_event
from .outputs import build_output_dirs
from .periods import PeriodInfo, previous_month_period
from .retry_policy import attempt_with_reset
from .selectors_portal import PORTAL_SELECTORS, PortalSelectors
from .session import SessionError, attach_session
from .telemetry import RunTelemetry
from .utils import log_debug, log_line, setup_run_logger
from .workflow import process_company
from .worklist import WorkItem, WorklistError, find_spreadsheet, load_work_items

FALLBACK_FAILURE_MESSAGE = "Timeout/failure in two attempts"


@dataclass
class BatchSummary:
    total: int = 0
    succeeded: int = 0
    failed: int = 0
    failures: List[Tuple[str, str, str]] = field(default_factory=list)

    def as_dict(self) -> dict:
        return {"total": self.total, "succeeded": self.succeeded, "failed": self.failed}


def reset_to_services(page: Page, cfg: RunConfig, selectors: PortalSelectors = PORTAL_SELECTORS) -> None:
    """Navigate back to the services landing page, ignoring any failure.

    This only clears leftover modals and half-filled forms before the next
    attempt; the attempt itself re-checks everything it needs.
    """

    try:
        page.goto(
            selectors.services_url,
            wait_until="domcontentloaded",
            timeout=cfg.action_timeout_ms,
        )
    except Exception as exc:  # noqa: BLE001
        log_debug(f"[RUN] Reset navigation to services page failed: {exc}")


def _record_failure(
    item: WorkItem, period: PeriodInfo, cfg: RunConfig, reason: str
) -> None:
    try:
        target = build_output_dirs(cfg.output_base_dir, period, item.owner)
        log_path = append_error_log(target.owner_dir, period, item, reason)
        log_line(f"[RUN] Error logged for {item.id} in {log_path}")
    except OSError as exc:
        log_line(f"[RUN][WARN] Unable to write error log for {item.id}: {exc}")


def run_batch(
    page: Page,
    items: Sequence[WorkItem],
    period: PeriodInfo,
    cfg: RunConfig,
    *,
    telemetry: Optional[RunTelemetry] = None,
    selectors: PortalSelectors = PORTAL_SELECTORS,
) -> BatchSummary:
    """Process every work item in order against the shared ``page``."""

    summary = BatchSummary(total=len(items))

    for index, item in enumerate(items, start=1):
        log_line(f"[{index}/{len(items)}] Starting {item.id}...")

        outcome = attempt_with_reset(
            lambda _attempt: process_company(page, item, period, cfg, selectors=selectors),
            max_attempts=cfg.max_attempts,
            reset=lambda: reset_to_services(page, cfg, selectors),
            label=f"id {item.id}",
        )

        meta = {"id": item.id, "owner": item.owner, "name": item.display_name, "attempts": outcome.attempts}

        if outcome.ok:
            summary.succeeded += 1
            if telemetry is not None:
                result = outcome.value
                telemetry.add(
                    "succeeded",
                    "",
                    {
                        **meta,
                        "guide_path": str(result.guide.final_path),
                        "report_path": str(result.report.final_path),
                    },
                )
            continue

        reason = outcome.reason or FALLBACK_FAILURE_MESSAGE
        summary.failed += 1
        summary.failures.append((item.id, item.owner, reason))
        _record_failure(item, period, cfg, reason)
        if telemetry is not None:
            error_code = getattr(outcome.error, "error_code", None) or ErrorCode.INTERNAL
            step = getattr(getattr(outcome.error, "step", None), "value", None)
            telemetry.add("failed", reason, {**meta, "error_code": error_code, "step": step})
        log_line(f"Id {item.id} skipped after {outcome.attempts} attempts.")

    return summary


def print_summary(summary: BatchSummary) -> None:
    log_line("Run summary:")
    log_line(f"Total: {summary.total}")
    log_line(f"Succeeded: {summary.succeeded}")
    log_line(f"Failed: {summary.failed}")


def run_guides(
    cfg: RunConfig,
    *,
    now: Optional[datetime] = None,
    export_summary: bool = False,
    verbose: bool = False,
) -> BatchSummary:
    """Run the whole batch for the period preceding ``now``.

    Raises ``WorklistError`` or ``SessionError`` for run-aborting failures.
    """

    setup_run_logger(cfg.log_dir, verbose=verbose)
    validate_runtime_config(cfg, "cli")

    period = previous_month_period(now)
    log_line(f"Target period: {period.period_code} | Spreadsheet sheet: {period.sheet_key}")
    log_line(f"Output base directory: {cfg.output_base_dir}")

    spreadsheet = find_spreadsheet(cfg.spreadsheet_dir, cfg.spreadsheet_keyword)
    items = load_work_items(spreadsheet, period)

    telemetry = RunTelemetry(cfg.runs_dir, period.period_code)
    with attach_session(cfg) as page:
        summary = run_batch(page, items, period, cfg, telemetry=telemetry)

    run_path = telemetry.finalize({"totals": summary.as_dict()})
    _batch_event("run", phase="finished", run_path=str(run_path), **summary.as_dict())

    if export_summary:
        try:
            export_path = export_run_to_excel(run_path, cfg.exports_dir / f"{run_path.stem}.xlsx")
            log_line(f"[RUN] Summary exported to {export_path}")
        except Exception as exc:  # noqa: BLE001
            log_line(f"[RUN][WARN] Unable to export run summary: {exc}")

    print_summary(summary)
    return summary


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Download FGTS guides and reports for every company in the payroll spreadsheet",
    )
    parser.add_argument("--cdp-url", default=None, help="Chrome remote debugging endpoint")
    parser.add_argument("--keyword", dest="spreadsheet_keyword", default=None)
    parser.add_argument("--spreadsheet-dir", default=None)
    parser.add_argument("--timeout-ms", dest="action_timeout_ms", type=int, default=None)
    parser.add_argument("--output-dir", dest="output_base_dir", default=None)
    parser.add_argument("--log-dir", default=None)
    parser.add_argument(
        "--check",
        action="store_true",
        help="Run the pre-flight health checks and exit",
    )
    parser.add_argument(
        "--export-summary",
        action="store_true",
        help="Also write the run outcome to an Excel workbook",
    )
    parser.add_argument("--verbose", action="store_true", help="Log debug lines")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """CLI entry point; returns the process exit status."""

    args = _build_parser().parse_args(list(argv) if argv is not None else None)

    cfg = RunConfig.from_env().with_overrides(
        cdp_url=args.cdp_url,
        spreadsheet_keyword=args.spreadsheet_keyword,
        spreadsheet_dir=args.spreadsheet_dir,
        action_timeout_ms=args.action_timeout_ms,
        output_base_dir=args.output_base_dir,
        log_dir=args.log_dir,
    )

    if args.check:
        result = run_health_checks(cfg)
        for name, info in result.checks.items():
            status = "OK" if info.get("ok") else "FAIL"
            log_line(f"[HEALTH] {name}: {status} {info}")
        return 0 if result.ok else 1

    try:
        run_guides(cfg, export_summary=args.export_summary, verbose=args.verbose)
    except (WorklistError, SessionError, ValueError) as exc:
        log_line(f"Fatal error: {exc}")
        _batch_event("error", phase="run", error=str(exc), kind=type(exc).__name__)
        return 1
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())

__all__ = ["BatchSummary", "run_batch", "run_guides", "reset_to_services", "main"]
