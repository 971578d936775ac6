"""Per-company workflow against the FGTS Digital quick guide emission page.

One attempt walks a fixed, linear sequence of steps:

- open the profile switcher (navigating to the services page if needed);
- select the attorney profile and the company id;
- wait for the profile modal to accept (or reject) the id;
- open the quick guide emission page;
- set the competency period;
- untick the "termination debts" option when it is ticked;
- search and wait for the "Emitir guia" action;
- download the guide into the owner's directory;
- download the report into the shared ``RE`` directory.

Every wait is bounded by ``RunConfig.action_timeout_ms``. Any failure is
raised as :class:`StepFailure`, which names the company id and the step; the
batch driver decides whether to retry.
"""

from __future__ import annotations

import re
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Tuple

from playwright.sync_api import Error as PWError, Locator, Page, TimeoutError as PWTimeout

from .config import RunConfig
from .downloads import CaptureError, DownloadResult, capture_download
from .error_codes import ErrorCode
from .logging_utils import _batch_event
from .outputs import OutputTarget, build_output_dirs
from .periods import PeriodInfo
from .probes import Probe, is_ready, probe
from .selectors_portal import PORTAL_SELECTORS, PortalSelectors
from .utils import log_line, sanitize_file_part
from .worklist import WorkItem


class WorkflowStep(str, Enum):
    PROFILE_SELECTION_OPEN = "profile_selection_open"
    PROFILE_SELECTED = "profile_selected"
    PROFILE_VALIDATED = "profile_validated"
    WORKFLOW_PAGE_READY = "workflow_page_ready"
    PERIOD_SET = "period_set"
    OPTIONS_NORMALIZED = "options_normalized"
    RESULTS_SEARCHED = "results_searched"
    GUIDE_DOWNLOADED = "guide_downloaded"
    REPORT_DOWNLOADED = "report_downloaded"


class StepFailure(RuntimeError):
    """A workflow step could not complete for one company."""

    def __init__(
        self, item_id: str, step: WorkflowStep, error_code: str, detail: str
    ) -> None:
        super().__init__(f"{step.value}: {detail} (id={item_id})")
        self.item_id = item_id
        self.step = step
        self.error_code = error_code
        self.detail = detail


@dataclass(frozen=True)
class WorkflowResult:
    guide: DownloadResult
    report: DownloadResult


def _short_error(exc: BaseException, max_length: int = 200) -> str:
    text = " ".join(str(exc).split())
    if len(text) > max_length:
        return text[: max_length - 3] + "..."
    return text


def _read_text(locator: Locator, timeout_ms: int) -> str:
    try:
        if locator.count() == 0:
            return ""
        return (locator.text_content(timeout=timeout_ms) or "").strip()
    except PWError:
        return ""


class CompanyWorkflow:
    """Drive the portal for a single work item, one step at a time."""

    def __init__(
        self,
        page: Page,
        item: WorkItem,
        period: PeriodInfo,
        target: OutputTarget,
        cfg: RunConfig,
        *,
        selectors: PortalSelectors = PORTAL_SELECTORS,
    ) -> None:
        self.page = page
        self.item = item
        self.period = period
        self.target = target
        self.cfg = cfg
        self.selectors = selectors
        self.timeout_ms = cfg.action_timeout_ms
        self.company_safe = sanitize_file_part(item.display_name or item.id)

        self.state: Optional[WorkflowStep] = None
        self.completed: List[WorkflowStep] = []
        self._current: WorkflowStep = WorkflowStep.PROFILE_SELECTION_OPEN

        self._guide: Optional[DownloadResult] = None
        self._report: Optional[DownloadResult] = None

    # ------------------------------------------------------------------
    # State machine
    # ------------------------------------------------------------------

    def _transitions(self) -> List[Tuple[WorkflowStep, Callable[[], None]]]:
        return [
            (WorkflowStep.PROFILE_SELECTION_OPEN, self._open_profile_selection),
            (WorkflowStep.PROFILE_SELECTED, self._select_profile),
            (WorkflowStep.PROFILE_VALIDATED, self._validate_profile),
            (WorkflowStep.WORKFLOW_PAGE_READY, self._open_guide_page),
            (WorkflowStep.PERIOD_SET, self._set_period),
            (WorkflowStep.OPTIONS_NORMALIZED, self._normalize_options),
            (WorkflowStep.RESULTS_SEARCHED, self._search),
            (WorkflowStep.GUIDE_DOWNLOADED, self._download_guide),
            (WorkflowStep.REPORT_DOWNLOADED, self._download_report),
        ]

    def run(self) -> WorkflowResult:
        for step, handler in self._transitions():
            self._advance(step, handler)

        if self._guide is None or self._report is None:
            raise self._fail(ErrorCode.INTERNAL, "workflow ended without both downloads")
        return WorkflowResult(guide=self._guide, report=self._report)

    def _advance(self, step: WorkflowStep, handler: Callable[[], None]) -> None:
        self._current = step
        try:
            handler()
        except StepFailure:
            raise
        except CaptureError as exc:
            raise StepFailure(self.item.id, step, exc.error_code, str(exc)) from exc
        except PWTimeout as exc:
            raise StepFailure(
                self.item.id, step, ErrorCode.STEP_TIMEOUT, _short_error(exc)
            ) from exc
        except PWError as exc:
            raise StepFailure(self.item.id, step, ErrorCode.BROWSER, _short_error(exc)) from exc

        self.state = step
        self.completed.append(step)
        _batch_event("step", id=self.item.id, step=step.value)

    def _fail(self, error_code: str, detail: str) -> StepFailure:
        return StepFailure(self.item.id, self._current, error_code, detail)

    def _by_role(self, role: str, pattern: str) -> Locator:
        return self.page.get_by_role(role, name=re.compile(pattern, re.IGNORECASE)).first

    def _wait_visible(self, locator: Locator) -> Locator:
        locator.wait_for(state="visible", timeout=self.timeout_ms)
        return locator

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    def _open_profile_selection(self) -> None:
        button = self._by_role("button", self.selectors.switch_profile_button)
        if not is_ready(button):
            self.page.goto(
                self.selectors.services_url,
                wait_until="domcontentloaded",
                timeout=self.timeout_ms,
            )
            self._wait_visible(button)

    def _select_profile(self) -> None:
        self._by_role("button", self.selectors.switch_profile_button).click(timeout=self.timeout_ms)

        profile_input = self._wait_visible(self.page.locator(self.selectors.profile_input).first)
        profile_input.click(timeout=self.timeout_ms)
        profile_input.fill(self.cfg.role_value, timeout=self.timeout_ms)
        profile_input.press("Enter", timeout=self.timeout_ms)

        id_input = self._wait_visible(self.page.locator(self.selectors.id_input).first)
        id_input.click(timeout=self.timeout_ms)
        id_input.fill(self.item.id, timeout=self.timeout_ms)

        select_button = self._wait_visible(self._by_role("button", self.selectors.select_button))
        select_button.click(timeout=self.timeout_ms)

    def _validate_profile(self) -> None:
        modal = self.page.locator(self.selectors.profile_modal).first
        invalid_message = (
            modal.locator(self.selectors.invalid_id_message)
            .filter(has_text=re.compile(self.selectors.invalid_id_text, re.IGNORECASE))
            .first
        )

        deadline = time.monotonic() + self.timeout_ms / 1000
        while time.monotonic() < deadline:
            if is_ready(invalid_message):
                raise self._fail(
                    ErrorCode.INVALID_IDENTIFIER, "CPF/CNPJ rejected by the profile modal"
                )
            if not is_ready(modal):
                return
            self.page.wait_for_timeout(self.cfg.poll_interval_ms)

        raise self._fail(
            ErrorCode.STEP_TIMEOUT,
            f"profile modal did not close within {self.timeout_ms}ms",
        )

    def _open_guide_page(self) -> None:
        self.page.wait_for_timeout(self.cfg.poll_interval_ms)

        last_error: Optional[PWError] = None
        for wait_until in ("domcontentloaded", "networkidle"):
            try:
                self.page.goto(
                    self.selectors.guide_page_url,
                    wait_until=wait_until,
                    timeout=self.timeout_ms,
                )
                self.page.wait_for_url(self.selectors.guide_page_pattern, timeout=self.timeout_ms)
                return
            except PWError as exc:
                last_error = exc
                _batch_event(
                    "nav",
                    step="guide_page_retry",
                    id=self.item.id,
                    wait_until=wait_until,
                    error=_short_error(exc),
                )

        raise self._fail(
            ErrorCode.NAVIGATION,
            f"guide emission page did not load: {_short_error(last_error) if last_error else 'unknown'}",
        ) from last_error

    def _set_period(self) -> None:
        period_code = self.period.period_code
        select = self._wait_visible(self.page.locator(self.selectors.period_select).first)

        current = _read_text(select.locator(self.selectors.period_value_label).first, self.timeout_ms)
        if current == period_code:
            _batch_event("step", id=self.item.id, step="period_already_set", period=period_code)
            return

        select.click(timeout=self.timeout_ms)
        period_input = self._wait_visible(select.locator(self.selectors.period_input).first)
        period_input.fill(period_code, timeout=self.timeout_ms)

        option = self.page.locator(self.selectors.period_option, has_text=period_code).first
        if is_ready(option):
            option.click(timeout=self.timeout_ms)
        else:
            period_input.press("Enter", timeout=self.timeout_ms)

    def _normalize_options(self) -> None:
        checkbox = self.page.locator(self.selectors.termination_debts_checkbox).first
        try:
            checkbox.wait_for(state="attached", timeout=self.timeout_ms)
        except PWTimeout:
            _batch_event("step", id=self.item.id, step="termination_debts", probe=Probe.ABSENT.value)
            return

        state = probe(checkbox)
        if state is not Probe.VISIBLE:
            _batch_event("step", id=self.item.id, step="termination_debts", probe=state.value)
            return

        try:
            disabled = checkbox.is_disabled()
            checked = checkbox.is_checked()
        except PWError:
            return

        if not disabled and checked:
            checkbox.uncheck(force=True, timeout=self.timeout_ms)
            _batch_event("step", id=self.item.id, step="termination_debts", unchecked=True)

    def _search(self) -> None:
        search_button = self._wait_visible(self._by_role("button", self.selectors.search_button))
        search_button.click(timeout=self.timeout_ms)
        self._wait_visible(self._by_role("button", self.selectors.emit_guide_button))

    def _download_guide(self) -> None:
        emit_button = self._by_role("button", self.selectors.emit_guide_button)
        self._guide = capture_download(
            self.page,
            lambda: emit_button.click(timeout=self.timeout_ms),
            self.target.owner_dir,
            self.company_safe,
            timeout_ms=self.timeout_ms,
        )

    def _download_report(self) -> None:
        print_button = self.page.locator(self.selectors.report_button_css).first
        if not is_ready(print_button):
            print_button = self._wait_visible(
                self.page.locator(self.selectors.report_button_xpath).first
            )

        self._report = capture_download(
            self.page,
            lambda: print_button.click(timeout=self.timeout_ms),
            self.target.report_dir,
            self.company_safe,
            timeout_ms=self.timeout_ms,
        )


def process_company(
    page: Page,
    item: WorkItem,
    period: PeriodInfo,
    cfg: RunConfig,
    *,
    selectors: PortalSelectors = PORTAL_SELECTORS,
) -> WorkflowResult:
    """Run one full workflow attempt for ``item``."""

    target = build_output_dirs(cfg.output_base_dir, period, item.owner)
    log_line(f"Processing id {item.id} | Owner: {item.owner} | Company: {item.display_name}")

    result = CompanyWorkflow(page, item, period, target, cfg, selectors=selectors).run()

    log_line(f"Guide saved: {result.guide.final_path}")
    log_line(f"Report saved: {result.report.final_path}")
    return result


__all__ = [
    "WorkflowStep",
    "StepFailure",
    "WorkflowResult",
    "CompanyWorkflow",
    "process_company",
]
