from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path
from typing import Any, List, Optional

import pytest
from playwright.sync_api import Error as PWError, TimeoutError as PWTimeout

from fgtsbatch import session
from fgtsbatch.periods import period_for
from fgtsbatch.session import SessionError, attach_session
from tests.test_workflow import make_cfg


class _Tab:
    def __init__(self, name: str) -> None:
        self.name = name
        self.calls: List[str] = []

    def bring_to_front(self) -> None:
        self.calls.append("bring_to_front")

    def wait_for_load_state(self, state: str, timeout: Optional[float] = None) -> None:
        self.calls.append(f"load:{state}")


class _Context:
    def __init__(self, pages: List[_Tab]) -> None:
        self.pages = pages

    def new_page(self) -> _Tab:
        tab = _Tab("new")
        self.pages.append(tab)
        return tab


class _Browser:
    def __init__(self, contexts: List[_Context]) -> None:
        self.contexts = contexts


class _Chromium:
    def __init__(self, browser: Optional[_Browser], error: Optional[Exception]) -> None:
        self.browser = browser
        self.error = error
        self.urls: List[str] = []

    def connect_over_cdp(self, url: str, timeout: Optional[float] = None) -> _Browser:
        self.urls.append(url)
        if self.error is not None:
            raise self.error
        return self.browser


def _patch_playwright(
    monkeypatch: pytest.MonkeyPatch,
    browser: Optional[_Browser] = None,
    error: Optional[Exception] = None,
) -> _Chromium:
    chromium = _Chromium(browser, error)

    class _Playwright:
        pass

    pw: Any = _Playwright()
    pw.chromium = chromium

    @contextmanager
    def _sync_playwright():
        yield pw

    monkeypatch.setattr(session, "sync_playwright", _sync_playwright)
    return chromium


def test_attach_session_reuses_first_tab(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    first, second = _Tab("first"), _Tab("second")
    chromium = _patch_playwright(monkeypatch, _Browser([_Context([first, second])]))
    cfg = make_cfg(tmp_path, cdp_url="http://127.0.0.1:9333")

    with attach_session(cfg) as page:
        assert page is first

    assert chromium.urls == ["http://127.0.0.1:9333"]
    assert first.calls == ["bring_to_front", "load:domcontentloaded"]


def test_attach_session_opens_tab_when_context_empty(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    context = _Context([])
    _patch_playwright(monkeypatch, _Browser([context]))

    with attach_session(make_cfg(tmp_path)) as page:
        assert page.name == "new"

    assert context.pages == [page]


def test_attach_session_without_contexts(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    _patch_playwright(monkeypatch, _Browser([]))

    with pytest.raises(SessionError, match="remote-debugging-port"):
        with attach_session(make_cfg(tmp_path)):
            pass


def test_attach_session_connection_refused(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    _patch_playwright(monkeypatch, error=PWError("connect ECONNREFUSED 127.0.0.1:9222"))

    with pytest.raises(SessionError, match="Unable to connect"):
        with attach_session(make_cfg(tmp_path)):
            pass


def test_attach_session_tab_that_never_loads(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    class _StuckTab(_Tab):
        def wait_for_load_state(self, state: str, timeout: Optional[float] = None) -> None:
            raise PWTimeout(f"Timeout {timeout}ms exceeded waiting for {state}")

    _patch_playwright(monkeypatch, _Browser([_Context([_StuckTab("stuck")])]))

    with pytest.raises(SessionError, match="not usable"):
        with attach_session(make_cfg(tmp_path)):
            pass


def test_main_reports_unusable_tab_as_fatal(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    from fgtsbatch import run
    from tests.test_worklist import SAMPLE_ROWS, SPREADSHEET_NAME, _write_payroll_workbook

    class _StuckTab(_Tab):
        def bring_to_front(self) -> None:
            raise PWError("Target page, context or browser has been closed")

    _write_payroll_workbook(tmp_path / SPREADSHEET_NAME, SAMPLE_ROWS)
    _patch_playwright(monkeypatch, _Browser([_Context([_StuckTab("closed")])]))
    monkeypatch.setenv("SPREADSHEET_DIR", str(tmp_path))
    monkeypatch.setenv("FGTS_LOG_DIR", str(tmp_path / "logs"))
    monkeypatch.setenv("FGTS_OUTPUT_DIR", str(tmp_path / "out"))
    monkeypatch.setattr(run, "previous_month_period", lambda now=None: period_for(2024, 5))

    assert run.main([]) == 1
