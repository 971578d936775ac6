"""Attach to an externally launched Chrome over the DevTools protocol.

Chrome must already be running with ``--remote-debugging-port`` and an
authenticated FGTS Digital session; nothing here logs in.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from playwright.sync_api import Error as PWError, Page, sync_playwright

from .config import RunConfig
from .logging_utils import _batch_event
from .utils import log_line


class SessionError(RuntimeError):
    """The remote browser session could not be attached."""


@contextmanager
def attach_session(cfg: RunConfig) -> Iterator[Page]:
    """Yield the page the batch will drive for the whole run."""

    with sync_playwright() as pw:
        try:
            browser = pw.chromium.connect_over_cdp(cfg.cdp_url, timeout=cfg.action_timeout_ms)
        except PWError as exc:
            raise SessionError(f"Unable to connect to Chrome at {cfg.cdp_url}: {exc}") from exc

        contexts = browser.contexts
        if not contexts:
            raise SessionError(
                "No browser context found via CDP. Check that Chrome was started "
                "with --remote-debugging-port=9222"
            )

        context = contexts[0]
        reused = bool(context.pages)
        try:
            page = context.pages[0] if reused else context.new_page()
            page.bring_to_front()
            page.wait_for_load_state("domcontentloaded", timeout=cfg.action_timeout_ms)
        except PWError as exc:
            raise SessionError(f"Attached to {cfg.cdp_url} but the tab is not usable: {exc}") from exc

        _batch_event("session", phase="attached", cdp_url=cfg.cdp_url, reused_page=reused)
        log_line(f"[SESSION] Attached to {cfg.cdp_url} ({'existing' if reused else 'new'} tab)")
        yield page


__all__ = ["SessionError", "attach_session"]
