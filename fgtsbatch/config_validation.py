from __future__ import annotations

from typing import Literal
from urllib.parse import urlparse

from .config import RunConfig
from .logging_utils import _batch_event
from .utils import log_line

Entrypoint = Literal["cli", "check", "tests"]

_CDP_SCHEMES = {"http", "https", "ws", "wss"}


def _raise_config_error(message: str, *, entrypoint: Entrypoint, error: str) -> None:
    _batch_event(
        "error",
        phase="config",
        context="runtime_validation",
        error=error,
        entrypoint=entrypoint,
    )
    log_line(f"[CONFIG] {message} (entrypoint={entrypoint})")
    raise ValueError(message)


def validate_runtime_config(cfg: RunConfig, entrypoint: Entrypoint = "cli") -> None:
    """Validate ``cfg`` for the given entrypoint.

    Raises ``ValueError`` when a blocking misconfiguration is detected.
    """

    if cfg.action_timeout_ms <= 0:
        _raise_config_error(
            "ACTION_TIMEOUT_MS must be greater than zero.",
            entrypoint=entrypoint,
            error="invalid_timeout",
        )

    if cfg.max_attempts < 1:
        _raise_config_error(
            "FGTS_MAX_ATTEMPTS must be at least 1.",
            entrypoint=entrypoint,
            error="invalid_max_attempts",
        )

    if cfg.poll_interval_ms <= 0:
        _raise_config_error(
            "Poll interval must be greater than zero.",
            entrypoint=entrypoint,
            error="invalid_poll_interval",
        )

    if not cfg.spreadsheet_keyword.strip():
        _raise_config_error(
            "EXCEL_KEYWORD must not be empty.",
            entrypoint=entrypoint,
            error="empty_spreadsheet_keyword",
        )

    parsed = urlparse(cfg.cdp_url)
    if parsed.scheme not in _CDP_SCHEMES or not parsed.netloc:
        _raise_config_error(
            f"CDP_URL {cfg.cdp_url!r} is not an http(s) or ws(s) URL.",
            entrypoint=entrypoint,
            error="invalid_cdp_url",
        )


__all__ = ["validate_runtime_config", "Entrypoint"]
