from __future__ import annotations

"""Error code taxonomy for per-company failures.

These codes travel on ``StepFailure``/``CaptureError`` and are written to the
run telemetry so a failed company can be explained without reading the full
log. Keep the values stable; the Excel export groups on them.
"""


class ErrorCode:
    STEP_TIMEOUT = "step_timeout"
    INVALID_IDENTIFIER = "invalid_identifier"
    NAVIGATION = "navigation_failed"
    DOWNLOAD_TIMEOUT = "download_timeout"
    BROWSER = "browser_error"
    INTERNAL = "internal_error"


__all__ = ["ErrorCode"]
