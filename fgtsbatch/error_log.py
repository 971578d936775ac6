"""Per-owner error logs for companies that failed every attempt.

File names and line timestamps use UTC.
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from .periods import PeriodInfo
from .worklist import WorkItem

ERROR_LOG_PREFIX = "errors_download_"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def error_log_path(owner_dir: Path, now: Optional[datetime] = None) -> Path:
    """Return the UTC-dated error log file inside ``owner_dir``."""

    stamp = (now or _utc_now()).strftime("%Y%m%d")
    return Path(owner_dir) / f"{ERROR_LOG_PREFIX}{stamp}.txt"


def format_error_line(
    item: WorkItem, period: PeriodInfo, reason: str, now: datetime
) -> str:
    message = " ".join(str(reason or "").split())
    timestamp = now.strftime("%Y-%m-%d %H:%M:%S")
    return (
        f"[{timestamp}] ID: {item.id} | Name: {item.display_name} | "
        f"Owner: {item.owner} | Period: {period.period_code} | ERROR: {message}\n"
    )


def append_error_log(
    owner_dir: Path,
    period: PeriodInfo,
    item: WorkItem,
    reason: str,
    *,
    now: Optional[datetime] = None,
) -> Path:
    """Append one failure line for ``item`` and return the log path."""

    moment = now or _utc_now()
    path = error_log_path(owner_dir, moment)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("a", encoding="utf-8") as handle:
        handle.write(format_error_line(item, period, reason, moment))
    return path


__all__ = ["append_error_log", "error_log_path", "format_error_line", "ERROR_LOG_PREFIX"]
