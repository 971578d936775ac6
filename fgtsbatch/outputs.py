"""Output directory layout for guides, reports and error logs."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from .periods import PeriodInfo
from .utils import ensure_dir, sanitize_file_part
from .worklist import DEFAULT_OWNER

REPORT_DIR_NAME = "RE"


@dataclass(frozen=True)
class OutputTarget:
    owner_dir: Path
    report_dir: Path
    owner_safe: str


def owner_safe_name(owner: str | None) -> str:
    return sanitize_file_part(owner or DEFAULT_OWNER)


def build_output_dirs(base_dir: Path, period: PeriodInfo, owner: str | None) -> OutputTarget:
    """Resolve and create the owner and report directories for ``period``.

    Safe to call repeatedly for the same owner, including across retries.
    """

    month_dir = Path(base_dir) / period.year / period.month_label
    owner_safe = owner_safe_name(owner)
    owner_dir = ensure_dir(month_dir / owner_safe)
    report_dir = ensure_dir(month_dir / REPORT_DIR_NAME)
    return OutputTarget(owner_dir=owner_dir, report_dir=report_dir, owner_safe=owner_safe)


__all__ = ["OutputTarget", "build_output_dirs", "owner_safe_name", "REPORT_DIR_NAME"]
