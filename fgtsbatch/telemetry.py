"""Per-run outcome records.

Each run leaves ``<log_dir>/runs/run_<run_id>.json`` holding one entry per
company (status, reason, id, owner, saved paths or failure code) plus
counters by status and by owner. ``run_summary_cli`` and ``export_excel``
read these files back.
"""

from __future__ import annotations

import json
import uuid
from collections import Counter
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

RUN_FILE_PREFIX = "run_"


def _now_iso() -> str:
    return datetime.now().isoformat(timespec="seconds")


class RunTelemetry:
    """Accumulate company outcomes for one batch run."""

    def __init__(self, runs_dir: Path, period_code: str) -> None:
        self.run_id = f"{datetime.now():%Y%m%d_%H%M%S}_{uuid.uuid4().hex[:8]}"
        self.runs_dir = Path(runs_dir)
        self.period_code = period_code
        self.started_at = _now_iso()
        self.entries: List[Dict[str, Any]] = []
        self.status_counts: Counter = Counter()
        self.failures_by_owner: Counter = Counter()
        self.runs_dir.mkdir(parents=True, exist_ok=True)

    @property
    def path(self) -> Path:
        return self.runs_dir / f"{RUN_FILE_PREFIX}{self.run_id}.json"

    def add(self, status: str, reason: str, meta: Dict[str, Any]) -> None:
        self.entries.append({"status": status, "reason": reason, "recorded_at": _now_iso(), **meta})
        self.status_counts[f"count_{status}"] += 1
        if status == "failed":
            self.failures_by_owner[meta.get("owner") or "Unknown"] += 1

    def finalize(self, extra: Optional[Dict[str, Any]] = None) -> Path:
        """Write the run file and return its path."""

        payload: Dict[str, Any] = {
            "run_id": self.run_id,
            "period": self.period_code,
            "started_at": self.started_at,
            "ended_at": _now_iso(),
            "summary": dict(self.status_counts),
            "failures_by_owner": dict(self.failures_by_owner),
            "entries": self.entries,
        }
        payload.update(extra or {})
        self.path.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
        return self.path


def latest_run_path(runs_dir: Path) -> Optional[Path]:
    """Return the most recent run file in ``runs_dir``, if any."""

    runs_dir = Path(runs_dir)
    if not runs_dir.is_dir():
        return None
    runs = sorted(runs_dir.glob(f"{RUN_FILE_PREFIX}*.json"))
    return runs[-1] if runs else None


def load_run(path: Path) -> Dict[str, Any]:
    return json.loads(Path(path).read_text(encoding="utf-8"))


__all__ = ["RunTelemetry", "latest_run_path", "load_run"]
