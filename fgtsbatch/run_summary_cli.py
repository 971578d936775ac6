from __future__ import annotations

"""CLI helper for printing the outcome of a finished batch run."""

import argparse
from collections import Counter
from pathlib import Path
from typing import Sequence

from .config import RunConfig
from .telemetry import latest_run_path, load_run


def _build_parser() -> argparse.ArgumentParser:
    """Return an argument parser for the run summary CLI."""

    parser = argparse.ArgumentParser(
        description="Show the outcome summary of a guide download run.",
    )
    parser.add_argument(
        "--run-id",
        help="Run ID to summarise.",
    )
    parser.add_argument(
        "--latest",
        action="store_true",
        help="Summarise the most recent run.",
    )
    parser.add_argument(
        "--runs-dir",
        default=None,
        help="Directory holding run_*.json files (defaults to <log dir>/runs).",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point for the run summary CLI."""

    parser = _build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    runs_dir = Path(args.runs_dir) if args.runs_dir else RunConfig.from_env().runs_dir

    run_path = None
    if args.run_id:
        run_path = runs_dir / f"run_{args.run_id}.json"
    elif args.latest:
        run_path = latest_run_path(runs_dir)
    if run_path is None:
        parser.error("You must provide --run-id or --latest")
    if not run_path.is_file():
        parser.error(f"Run not found: {run_path}")

    payload = load_run(run_path)
    entries = payload.get("entries", [])

    print(f"Run {payload.get('run_id')} (period {payload.get('period')})")
    status_counts = Counter(entry.get("status", "unknown") for entry in entries)
    for status, count in sorted(status_counts.items()):
        print(f"  {status}: {count}")

    failures = [entry for entry in entries if entry.get("status") == "failed"]
    if failures:
        print("\nFailures:")
        for entry in failures:
            print(f"  {entry.get('id')} [{entry.get('owner')}]: {entry.get('reason')}")

    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entry
    raise SystemExit(main())
