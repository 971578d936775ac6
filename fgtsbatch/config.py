"""Configuration for the FGTS guide batch downloader."""
from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Mapping, Optional

DEFAULT_CDP_URL: str = "http://127.0.0.1:9222"
DEFAULT_SPREADSHEET_KEYWORD: str = "Relação folha de pagamento unificada"
DEFAULT_ACTION_TIMEOUT_MS: int = 10_000
DEFAULT_OUTPUT_BASE_DIR: str = r"C:\Dpto. Pessoal\Trabalhista & Previdenciario\TEMP\FGTS"
DEFAULT_MAX_ATTEMPTS: int = 2

# Interval between polls of the profile modal (milliseconds).
POLL_INTERVAL_MS: int = 200
# Profile typed into the "Trocar Perfil" combobox.
ROLE_VALUE: str = "Procurador"

RUNS_SUBDIR: str = "runs"
EXPORTS_SUBDIR: str = "exports"


def _parse_int(raw: Optional[str], default: int, *, minimum: int = 1) -> int:
    """Parse an integer setting, falling back to ``default`` when malformed."""

    try:
        value = int(str(raw).strip()) if raw is not None else default
    except ValueError:
        return default
    return max(minimum, value)


@dataclass(frozen=True)
class RunConfig:
    """Settings for one batch run.

    Built once at startup (``from_env`` plus CLI overrides) and handed to the
    batch driver and its collaborators.
    """

    cdp_url: str = DEFAULT_CDP_URL
    spreadsheet_keyword: str = DEFAULT_SPREADSHEET_KEYWORD
    spreadsheet_dir: Path = Path(".")
    action_timeout_ms: int = DEFAULT_ACTION_TIMEOUT_MS
    output_base_dir: Path = Path(DEFAULT_OUTPUT_BASE_DIR)
    log_dir: Path = Path("logs")
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    poll_interval_ms: int = POLL_INTERVAL_MS
    role_value: str = ROLE_VALUE

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "RunConfig":
        env = os.environ if environ is None else environ

        spreadsheet_dir = Path(env.get("SPREADSHEET_DIR") or Path.cwd())
        log_dir_raw = env.get("FGTS_LOG_DIR")
        log_dir = Path(log_dir_raw) if log_dir_raw else spreadsheet_dir / "logs"

        return cls(
            cdp_url=(env.get("CDP_URL") or DEFAULT_CDP_URL).strip(),
            spreadsheet_keyword=env.get("EXCEL_KEYWORD") or DEFAULT_SPREADSHEET_KEYWORD,
            spreadsheet_dir=spreadsheet_dir,
            action_timeout_ms=_parse_int(
                env.get("ACTION_TIMEOUT_MS"), DEFAULT_ACTION_TIMEOUT_MS
            ),
            output_base_dir=Path(env.get("FGTS_OUTPUT_DIR") or DEFAULT_OUTPUT_BASE_DIR),
            log_dir=log_dir,
            max_attempts=_parse_int(env.get("FGTS_MAX_ATTEMPTS"), DEFAULT_MAX_ATTEMPTS),
        )

    def with_overrides(self, **overrides) -> "RunConfig":
        """Return a copy with every non-``None`` override applied."""

        changes = {key: value for key, value in overrides.items() if value is not None}
        for key in ("spreadsheet_dir", "output_base_dir", "log_dir"):
            if key in changes:
                changes[key] = Path(changes[key])
        return replace(self, **changes)

    @property
    def runs_dir(self) -> Path:
        return self.log_dir / RUNS_SUBDIR

    @property
    def exports_dir(self) -> Path:
        return self.log_dir / EXPORTS_SUBDIR


__all__ = [
    "RunConfig",
    "DEFAULT_CDP_URL",
    "DEFAULT_SPREADSHEET_KEYWORD",
    "DEFAULT_ACTION_TIMEOUT_MS",
    "DEFAULT_OUTPUT_BASE_DIR",
    "DEFAULT_MAX_ATTEMPTS",
    "POLL_INTERVAL_MS",
    "ROLE_VALUE",
]
