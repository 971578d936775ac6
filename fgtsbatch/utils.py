from __future__ import annotations

import logging
import re
import sys
import unicodedata
from datetime import datetime
from pathlib import Path
from typing import Optional

LOGGER = logging.getLogger("fgtsbatch")
_LOGGER_INITIALISED = False

FILE_PART_MAX_LENGTH = 140
FILE_PART_PLACEHOLDER = "sem_nome"

_ILLEGAL_FILE_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1F]')


def _configure_logger(log_path: Optional[Path], *, level: int = logging.INFO) -> None:
    """Configure the shared logger for stdout and, optionally, ``log_path``."""

    global _LOGGER_INITIALISED

    for handler in list(LOGGER.handlers):
        LOGGER.removeHandler(handler)
        try:
            handler.close()
        except Exception:  # noqa: BLE001
            continue

    formatter = logging.Formatter(
        fmt="[%(asctime)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    stream_handler = logging.StreamHandler(sys.stdout)
    stream_handler.setFormatter(formatter)
    LOGGER.addHandler(stream_handler)

    if log_path is not None:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setFormatter(formatter)
        LOGGER.addHandler(file_handler)

    LOGGER.setLevel(level)
    LOGGER.propagate = False

    _LOGGER_INITIALISED = True


def _ensure_logger() -> None:
    """Initialise a stdout-only logger lazily."""

    if _LOGGER_INITIALISED:
        return
    _configure_logger(None)


def setup_run_logger(log_dir: Path, *, verbose: bool = False) -> Path:
    """Rotate to a fresh timestamped log file for the current run."""

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_path = Path(log_dir) / f"batch_{timestamp}.log"
    _configure_logger(log_path, level=logging.DEBUG if verbose else logging.INFO)
    LOGGER.info("Logging to %s", log_path)
    return log_path


def log_line(message: str) -> None:
    """Write a timestamped log line to stdout and the active log file."""

    _ensure_logger()
    LOGGER.info(message)


def log_debug(message: str) -> None:
    _ensure_logger()
    LOGGER.debug(message)


def normalize_text(value: object) -> str:
    """Lowercase ``value`` and strip accents and surrounding whitespace."""

    if value is None:
        return ""
    decomposed = unicodedata.normalize("NFD", str(value))
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return stripped.lower().strip()


def only_digits(value: object) -> str:
    return re.sub(r"\D", "", str(value or ""))


def sanitize_file_part(value: object) -> str:
    """Return a filesystem-safe token derived from ``value``.

    Illegal characters become underscores, runs of whitespace and underscores
    collapse to one underscore, and the result never starts or ends with an
    underscore. Applying it twice gives the same result as applying it once.
    """

    text = "" if value is None else str(value)
    cleaned = _ILLEGAL_FILE_CHARS.sub("_", text)
    cleaned = re.sub(r"\s+", "_", cleaned)
    cleaned = re.sub(r"_+", "_", cleaned)
    cleaned = cleaned.strip("_")
    cleaned = cleaned[:FILE_PART_MAX_LENGTH].strip("_")
    return cleaned or FILE_PART_PLACEHOLDER


def make_unique_path(path: Path) -> Path:
    """Return ``path`` or the first free ``stem_N`` sibling of it."""

    path = Path(path)
    candidate = path
    attempt = 0
    while candidate.exists():
        attempt += 1
        candidate = path.with_name(f"{path.stem}_{attempt}{path.suffix}")
    return candidate


def ensure_dir(path: Path) -> Path:
    path = Path(path)
    path.mkdir(parents=True, exist_ok=True)
    return path


__all__ = [
    "LOGGER",
    "setup_run_logger",
    "log_line",
    "log_debug",
    "normalize_text",
    "only_digits",
    "sanitize_file_part",
    "make_unique_path",
    "ensure_dir",
    "FILE_PART_MAX_LENGTH",
    "FILE_PART_PLACEHOLDER",
]
