from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any

from .utils import log_line

EVENT_VALUE_MAX_LENGTH = 300


def _render(value: Any) -> str:
    if isinstance(value, Enum):
        value = value.value
    elif isinstance(value, Path):
        value = str(value)
    text = repr(value)
    if len(text) > EVENT_VALUE_MAX_LENGTH:
        text = text[: EVENT_VALUE_MAX_LENGTH - 3] + "..."
    return text


def _batch_event(label: str = "", *, phase: str | None = None, **fields: Any) -> None:
    """Write one ``[BATCH][LABEL] key=value, ...`` line.

    Called with only ``phase``, the phase becomes the label; with both, the
    phase goes into the payload. Fields are sorted by key, enum members are
    written by value and long values are cut short.
    """

    try:
        tag = (label or phase or "event").upper()
        if label and phase:
            fields.setdefault("phase", phase)
        payload = ", ".join(f"{key}={_render(value)}" for key, value in sorted(fields.items()))
        log_line(f"[BATCH][{tag}] {payload}")
    except Exception:  # noqa: BLE001
        return


__all__ = ["_batch_event"]
