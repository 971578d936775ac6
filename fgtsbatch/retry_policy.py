from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Optional

from .logging_utils import _batch_event
from .utils import log_line


@dataclass(frozen=True)
class AttemptOutcome:
    ok: bool
    attempts: int
    error: Optional[BaseException] = None
    value: Any = None

    @property
    def reason(self) -> Optional[str]:
        return str(self.error) if self.error is not None else None


def attempt_with_reset(
    action: Callable[[int], Any],
    *,
    max_attempts: int,
    reset: Callable[[], None],
    label: str = "",
) -> AttemptOutcome:
    """Call ``action(attempt)`` until it succeeds or ``max_attempts`` runs out.

    ``reset`` runs between attempts and never after the last one. Every
    failure is retried the same way; there is no backoff and no distinction
    between transient and permanent errors.
    """

    effective_attempts = max(1, max_attempts)
    last_error: Optional[BaseException] = None

    for attempt in range(1, effective_attempts + 1):
        try:
            log_line(f"Attempt {attempt}/{effective_attempts} for {label}")
            value = action(attempt)
            return AttemptOutcome(ok=True, attempts=attempt, value=value)
        except Exception as exc:  # noqa: BLE001
            last_error = exc
            will_retry = attempt < effective_attempts
            log_line(f"Attempt {attempt}/{effective_attempts} failed for {label}: {exc}")
            _batch_event(
                "state",
                phase="retry_decision",
                target=label,
                attempt=attempt,
                max_attempts=effective_attempts,
                error_code=getattr(exc, "error_code", None),
                will_retry=will_retry,
            )
            if will_retry:
                reset()

    return AttemptOutcome(ok=False, attempts=effective_attempts, error=last_error)


__all__ = ["AttemptOutcome", "attempt_with_reset"]
