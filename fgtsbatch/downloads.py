from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Callable

from playwright.sync_api import Page, TimeoutError as PWTimeout

from .error_codes import ErrorCode
from .logging_utils import _batch_event
from .utils import ensure_dir, make_unique_path, sanitize_file_part

DEFAULT_EXTENSION = ".pdf"


@dataclass(frozen=True)
class DownloadResult:
    final_path: Path
    suggested_filename: str


class CaptureError(Exception):
    def __init__(self, error_code: str, message: str) -> None:
        super().__init__(message)
        self.error_code = error_code


def extension_for(suggested_filename: str | None) -> str:
    """Return the lowercase extension of ``suggested_filename`` or ``.pdf``."""

    suffix = Path(suggested_filename or "").suffix.lower()
    return suffix or DEFAULT_EXTENSION


def capture_download(
    page: Page,
    trigger: Callable[[], None],
    target_dir: Path,
    preferred_base_name: str,
    *,
    timeout_ms: int,
) -> DownloadResult:
    """Run ``trigger`` while waiting for the download it causes and save it.

    The wait starts before ``trigger`` runs so a fast transfer is not missed.
    Errors raised by ``trigger`` itself propagate unchanged.
    The file lands in ``target_dir`` under the sanitized base name, suffixed
    with ``_N`` when that name is already taken.
    """

    target_dir = ensure_dir(target_dir)

    triggered = False
    try:
        with page.expect_download(timeout=timeout_ms) as download_info:
            trigger()
            triggered = True
        download = download_info.value
    except PWTimeout as exc:
        # A failed click is a step timeout, not a missing download.
        if not triggered:
            raise
        _batch_event(
            "error",
            phase="download",
            target_dir=str(target_dir),
            error_code=ErrorCode.DOWNLOAD_TIMEOUT,
            timeout_ms=timeout_ms,
        )
        raise CaptureError(
            ErrorCode.DOWNLOAD_TIMEOUT,
            f"No download started within {timeout_ms}ms for {preferred_base_name}",
        ) from exc

    suggested = download.suggested_filename or ""
    base_name = sanitize_file_part(preferred_base_name)
    final_path = make_unique_path(target_dir / f"{base_name}{extension_for(suggested)}")

    download.save_as(final_path)
    _batch_event(
        "download",
        phase="saved",
        path=str(final_path),
        suggested=suggested,
    )
    return DownloadResult(final_path=final_path, suggested_filename=suggested)


__all__ = ["DownloadResult", "CaptureError", "capture_download", "extension_for"]
