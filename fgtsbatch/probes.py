from __future__ import annotations

from enum import Enum

from playwright.sync_api import Error as PWError, Locator


class Probe(str, Enum):
    VISIBLE = "visible"
    HIDDEN = "hidden"
    ABSENT = "absent"


def probe(locator: Locator) -> Probe:
    """Classify ``locator`` without waiting.

    Browser errors (detached frames, navigation in flight) count as absent.
    """

    try:
        if locator.count() == 0:
            return Probe.ABSENT
        return Probe.VISIBLE if locator.is_visible() else Probe.HIDDEN
    except PWError:
        return Probe.ABSENT


def is_ready(locator: Locator) -> bool:
    """Return ``True`` only when ``locator`` is present and visible."""

    return probe(locator) is Probe.VISIBLE


__all__ = ["Probe", "probe", "is_ready"]
