from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Optional

MONTH_NAMES = {
    "01": "janeiro",
    "02": "fevereiro",
    "03": "marco",
    "04": "abril",
    "05": "maio",
    "06": "junho",
    "07": "julho",
    "08": "agosto",
    "09": "setembro",
    "10": "outubro",
    "11": "novembro",
    "12": "dezembro",
}


@dataclass(frozen=True)
class PeriodInfo:
    """The competency month a whole run works against."""

    year: str
    month: str
    month_label: str
    period_code: str
    sheet_key: str
    log_date_stamp: str


def period_for(year: int, month: int) -> PeriodInfo:
    """Return the ``PeriodInfo`` for ``month``/``year``."""

    if not 1 <= month <= 12:
        raise ValueError(f"month out of range: {month}")

    first_of_next = date(year + (month == 12), month % 12 + 1, 1)
    last_day = first_of_next - timedelta(days=1)
    mm = f"{month:02d}"
    yyyy = f"{year:04d}"
    return PeriodInfo(
        year=yyyy,
        month=mm,
        month_label=MONTH_NAMES[mm],
        period_code=f"{mm}/{yyyy}",
        sheet_key=f"{mm}.{yyyy}",
        log_date_stamp=last_day.strftime("%Y%m%d"),
    )


def previous_month_period(now: Optional[datetime] = None) -> PeriodInfo:
    """Return the period for the calendar month preceding ``now``."""

    current = now or datetime.now()
    last_of_previous = current.date().replace(day=1) - timedelta(days=1)
    return period_for(last_of_previous.year, last_of_previous.month)


__all__ = ["PeriodInfo", "MONTH_NAMES", "period_for", "previous_month_period"]
