"""Ayyamul Bidh: the 13th, 14th and 15th of every Hijri month.

Dates come from the Umm al-Qura tables in ``hijridate``; no network.
"""

from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Iterable, List

from hijridate import Gregorian, Hijri
from pydantic import ValidationError

from .models import Event
from .utils import WIB_OFFSET_HOURS, local_midnight

log = logging.getLogger(__name__)

HIJRI_MONTHS = [
    "Muharram",
    "Safar",
    "Rabiul Awal",
    "Rabiul Akhir",
    "Jumadil Awal",
    "Jumadil Akhir",
    "Rajab",
    "Sya'ban",
    "Ramadhan",
    "Syawal",
    "Dzulqa'dah",
    "Dzulhijjah",
]

OBSERVANCE_DAYS = (13, 14, 15)


def hijri_label(year: int, month: int, day: int) -> str:
    return f"Ayyamul Bidh – {day} {HIJRI_MONTHS[month - 1]} {year} H"


def generate_ayyamul_bidh(
    today: date,
    years: int = 3,
    days: Iterable[int] = OBSERVANCE_DAYS,
    offset_hours: int = WIB_OFFSET_HOURS,
    debug: bool = False,
) -> List[Event]:
    current = Gregorian(today.year, today.month, today.day).to_hijri()
    days = tuple(days)
    seen: set[date] = set()
    out: List[Event] = []
    skipped = 0
    for year in range(current.year, current.year + years):
        for month in range(1, 13):
            for day in days:
                try:
                    g = Hijri(year, month, day).to_gregorian()
                except (ValueError, OverflowError):
                    skipped += 1
                    continue
                gdate = date(g.year, g.month, g.day)
                if gdate in seen:
                    continue
                seen.add(gdate)
                start = local_midnight(gdate, offset_hours)
                try:
                    out.append(
                        Event(
                            start=start,
                            end=start + timedelta(days=1),
                            all_day=True,
                            summary=hijri_label(year, month, day),
                            description=f"Puasa sunnah Ayyamul Bidh, {day} {HIJRI_MONTHS[month - 1]} {year} H",
                        )
                    )
                except ValidationError:
                    skipped += 1
    if debug:
        log.info("lunar: hijri year %d, %d dates, %d skipped", current.year, len(out), skipped)
    return out
