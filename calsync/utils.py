from __future__ import annotations

import os
import pathlib
import re
from datetime import date, datetime, timedelta, timezone
from typing import Optional

import orjson

WIB_OFFSET_HOURS = 7


def ensure_dir(p: str | pathlib.Path) -> None:
    pathlib.Path(p).mkdir(parents=True, exist_ok=True)


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def dumps(data) -> bytes:
    return orjson.dumps(data, option=orjson.OPT_INDENT_2 | orjson.OPT_SORT_KEYS)


def read_env(name: str, default: str | None = None) -> str | None:
    return os.environ.get(name, default)


def env_flag(name: str) -> bool:
    return (read_env(name) or "").strip().lower() in ("1", "true", "yes", "on")


def offset_suffix(hours: int) -> str:
    sign = "+" if hours >= 0 else "-"
    return f"{sign}{abs(hours):02d}:00"


def local_instant(
    year: int, month: int, day: int, hour: int = 0, minute: int = 0, offset_hours: int = WIB_OFFSET_HOURS
) -> Optional[datetime]:
    """Build an aware datetime from an offset-qualified ISO string.

    The runtime's local timezone never takes part. Returns None when the
    components do not form a real calendar date or clock time.
    """
    stamp = f"{year:04d}-{month:02d}-{day:02d}T{hour:02d}:{minute:02d}:00{offset_suffix(offset_hours)}"
    try:
        return datetime.fromisoformat(stamp)
    except ValueError:
        return None


def local_midnight(day: date, offset_hours: int = WIB_OFFSET_HOURS) -> datetime:
    return datetime(day.year, day.month, day.day, tzinfo=timezone(timedelta(hours=offset_hours)))


def parse_hhmm(value: str, default: tuple[int, int]) -> tuple[int, int]:
    m = re.search(r"(\d{1,2})[:\.](\d{2})", value or "")
    if m:
        h = int(m.group(1))
        mnt = int(m.group(2))
        if h < 24 and mnt < 60:
            return h, mnt
    return default


def as_aware(value: datetime) -> datetime:
    """Naive datetimes are taken to be UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
