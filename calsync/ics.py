from __future__ import annotations

import hashlib
import logging
from datetime import date, datetime, timedelta, timezone
from typing import Iterable, List, Optional

from icalendar import Calendar
from icalendar import Event as VEvent
from pydantic import ValidationError

from .fetch import Retriever
from .models import Event, SourceDescriptor
from .utils import WIB_OFFSET_HOURS, local_midnight, now_utc

log = logging.getLogger(__name__)

PRODID = "-//calsync//Calendar-Sync 1.0//EN"


def event_uid(ev: Event) -> str:
    digest = hashlib.sha1(f"{ev.start.isoformat()}|{ev.summary}".encode("utf-8")).hexdigest()[:20]
    return f"{digest}@calsync"


def build_ics(feed_id: str, name: Optional[str], events: Iterable[Event], stamp: Optional[datetime] = None) -> bytes:
    title = name or feed_id
    stamp = stamp or now_utc()
    cal = Calendar()
    cal.add("prodid", PRODID)
    cal.add("version", "2.0")
    cal.add("calscale", "GREGORIAN")
    cal.add("x-wr-calname", title)
    cal.add("x-wr-caldesc", f"Calendar feed: {title}")
    for ev in events:
        item = VEvent()
        item.add("uid", event_uid(ev))
        item.add("dtstamp", stamp.astimezone(timezone.utc))
        if ev.all_day:
            item.add("dtstart", ev.start.date())
            item.add("dtend", ev.end.date())
        else:
            item.add("dtstart", ev.start.astimezone(timezone.utc))
            item.add("dtend", ev.end.astimezone(timezone.utc))
        item.add("summary", ev.summary)
        item.add("description", ev.description or "")
        item.add("location", ev.location or "")
        cal.add_component(item)
    return cal.to_ical()


def proxy_ics(retriever: Retriever, source: Optional[SourceDescriptor]) -> Optional[bytes]:
    """Fetch an external .ics unchanged; None when it cannot be fetched."""
    url = source.url if source else None
    if not url:
        return None
    body = retriever.fetch_text(url)
    return body.encode("utf-8") if body is not None else None


def _as_instant(value, offset_hours: int) -> datetime:
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone(timedelta(hours=offset_hours)))
        return value
    return local_midnight(value, offset_hours)


def events_from_ics(raw: str | bytes, offset_hours: int = WIB_OFFSET_HOURS) -> List[Event]:
    try:
        cal = Calendar.from_ical(raw)
    except Exception as e:
        log.warning("unreadable calendar: %s", e)
        return []
    out: List[Event] = []
    for component in cal.walk():
        if component.name != "VEVENT":
            continue
        prop = component.get("dtstart")
        if prop is None:
            continue
        dtstart = prop.dt
        all_day = isinstance(dtstart, date) and not isinstance(dtstart, datetime)
        start = _as_instant(dtstart, offset_hours)
        end_prop = component.get("dtend")
        duration = component.get("duration")
        if end_prop is not None:
            end = _as_instant(end_prop.dt, offset_hours)
        elif duration is not None:
            end = start + duration.dt
        else:
            end = start + timedelta(days=1) if all_day else start
        try:
            out.append(
                Event(
                    start=start,
                    end=end,
                    all_day=all_day,
                    summary=str(component.get("summary", "")),
                    description=str(component.get("description", "")),
                    location=str(component.get("location", "")),
                )
            )
        except ValidationError:
            continue
    return out
