from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone
from typing import Any, Iterable, List, Optional

from dateutil import parser as dtparser

from ..models import Event, ExtractContext, RawDocument
from .base import Strategy, make_event

EVENT_TYPES = ("Event", "SportsEvent")


def _types(blk: dict[str, Any]) -> list[str]:
    t = blk.get("@type")
    if isinstance(t, str):
        return [t]
    if isinstance(t, list):
        return [x for x in t if isinstance(x, str)]
    return []


def _iter_items(data: Any) -> Iterable[dict[str, Any]]:
    if isinstance(data, dict):
        graph = data.get("@graph")
        if isinstance(graph, list):
            yield from _iter_items(graph)
        else:
            yield data
    elif isinstance(data, list):
        for item in data:
            if isinstance(item, dict):
                yield from _iter_items(item)


def _parse_instant(value: Any, offset_hours: int) -> Optional[datetime]:
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        dt = dtparser.parse(value)
    except (ValueError, OverflowError):
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone(timedelta(hours=offset_hours)))
    return dt


def _location(loc: Any) -> str:
    if isinstance(loc, str):
        return loc.strip()
    if isinstance(loc, dict):
        name = loc.get("name")
        if isinstance(name, str) and name.strip():
            return name.strip()
        address = loc.get("address")
        if isinstance(address, str):
            return address.strip()
    return ""


class StructuredDataExtractor(Strategy):
    """Events from embedded JSON-LD ``Event``/``SportsEvent`` blocks."""

    name = "structured"

    def try_extract(self, doc: RawDocument, ctx: ExtractContext) -> List[Event]:
        tree = self.parse(doc)
        out: List[Event] = []
        blocks = tree.css('script[type="application/ld+json"]')
        for script in blocks:
            try:
                data = json.loads(script.text())
            except ValueError:
                continue
            for blk in _iter_items(data):
                if not any(t in EVENT_TYPES for t in _types(blk)):
                    continue
                start = _parse_instant(blk.get("startDate"), ctx.offset_hours)
                if start is None:
                    continue
                end = _parse_instant(blk.get("endDate"), ctx.offset_hours)
                title = blk.get("name")
                description = blk.get("description")
                ev = make_event(
                    start,
                    title if isinstance(title, str) else "",
                    ctx,
                    end=end,
                    description=description.strip() if isinstance(description, str) else "",
                    location=_location(blk.get("location")),
                )
                if ev is not None:
                    out.append(ev)
        self.trace("%d ld+json blocks, %d events", len(blocks), len(out))
        return out
