from __future__ import annotations

import re
from typing import List, Optional

from ..models import Event, ExtractContext, RawDocument
from ..utils import local_instant
from .base import Strategy, _text, make_event, matchup

DATE_RE = re.compile(r"\b(\d{1,2})[./-](\d{1,2})[./-](\d{2,4})\b")
TIME_RE = re.compile(r"\b(\d{1,2}):(\d{2})\b")
NUMERIC_RE = re.compile(r"^[\d\s.,:/-]+$")


def classify_cell(text: str) -> tuple[str, Optional[re.Match]]:
    """Shallow shape of a table cell: ("date"|"time"|"team"|"other", match)."""
    m = DATE_RE.search(text)
    if m:
        return "date", m
    m = TIME_RE.search(text)
    if m:
        return "time", m
    if 3 <= len(text) < 50 and not NUMERIC_RE.match(text):
        return "team", None
    return "other", None


class GenericTableExtractor(Strategy):
    """Last-resort miner for date/time/team rows in any HTML table."""

    name = "table"

    def try_extract(self, doc: RawDocument, ctx: ExtractContext) -> List[Event]:
        tree = self.parse(doc)
        out: List[Event] = []
        rows_seen = 0
        for tr in tree.css("table tr"):
            cells = [_text(td) for td in tr.css("td, th")]
            if len(cells) < 3:
                continue
            rows_seen += 1
            date_m = time_m = None
            teams: list[str] = []
            for text in cells:
                kind, m = classify_cell(text)
                if kind == "date" and date_m is None:
                    date_m = m
                elif kind == "time" and time_m is None:
                    time_m = m
                elif kind == "team" and len(teams) < 2:
                    teams.append(text)
            if date_m is None or len(teams) < 2:
                continue

            day, month, year = (int(g) for g in date_m.groups())
            if year < 100:
                year += 2000
            hour, minute = ctx.default_kickoff
            if time_m is not None:
                hour, minute = int(time_m.group(1)), int(time_m.group(2))
            start = local_instant(year, month, day, hour, minute, ctx.offset_hours)
            ev = make_event(start, matchup(teams[0], teams[1]), ctx, description=f"Source: {ctx.url}")
            if ev is not None:
                out.append(ev)
        self.trace("%d candidate rows, %d events", rows_seen, len(out))
        return out
