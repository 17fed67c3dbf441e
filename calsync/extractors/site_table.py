from __future__ import annotations

import re
from typing import List, Optional

from ..models import Event, ExtractContext, RawDocument
from ..normalise import name_matches
from ..utils import local_instant
from .base import SiteStrategy, _text, make_event, matchup

ID_MONTH_ABBR = {
    "jan": 1,
    "feb": 2,
    "mar": 3,
    "apr": 4,
    "mei": 5,
    "jun": 6,
    "jul": 7,
    "agus": 8,
    "agt": 8,
    "agu": 8,
    "ags": 8,
    "sept": 9,
    "sep": 9,
    "okt": 10,
    "nov": 11,
    "des": 12,
}

ABBR_DATE_RE = re.compile(
    r"(?:\b(?:sen|sel|rab|kam|jum|sab|min)\.?,?\s+)?"
    r"\b(\d{1,2})\s+(" + "|".join(ID_MONTH_ABBR) + r")\.?\s+(\d{4})\b",
    re.IGNORECASE,
)
DOT_TIME_RE = re.compile(r"^\s*(\d{1,2})\.(\d{2})\s*(?:WIB)?\s*$", re.IGNORECASE)
CLUB_PROFILE_RE = re.compile(r"/(?:club|klub|verein|team|tim)/", re.IGNORECASE)
RANK_RE = re.compile(r"\s*\(\s*\d+\.?\s*\)\s*$")

DATE_HEADERS = ("date", "tanggal", "tgl")
OPPONENT_HEADERS = ("opponent", "lawan")
VENUE_HEADERS = ("stadium", "stadion", "tempat", "ground")
HOME_MARKERS = ("h", "kandang", "home")
AWAY_MARKERS = ("a", "tandang", "away")


def header_cells(table) -> list[str]:
    ths = table.css("thead th") or table.css("tr th")
    if ths:
        return [_text(th).lower() for th in ths]
    first = table.css_first("tr")
    return [_text(td).lower() for td in first.css("td")] if first else []


def is_fixture_table(headers: list[str]) -> bool:
    joined = " ".join(headers)
    return any(h in joined for h in DATE_HEADERS) and any(h in joined for h in OPPONENT_HEADERS)


def strip_rank(name: str) -> str:
    return RANK_RE.sub("", name).strip()


def opponent_from_row(row, club: Optional[str]) -> str:
    for a in row.css("a[href]"):
        href = a.attributes.get("href") or ""
        if not CLUB_PROFILE_RE.search(href):
            continue
        name = strip_rank(_text(a) or (a.attributes.get("title") or ""))
        if not name:
            continue
        if club and name_matches(club, name) > 0:
            continue
        return name
    return ""


def parse_abbr_date(text: str) -> Optional[tuple[int, int, int]]:
    m = ABBR_DATE_RE.search(text)
    if not m:
        return None
    return int(m.group(3)), ID_MONTH_ABBR[m.group(2).lower()], int(m.group(1))


class AbbreviatedTableExtractor(SiteStrategy):
    """Club schedule tables: ``Jum 8 Agt 2025 | 19.00 | <a href="/.../verein/..">Persib Bandung (3.)</a>``."""

    name = "abbreviated_table"

    def try_extract(self, doc: RawDocument, ctx: ExtractContext) -> List[Event]:
        tree = self.parse(doc)
        out: List[Event] = []
        tables = 0
        for table in tree.css("table"):
            headers = header_cells(table)
            if not is_fixture_table(headers):
                continue
            tables += 1
            venue_idx = next((i for i, h in enumerate(headers) if any(v in h for v in VENUE_HEADERS)), None)
            for tr in table.css("tr"):
                tds = tr.css("td")
                if not tds:
                    continue
                cells = [_text(td) for td in tds]
                ev = self._row_event(tr, cells, venue_idx, ctx)
                if ev is not None:
                    out.append(ev)
        self.trace("%d fixture tables, %d events", tables, len(out))
        return out

    def _row_event(self, tr, cells: list[str], venue_idx: Optional[int], ctx: ExtractContext) -> Optional[Event]:
        ymd = None
        kickoff = None
        side = None
        for text in cells:
            if ymd is None:
                ymd = parse_abbr_date(text)
                if ymd is not None:
                    continue
            m = DOT_TIME_RE.match(text)
            if kickoff is None and m and int(m.group(1)) < 24 and int(m.group(2)) < 60:
                kickoff = (int(m.group(1)), int(m.group(2)))
                continue
            marker = text.strip().lower()
            if side is None and marker in HOME_MARKERS:
                side = "home"
            elif side is None and marker in AWAY_MARKERS:
                side = "away"
        if ymd is None:
            return None
        opponent = opponent_from_row(tr, ctx.club_name)
        if not opponent:
            return None

        hour, minute = kickoff or ctx.default_kickoff
        start = local_instant(ymd[0], ymd[1], ymd[2], hour, minute, ctx.offset_hours)
        club = ctx.club_name
        if not club:
            summary = f"vs {opponent}"
        elif side == "away":
            summary = matchup(opponent, club)
        else:
            summary = matchup(club, opponent)
        location = ""
        if venue_idx is not None and venue_idx < len(cells):
            location = cells[venue_idx]
        return make_event(start, summary, ctx, description=f"Source: {ctx.url}", location=location)
