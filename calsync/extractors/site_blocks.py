"""Fixtures from club news/schedule pages written in Indonesian prose.

These pages carry no structured data. A fixture is a paragraph (or a run
of paragraphs) holding a long-form date such as ``Jumat, 8 Agustus 2025``
and a line like ``**PERSEBAYA**|FT2:1|**PERSIB**`` or ``Persebaya 19.00
Persib``. When the teams are not in the text near the date, the slugs of
match links (``/match/persebaya-vs-persib-2025-08-08``) are used instead.
"""

from __future__ import annotations

import re
from typing import List, NamedTuple, Optional

from selectolax.parser import HTMLParser, Node

from ..models import Event, ExtractContext, FixtureLinkIndex, RawDocument
from ..normalise import clean_team, club_strength, is_placeholder_team, match_opponent
from ..utils import local_instant
from .base import SiteStrategy, make_event, matchup

ID_MONTHS = {
    "januari": 1,
    "februari": 2,
    "pebruari": 2,
    "maret": 3,
    "april": 4,
    "mei": 5,
    "juni": 6,
    "juli": 7,
    "agustus": 8,
    "september": 9,
    "oktober": 10,
    "november": 11,
    "nopember": 11,
    "desember": 12,
}

LONG_DATE_RE = re.compile(
    r"(?:\b(?:senin|selasa|rabu|kamis|jum'?at|sabtu|minggu|ahad),?\s+)?"
    r"\b(\d{1,2})\s+(" + "|".join(ID_MONTHS) + r")\s+(\d{4})\b",
    re.IGNORECASE,
)

# **HOME**|FT2:1|**AWAY**
PIPE_RE = re.compile(
    r"(?:\*\*)?[ \t]*([^|*\n]{2,40}?)[ \t]*(?:\*\*)?[ \t]*\|[ \t]*([^|\n]{1,15}?)[ \t]*\|"
    r"[ \t]*(?:\*\*)?[ \t]*([^|*\n]{2,40})"
)

_CAP = r"[A-Z][A-Za-z0-9.'&-]*"
_TEAM = rf"{_CAP}(?:[ ]+{_CAP}){{0,3}}"
_MIDDLE = r"(?:FT[ ]?)?\d{1,2}[ ]?[-–:][ ]?\d{1,2}|\d{1,2}\.\d{2}(?:[ ]?WIB)?|[Vv][Ss]\.?|v\.?"
# Home 2-1 Away / Home 19.00 Away / Home vs Away
PLAIN_RE = re.compile(rf"(?<![A-Za-z])({_TEAM})\s+({_MIDDLE})\s+({_TEAM})(?![A-Za-z])")

PIPE_MIDDLE_RE = re.compile(r"^(?:FT\s*)?\d{1,2}\s*[-–:.]\s*\d{1,2}(?:\s*WIB)?$|^(?:vs\.?|v\.?|-)$", re.IGNORECASE)
TIME_TOKEN_RE = re.compile(r"^(\d{1,2})[.:](\d{2})(?:\s*WIB)?$", re.IGNORECASE)
SCORE_TOKEN_RE = re.compile(r"^(?:FT\s*)?(\d{1,2})\s*[-–:]\s*(\d{1,2})$", re.IGNORECASE)
BLOCK_TIME_RE = re.compile(
    r"(?:pukul|jam|kick[- ]?off|KO)\s*:?\s*(\d{1,2})[.:](\d{2})|(\d{1,2})[.:](\d{2})\s*WIB",
    re.IGNORECASE,
)

SLUG_DATE_RE = re.compile(r"(\d{4})-(\d{2})-(\d{2})|(\d{2})-(\d{2})-(\d{4})")

BOLD_TAG_RE = re.compile(r"</?(?:strong|b)(?:\s[^>]*)?>", re.IGNORECASE)
BR_TAG_RE = re.compile(r"<br\s*/?>", re.IGNORECASE)
BLOCK_TAGS = frozenset(
    ("p", "li", "h1", "h2", "h3", "h4", "h5", "h6", "td", "th", "dd", "dt", "blockquote", "pre", "article", "section", "div")
)

WINDOW = 400


class Pair(NamedTuple):
    home: str
    away: str
    middle: str
    pos: int


class LongDate(NamedTuple):
    year: int
    month: int
    day: int
    start: int
    end: int

    @property
    def key(self) -> str:
        return f"{self.year:04d}-{self.month:02d}-{self.day:02d}"


def find_dates(text: str) -> list[LongDate]:
    out = []
    for m in LONG_DATE_RE.finditer(text):
        out.append(LongDate(int(m.group(3)), ID_MONTHS[m.group(2).lower()], int(m.group(1)), m.start(), m.end()))
    return out


def _usable(name: str) -> bool:
    return len(name) >= 2 and any(ch.isalpha() for ch in name) and not is_placeholder_team(name)


def find_pairs(text: str) -> list[Pair]:
    """All TEAM <score-or-time> TEAM candidates in text, in order of position."""
    pairs: list[Pair] = []
    for rx in (PIPE_RE, PLAIN_RE):
        for m in rx.finditer(text):
            home, away, middle = clean_team(m.group(1)), clean_team(m.group(3)), m.group(2).strip()
            if rx is PIPE_RE and not PIPE_MIDDLE_RE.match(middle):
                continue
            if _usable(home) and _usable(away):
                pairs.append(Pair(home, away, middle, m.start()))
    pairs.sort(key=lambda p: p.pos)
    return pairs


def pick_pair(pairs: list[Pair], club: Optional[str]) -> Optional[Pair]:
    """The pair naming the club most closely, earliest first on ties."""
    best, strength = None, 0
    for p in pairs:
        s = club_strength(club, p.home, p.away)
        if s > strength:
            best, strength = p, s
    if best is not None:
        return best
    return pairs[0] if pairs else None


def classify_middle(token: str) -> tuple[Optional[tuple[int, int]], Optional[str]]:
    """Split the token between two team names into (kickoff, score)."""
    token = token.strip()
    if not token.upper().startswith("FT"):
        m = TIME_TOKEN_RE.match(token)
        if m and int(m.group(1)) < 24 and int(m.group(2)) < 60:
            if "." in token or len(m.group(1)) == 2:
                return (int(m.group(1)), int(m.group(2))), None
    m = SCORE_TOKEN_RE.match(token)
    if m:
        return None, f"{m.group(1)}-{m.group(2)}"
    return None, None


def block_time(text: str) -> Optional[tuple[int, int]]:
    m = BLOCK_TIME_RE.search(text)
    if not m:
        return None
    h, mnt = (m.group(1), m.group(2)) if m.group(1) else (m.group(3), m.group(4))
    if int(h) < 24 and int(mnt) < 60:
        return int(h), int(mnt)
    return None


def _has_block_descendant(node: Node) -> bool:
    for child in node.iter(include_text=False):
        if child.tag in BLOCK_TAGS or _has_block_descendant(child):
            return True
    return False


def _clean_lines(text: str) -> str:
    lines = (re.sub(r"[ \t\xa0]+", " ", ln).strip() for ln in text.splitlines())
    return "\n".join(ln for ln in lines if ln)


def _collect(node: Node, blocks: list[str]) -> None:
    # Inline content sitting between block children becomes a block of its own.
    run: list[str] = []

    def flush() -> None:
        text = _clean_lines("\n".join(run))
        if text:
            blocks.append(text)
        run.clear()

    for child in node.iter(include_text=True):
        if child.tag == "_comment":
            continue
        if child.tag == "-text":
            run.append(child.text_content or "")
            continue
        nested = _has_block_descendant(child)
        if child.tag in BLOCK_TAGS and not nested:
            flush()
            text = _clean_lines(child.text(separator="\n"))
            if text:
                blocks.append(text)
        elif nested:
            flush()
            _collect(child, blocks)
        else:
            run.append(child.text(separator="\n"))
    flush()


def split_blocks(markup: str) -> list[str]:
    """Paragraph-like text blocks in document order.

    Bold markup is kept as ``**`` so pipe-delimited score lines survive.
    Text placed directly in a container next to block children is kept as
    its own block. Markup without block elements is split on blank lines.
    """
    markup = BR_TAG_RE.sub("\n", BOLD_TAG_RE.sub("**", markup))
    tree = HTMLParser(markup)
    tree.strip_tags(["script", "style", "noscript", "template"])
    blocks: list[str] = []
    root = tree.body or tree.root
    if root is None:
        return blocks
    if _has_block_descendant(root):
        _collect(root, blocks)
    if not blocks:
        raw = root.text(separator="\n")
        for chunk in re.split(r"\n\s*\n", raw):
            text = _clean_lines(chunk)
            if text:
                blocks.append(text)
    return blocks


def _slug_team(part: str) -> str:
    return " ".join(w.capitalize() for w in part.split("-") if w)


def build_link_index(tree: HTMLParser, club: Optional[str] = None) -> FixtureLinkIndex:
    """Map YYYY-MM-DD -> (home, away) from links like /match/home-vs-away-2025-08-08."""
    index: FixtureLinkIndex = {}
    for a in tree.css("a[href]"):
        href = (a.attributes.get("href") or "").lower().split("?")[0].split("#")[0]
        if "-vs-" not in href:
            continue
        slug = next((seg for seg in reversed(href.split("/")) if "-vs-" in seg), "")
        m = SLUG_DATE_RE.search(slug)
        if not m:
            continue
        if m.group(1):
            key = f"{m.group(1)}-{m.group(2)}-{m.group(3)}"
        else:
            key = f"{m.group(6)}-{m.group(5)}-{m.group(4)}"
        rest = (slug[: m.start()] + slug[m.end():]).strip("-")
        sides = rest.split("-vs-", 1)
        if len(sides) != 2:
            continue
        home, away = _slug_team(sides[0]), _slug_team(sides[1])
        if not (_usable(home) and _usable(away)):
            continue
        prev = index.get(key)
        if prev is None or club_strength(club, home, away) > club_strength(club, *prev):
            index[key] = (home, away)
    return index


class LocalizedBlockExtractor(SiteStrategy):
    name = "localized_blocks"

    def needs_followup(self, doc: RawDocument) -> bool:
        return self.paginate and not find_dates("\n\n".join(split_blocks(doc.text)))

    def followup_url(self, url: str) -> Optional[str]:
        return f"{url.rstrip('/')}/page-1" if self.paginate else None

    def try_extract(self, doc: RawDocument, ctx: ExtractContext) -> List[Event]:
        blocks = split_blocks(doc.text)
        full_text = "\n\n".join(blocks)
        all_dates = find_dates(full_text)
        links = build_link_index(self.parse(doc), ctx.club_name)
        self.trace("%d blocks, %d dates, %d fixture links", len(blocks), len(all_dates), len(links))

        out: List[Event] = []
        seen: set[tuple[str, str]] = set()
        for block in blocks:
            dates = find_dates(block)
            for i, d in enumerate(dates):
                if len(dates) == 1:
                    segment = block
                else:
                    nxt = dates[i + 1].start if i + 1 < len(dates) else len(block)
                    segment = block[d.end:nxt]
                ev = self._event_for(d, segment, full_text, all_dates, links, ctx)
                if ev is None:
                    continue
                key = (ev.start.isoformat(), ev.summary)
                if key in seen:
                    continue
                seen.add(key)
                out.append(ev)
        self.trace("%d events", len(out))
        return out

    def _event_for(
        self,
        d: LongDate,
        segment: str,
        full_text: str,
        all_dates: list[LongDate],
        links: FixtureLinkIndex,
        ctx: ExtractContext,
    ) -> Optional[Event]:
        club = ctx.club_name
        kickoff = None
        score = None
        pair = pick_pair(find_pairs(segment), club)
        if pair is not None:
            home, away = pair.home, pair.away
            kickoff, score = classify_middle(pair.middle)
        elif d.key in links:
            home, away = links[d.key]
        else:
            found = self._from_windows(d, full_text, all_dates, club)
            if found is None:
                return None
            pair, window = found
            home, away = pair.home, pair.away
            kickoff, score = classify_middle(pair.middle)
            kickoff = kickoff or block_time(window)

        kickoff = kickoff or block_time(segment) or ctx.default_kickoff
        start = local_instant(d.year, d.month, d.day, kickoff[0], kickoff[1], ctx.offset_hours)
        lines = []
        if score:
            lines.append(f"Result: {score}")
        lines.append(f"Source: {ctx.url}")
        return make_event(start, matchup(home, away), ctx, description="\n".join(lines))

    def _from_windows(
        self, d: LongDate, full_text: str, all_dates: list[LongDate], club: Optional[str]
    ) -> Optional[tuple[Pair, str]]:
        for i, occ in enumerate(all_dates):
            if occ.key != d.key:
                continue
            limit = occ.end + WINDOW
            if i + 1 < len(all_dates):
                limit = min(limit, all_dates[i + 1].start)
            window = full_text[occ.end:limit]
            # only pairs where the club is clearly one side
            candidates = [p for p in find_pairs(window) if match_opponent(club, p.home, p.away)]
            pair = pick_pair(candidates, club)
            if pair is not None:
                return pair, window
        return None
