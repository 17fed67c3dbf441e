from __future__ import annotations

import re
import unicodedata
from typing import Optional


_NON_ALNUM_RE = re.compile(r"[^a-z0-9\s]+")
_WS_RE = re.compile(r"\s+")
_PLACEHOLDER_RE = re.compile(r"(^|\b)(tbd|tba|tbc|bye|unknown|to be (confirmed|decided))($|\b)", re.I)


def strip_diacritics(s: str) -> str:
    return unicodedata.normalize("NFD", s).encode("ascii", "ignore").decode("ascii")


def norm_text(s: str) -> str:
    s = s.lower()
    s = strip_diacritics(s)
    s = _NON_ALNUM_RE.sub(" ", s)
    s = _WS_RE.sub(" ", s).strip()
    return s


def clean_team(s: str) -> str:
    """Trim markup leftovers (bold asterisks, pipes, stray punctuation) off a team name."""
    s = s.replace("*", " ").replace("|", " ")
    s = _WS_RE.sub(" ", s)
    return s.strip(" -–—:,.;")


def normalize_name(s: Optional[str]) -> str:
    """Comparison key for a team name: lowercased, ascii, no spaces or punctuation."""
    if not s:
        return ""
    return norm_text(clean_team(s)).replace(" ", "")


def is_placeholder_team(name: str) -> bool:
    if not name or not name.strip():
        return True
    return bool(_PLACEHOLDER_RE.search(name.strip()))


def name_matches(club: str, candidate: str) -> int:
    """Strength of a club/candidate match: 3 exact, 2 superstring, 1 substring, 0 none."""
    c = normalize_name(club)
    n = normalize_name(candidate)
    if not c or not n:
        return 0
    if c == n:
        return 3
    if c in n:
        return 2
    if n in c:
        return 1
    return 0


def club_strength(club: Optional[str], home: str, away: str) -> int:
    """Strongest match of the club against either side of a pair."""
    if not club:
        return 0
    return max(name_matches(club, home), name_matches(club, away))


def match_opponent(club: Optional[str], home: str, away: str) -> Optional[str]:
    """Return the side of home/away that is not the club, or None.

    The side matching the club more strongly is taken as the club; a pair
    where neither side matches gives None, as does a pair where both sides
    match equally.
    """
    if not club:
        return None
    h = name_matches(club, home)
    a = name_matches(club, away)
    if h == a:
        return None
    return away if h > a else home
