from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Iterable, List, Optional
from urllib.parse import urlparse

from pydantic import ValidationError
from selectolax.parser import HTMLParser

from ..models import Event, ExtractContext, RawDocument

log = logging.getLogger(__name__)


def _text(el) -> str:
    return el.text(strip=True) if hasattr(el, "text") else str(el)


def host_of(url: str) -> str:
    try:
        return (urlparse(url).hostname or "").lower()
    except ValueError:
        return ""


def host_matches(url: str, domains: Iterable[str]) -> bool:
    host = host_of(url)
    if not host:
        return False
    bare = host[4:] if host.startswith("www.") else host
    for d in domains:
        d = d.lower()
        if host == d or bare == d:
            return True
    return False


def make_event(
    start: Optional[datetime],
    summary: str,
    ctx: ExtractContext,
    end: Optional[datetime] = None,
    description: str = "",
    location: str = "",
) -> Optional[Event]:
    """Build a timed event, or None when the candidate is unusable."""
    if start is None or not summary.strip():
        return None
    if end is None or end < start:
        end = start + timedelta(hours=ctx.duration_hours)
    try:
        return Event(
            start=start,
            end=end,
            all_day=False,
            summary=summary.strip(),
            description=description,
            location=location,
        )
    except ValidationError:
        return None


def matchup(home: str, away: str) -> str:
    return f"{home} – {away}"


class Strategy:
    """One extraction approach in the cascade.

    ``matches`` decides whether the strategy applies to a URL at all;
    ``try_extract`` returns the events it recovers (an empty list means
    "try the next one").
    """

    name = "strategy"
    browser_like = False

    def __init__(self, debug: bool = False):
        self.debug = debug

    def matches(self, url: str) -> bool:
        return True

    def try_extract(self, doc: RawDocument, ctx: ExtractContext) -> List[Event]:
        raise NotImplementedError

    def needs_followup(self, doc: RawDocument) -> bool:
        return False

    def followup_url(self, url: str) -> Optional[str]:
        return None

    def parse(self, doc: RawDocument) -> HTMLParser:
        return HTMLParser(doc.text)

    def trace(self, msg: str, *args) -> None:
        if self.debug:
            log.info("[%s] " + msg, self.name, *args)


class SiteStrategy(Strategy):
    """A strategy bound to the layout of a fixed set of hosts."""

    def __init__(self, domains: Iterable[str], browser_like: bool = True, paginate: bool = False, debug: bool = False):
        super().__init__(debug=debug)
        self.domains = [d.lower() for d in domains]
        self.browser_like = browser_like
        self.paginate = paginate

    def matches(self, url: str) -> bool:
        return host_matches(url, self.domains)
