from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from .config import default_kickoff, site_config
from .extractors import (
    AbbreviatedTableExtractor,
    GenericTableExtractor,
    LocalizedBlockExtractor,
    Strategy,
    StructuredDataExtractor,
)
from .fetch import Retriever
from .ics import events_from_ics
from .lunar import generate_ayyamul_bidh
from .merge import normalise_events
from .models import Event, ExtractContext, FeedEntry, SourceDescriptor
from .utils import as_aware, now_utc

log = logging.getLogger(__name__)

LUNAR_PROVIDERS = ("ayyamul-bidh", "lunar")


def build_strategies(config: dict) -> List[Strategy]:
    debug = bool(config.get("debug", False))
    blocks = site_config(config, "localized_blocks")
    table = site_config(config, "abbreviated_table")
    return [
        LocalizedBlockExtractor(
            blocks.get("domains", []),
            browser_like=bool(blocks.get("browser_like", True)),
            paginate=bool(blocks.get("paginate", True)),
            debug=debug,
        ),
        AbbreviatedTableExtractor(
            table.get("domains", []),
            browser_like=bool(table.get("browser_like", True)),
            paginate=bool(table.get("paginate", False)),
            debug=debug,
        ),
        StructuredDataExtractor(debug=debug),
        GenericTableExtractor(debug=debug),
    ]


class Pipeline:
    """Turns a feed source into a normalised list of events.

    Scrape sources walk the strategy list in priority order and keep the
    first non-empty result; lunar sources are generated locally. Nothing
    here raises for a bad source: the worst outcome is an empty list.
    """

    def __init__(self, config: dict, retriever: Optional[Retriever] = None, strategies: Optional[List[Strategy]] = None):
        self.config = config
        self.debug = bool(config.get("debug", False))
        self.retriever = retriever or Retriever(timeout_ms=int(config.get("timeout_ms", 15000)), debug=self.debug)
        self.strategies = strategies if strategies is not None else build_strategies(config)

    def context(self, url: str, club_name: Optional[str]) -> ExtractContext:
        return ExtractContext(
            url=url,
            club_name=club_name,
            offset_hours=int(self.config.get("utc_offset_hours", 7)),
            duration_hours=int(self.config.get("default_duration_hours", 2)),
            default_kickoff=default_kickoff(self.config),
        )

    def extract_entry(self, entry: FeedEntry, now: Optional[datetime] = None) -> List[Event]:
        source = entry.source or SourceDescriptor()
        now = as_aware(now or now_utc())
        if entry.type == "lunar":
            return normalise_events(self._lunar(now), now)
        if entry.type == "url":
            return normalise_events(self._calendar(source), now)
        return self.extract_events(source, now)

    def extract_events(self, descriptor: SourceDescriptor, now: Optional[datetime] = None) -> List[Event]:
        now = as_aware(now or now_utc())
        if (descriptor.provider or "").lower() in LUNAR_PROVIDERS:
            events = self._lunar(now)
        elif descriptor.url:
            events = self.scrape(descriptor)
        else:
            events = []
        return normalise_events(events, now)

    def _lunar(self, now: datetime) -> List[Event]:
        lunar = self.config.get("lunar", {}) or {}
        offset = int(self.config.get("utc_offset_hours", 7))
        today = now.astimezone(timezone(timedelta(hours=offset))).date()
        return generate_ayyamul_bidh(
            today,
            years=int(lunar.get("years", 3)),
            days=lunar.get("days", (13, 14, 15)),
            offset_hours=offset,
            debug=self.debug,
        )

    def _calendar(self, source: SourceDescriptor) -> List[Event]:
        if not source.url:
            return []
        body = self.retriever.fetch_text(source.url)
        if body is None:
            return []
        return events_from_ics(body, offset_hours=int(self.config.get("utc_offset_hours", 7)))

    def scrape(self, descriptor: SourceDescriptor) -> List[Event]:
        url = descriptor.url or ""
        ctx = self.context(url, descriptor.club_name)
        applicable = [s for s in self.strategies if s.matches(url)]
        browser_like = any(s.browser_like for s in applicable)

        doc = self.retriever.fetch(url, browser_like=browser_like)
        if doc is None:
            if self.debug:
                log.info("scrape %s: no document", url)
            return []

        followed = False
        for strategy in applicable:
            events = strategy.try_extract(doc, ctx)
            if not events and not followed and strategy.needs_followup(doc):
                next_url = strategy.followup_url(url)
                if next_url:
                    followed = True
                    page = self.retriever.fetch(next_url, browser_like=strategy.browser_like, referer=url)
                    if page is not None:
                        events = strategy.try_extract(page, ctx)
            if events:
                if self.debug:
                    log.info("scrape %s: %d events from %s", url, len(events), strategy.name)
                return events
        if self.debug:
            log.info("scrape %s: no events from any strategy", url)
        return []
