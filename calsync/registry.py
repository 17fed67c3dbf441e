from __future__ import annotations

import pathlib
from typing import List, Optional

import yaml

from .models import FeedEntry


def load_registry(path: str | pathlib.Path) -> List[FeedEntry]:
    raw = yaml.safe_load(pathlib.Path(path).read_text(encoding="utf-8")) or []
    if not isinstance(raw, list):
        raise ValueError(f"{path}: feed registry must be a list")
    return [FeedEntry(**item) for item in raw]


def find_feed(entries: List[FeedEntry], feed_id: str) -> Optional[FeedEntry]:
    return next((e for e in entries if e.id == feed_id), None)


def resolve_feed(entries: List[FeedEntry], feed_id: str) -> FeedEntry:
    """Registry entry for feed_id; unknown ids become an empty scrape feed."""
    return find_feed(entries, feed_id) or FeedEntry(id=feed_id, name=feed_id, type="scrape")
