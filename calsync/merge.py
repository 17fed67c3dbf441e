from __future__ import annotations

from datetime import datetime, timedelta
from typing import Iterable, List

from .models import Event

CUTOFF = timedelta(days=1)


def cutoff(events: Iterable[Event], reference: datetime) -> List[Event]:
    """Drop events starting more than a day before the reference instant."""
    earliest = reference - CUTOFF
    return [e for e in events if e.start >= earliest]


def normalise_events(events: Iterable[Event], reference: datetime) -> List[Event]:
    kept = cutoff(events, reference)
    # sorted() is stable, so equal starts keep their input order
    return sorted(kept, key=lambda e: e.start)
