from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

FeedType = Literal["scrape", "lunar", "url"]


class Event(BaseModel):
    model_config = ConfigDict(frozen=True)

    start: datetime
    end: datetime
    all_day: bool = False
    summary: str
    description: str = ""
    location: str = ""

    @field_validator("start", "end")
    @classmethod
    def _aware(cls, v: datetime) -> datetime:
        if v.tzinfo is None or v.utcoffset() is None:
            raise ValueError("event instants must carry a UTC offset")
        return v

    @model_validator(mode="after")
    def _ordered(self) -> "Event":
        if self.end < self.start:
            raise ValueError("event ends before it starts")
        return self


class SourceDescriptor(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    url: Optional[str] = None
    club_name: Optional[str] = Field(default=None, alias="clubName")
    provider: Optional[str] = None


class FeedEntry(BaseModel):
    id: str
    name: str
    type: FeedType = "scrape"
    source: Optional[SourceDescriptor] = None


class RawDocument(BaseModel):
    url: str
    text: str
    content_type: str = ""


class ExtractContext(BaseModel):
    model_config = ConfigDict(frozen=True)

    url: str
    club_name: Optional[str] = None
    offset_hours: int = 7
    duration_hours: int = 2
    default_kickoff: tuple[int, int] = (19, 0)


# date key (YYYY-MM-DD) -> team pair recovered from link slugs
FixtureLinkIndex = dict[str, tuple[str, str]]
