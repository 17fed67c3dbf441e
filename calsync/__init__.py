from .models import Event, FeedEntry, SourceDescriptor
from .pipeline import Pipeline

__all__ = ["Event", "FeedEntry", "SourceDescriptor", "Pipeline"]
