from .base import SiteStrategy, Strategy
from .site_blocks import LocalizedBlockExtractor
from .site_table import AbbreviatedTableExtractor
from .structured import StructuredDataExtractor
from .table import GenericTableExtractor

__all__ = [
    "Strategy",
    "SiteStrategy",
    "LocalizedBlockExtractor",
    "AbbreviatedTableExtractor",
    "StructuredDataExtractor",
    "GenericTableExtractor",
]
