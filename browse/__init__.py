"""Client side of VidGrid: incremental search, shared catalog and browser cells."""

from .cell import BrowserCell, Listing, Playing, Searching
from .client import VidGridClient
from .engine import MIN_QUERY_LENGTH, NormalizedCatalogEntry, SearchSession, normalize, normalize_catalog
from .shared import SharedCatalog

__all__ = [
    "BrowserCell",
    "Listing",
    "MIN_QUERY_LENGTH",
    "NormalizedCatalogEntry",
    "Playing",
    "SearchSession",
    "Searching",
    "SharedCatalog",
    "VidGridClient",
    "normalize",
    "normalize_catalog",
]
