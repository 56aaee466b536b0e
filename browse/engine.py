"""Incremental search over a flattened catalog.

Every keystroke produces a new query. Instead of rescanning the whole catalog,
a query that extends the previous one is filtered from the previous result:
anything matching ``"abcd"`` also matches ``"abc"``, so the shorter query's
result is a complete candidate set for the longer one.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

LOGGER = logging.getLogger("vidgrid.browse.search")

MIN_QUERY_LENGTH = 3
DEFAULT_MAX_RESULTS = 100


def normalize(text: str) -> str:
    """Lower-case *text* and keep only letters and digits."""

    return "".join(ch for ch in str(text).lower() if ch.isalnum())


@dataclass(frozen=True, slots=True)
class NormalizedCatalogEntry:
    name: str
    type: str
    path: str
    norm: str

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "NormalizedCatalogEntry":
        name = record.get("name") if isinstance(record, Mapping) else None
        path = record.get("path") if isinstance(record, Mapping) else None
        kind = record.get("type") if isinstance(record, Mapping) else None
        name_text = name if isinstance(name, str) else ""
        path_text = path if isinstance(path, str) else ""
        norm = normalize(name_text + path_text) if name_text and path_text else ""
        return cls(name=name_text, type=str(kind or ""), path=path_text, norm=norm)

    def as_dict(self) -> Dict[str, str]:
        return {"name": self.name, "type": self.type, "path": self.path}


Catalog = Tuple[NormalizedCatalogEntry, ...]
CatalogProvider = Callable[[], Optional[Sequence[NormalizedCatalogEntry]]]


def normalize_catalog(records: Iterable[Mapping[str, Any]]) -> Catalog:
    """Build the shared read-only index for a fetched catalog."""

    return tuple(NormalizedCatalogEntry.from_record(record) for record in records or ())


def filter_entries(source: Iterable[NormalizedCatalogEntry], query: str) -> List[NormalizedCatalogEntry]:
    return [entry for entry in source if entry.norm and query in entry.norm]


class SearchSession:
    """Search state for one file browser: current listing, result cache, last query."""

    def __init__(self, catalog_provider: CatalogProvider) -> None:
        self._catalog_provider = catalog_provider
        self._catalog: Optional[Sequence[NormalizedCatalogEntry]] = None
        self.listing: List[Any] = []
        self.path = ""
        self.cache: Dict[str, Tuple[NormalizedCatalogEntry, ...]] = {}
        self.last_query = ""
        self.full_scans = 0
        self.narrowed_scans = 0
        self.cache_hits = 0

    def navigate(self, path: str, listing: Sequence[Any]) -> None:
        """Start a fresh session at *path* showing *listing* when not searching."""

        self.path = path
        self.listing = list(listing)
        self.reset()

    def reset(self) -> None:
        self.cache.clear()
        self.last_query = ""

    def _current_catalog(self) -> Optional[Sequence[NormalizedCatalogEntry]]:
        catalog = self._catalog_provider()
        if catalog is None:
            return None
        if catalog is not self._catalog:
            if self._catalog is not None:
                LOGGER.debug("Catalog generation changed; dropping %d cached queries", len(self.cache))
            self._catalog = catalog
            self.reset()
        return catalog

    def search(self, raw_term: str) -> Sequence[Any]:
        """Return the listing for short terms, else the matching catalog entries.

        Catalog matches come back as a tuple shared with the query cache.
        """

        term = (raw_term or "").strip().lower()
        if len(term) < MIN_QUERY_LENGTH:
            return list(self.listing)
        catalog = self._current_catalog()
        if catalog is None:
            return list(self.listing)
        query = normalize(term)
        if not query:
            return list(self.listing)

        cached = self.cache.get(query)
        if cached is not None:
            self.cache_hits += 1
            return cached

        source: Iterable[NormalizedCatalogEntry]
        previous = self.cache.get(self.last_query) if self.last_query else None
        if previous is not None and len(self.last_query) < len(query) and query.startswith(self.last_query):
            source = previous
            self.narrowed_scans += 1
        else:
            source = catalog
            self.full_scans += 1

        result = tuple(filter_entries(source, query))
        self.cache[query] = result
        self.last_query = query
        return result


__all__ = [
    "Catalog",
    "CatalogProvider",
    "DEFAULT_MAX_RESULTS",
    "MIN_QUERY_LENGTH",
    "NormalizedCatalogEntry",
    "SearchSession",
    "filter_entries",
    "normalize",
    "normalize_catalog",
]
