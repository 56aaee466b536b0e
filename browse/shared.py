"""Lazily fetched catalog shared by every browser cell on a page."""
from __future__ import annotations

import logging
import threading
from concurrent.futures import Future
from typing import Any, Callable, Iterable, Mapping, Optional

from .engine import Catalog, normalize_catalog

LOGGER = logging.getLogger("vidgrid.browse.shared")

CatalogFetcher = Callable[[], Iterable[Mapping[str, Any]]]


class SharedCatalog:
    """Single-flight holder for the normalized catalog.

    The first caller starts the fetch on a background thread; callers arriving
    while it is in flight get the same future. A successful result is kept for
    the lifetime of the object. A failed fetch is forgotten so the next request
    tries again.
    """

    def __init__(self, fetcher: CatalogFetcher) -> None:
        self._fetcher = fetcher
        self._lock = threading.Lock()
        self._future: Optional["Future[Catalog]"] = None
        self.fetch_count = 0

    def request(self) -> "Future[Catalog]":
        with self._lock:
            if self._future is not None:
                return self._future
            future: "Future[Catalog]" = Future()
            self._future = future
            self.fetch_count += 1
        thread = threading.Thread(target=self._run, args=(future,), name="catalog-fetch", daemon=True)
        thread.start()
        return future

    def _run(self, future: "Future[Catalog]") -> None:
        try:
            catalog = normalize_catalog(self._fetcher())
        except Exception as exc:  # noqa: BLE001
            LOGGER.warning("Catalog fetch failed: %s", exc)
            with self._lock:
                if self._future is future:
                    self._future = None
            future.set_exception(exc)
            return
        LOGGER.info("Catalog loaded: %d entries", len(catalog))
        future.set_result(catalog)

    def get(self, timeout: Optional[float] = None) -> Catalog:
        """Block until the catalog is available and return it."""

        return self.request().result(timeout=timeout)

    def snapshot(self) -> Optional[Catalog]:
        """Return the catalog if it is loaded; otherwise make sure a fetch is running."""

        future = self.request()
        if future.done() and future.exception() is None:
            return future.result()
        return None

    @property
    def loaded(self) -> bool:
        future = self._future
        return future is not None and future.done() and future.exception() is None


__all__ = ["CatalogFetcher", "SharedCatalog"]
