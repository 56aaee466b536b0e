"""State machine for one file-browser cell of the grid."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, List, Mapping, Optional, Sequence, Union

from .engine import DEFAULT_MAX_RESULTS, MIN_QUERY_LENGTH, CatalogProvider, SearchSession

LOGGER = logging.getLogger("vidgrid.browse.cell")

ERROR_LOADING = "Error loading directory"
NO_MATCHES = "No matches"
EMPTY_DIRECTORY = "Empty directory"

DirectoryLoader = Callable[[str], Sequence[Mapping[str, Any]]]


@dataclass(frozen=True, slots=True)
class Listing:
    path: str


@dataclass(frozen=True, slots=True)
class Searching:
    path: str
    term: str


@dataclass(frozen=True, slots=True)
class Playing:
    path: str
    video: str


CellState = Union[Listing, Searching, Playing]


def parent_path(path: str) -> str:
    parts = [part for part in path.split("/") if part]
    return "/".join(parts[:-1])


def on_navigate(_state: CellState, path: str) -> CellState:
    return Listing(path=path)


def on_search(state: CellState, term: str) -> CellState:
    if isinstance(state, Playing):
        return state
    if not term or not term.strip():
        return Listing(path=state.path)
    return Searching(path=state.path, term=term)


def on_play(state: CellState, video: str) -> CellState:
    return Playing(path=state.path, video=video)


def on_back(state: CellState) -> CellState:
    return Listing(path=state.path)


class BrowserCell:
    """Owns a cell's state, its directory listing and its search session."""

    def __init__(
        self,
        load_directory: DirectoryLoader,
        catalog_provider: CatalogProvider,
        *,
        max_results: int = DEFAULT_MAX_RESULTS,
    ) -> None:
        self._load_directory = load_directory
        self.session = SearchSession(catalog_provider)
        self.max_results = max(1, int(max_results))
        self.state: CellState = Listing(path="")
        self.error: Optional[str] = None

    @property
    def path(self) -> str:
        return self.state.path

    def navigate(self, path: str) -> CellState:
        self.state = on_navigate(self.state, path)
        self._reload(path)
        return self.state

    def go_up(self) -> CellState:
        return self.navigate(parent_path(self.state.path))

    def type_search(self, term: str) -> CellState:
        self.state = on_search(self.state, term)
        return self.state

    def play(self, video: str) -> CellState:
        self.state = on_play(self.state, video)
        return self.state

    def back(self) -> CellState:
        was_playing = isinstance(self.state, Playing)
        self.state = on_back(self.state)
        if was_playing:
            self._reload(self.state.path)
        return self.state

    def _reload(self, path: str) -> None:
        try:
            listing = list(self._load_directory(path))
            self.error = None
        except Exception as exc:  # noqa: BLE001
            LOGGER.error("Failed to load %s: %s", path or "/", exc)
            listing = []
            self.error = ERROR_LOADING
        self.session.navigate(path, listing)

    def view(self) -> List[Any]:
        """Entries to render for the current state, capped at ``max_results``."""

        state = self.state
        if isinstance(state, Playing):
            return []
        if isinstance(state, Searching):
            return list(self.session.search(state.term))[: self.max_results]
        return list(self.session.listing)

    @property
    def message(self) -> Optional[str]:
        if self.error:
            return self.error
        state = self.state
        if isinstance(state, Playing):
            return None
        if isinstance(state, Searching) and len(state.term.strip()) >= MIN_QUERY_LENGTH:
            return NO_MATCHES if not self.view() else None
        if not self.session.listing:
            return EMPTY_DIRECTORY
        return None


__all__ = [
    "BrowserCell",
    "CellState",
    "EMPTY_DIRECTORY",
    "ERROR_LOADING",
    "Listing",
    "NO_MATCHES",
    "Playing",
    "Searching",
    "on_back",
    "on_navigate",
    "on_play",
    "on_search",
    "parent_path",
]
