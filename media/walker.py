"""Recursive directory traversal shared by the thumbnail pipeline and the catalog."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator, List

from core.paths import to_catalog_path

LOGGER = logging.getLogger("vidgrid.media.walker")

HIDDEN_PREFIX = "."


class WalkError(OSError):
    """Raised by :meth:`TreeWalker.walk` in strict mode when the root is unreadable."""


@dataclass(frozen=True, slots=True)
class WalkEntry:
    """One file or directory discovered under the walk root."""

    name: str
    path: Path
    relative: str
    is_dir: bool
    is_video: bool = False


@dataclass(slots=True)
class WalkFailure:
    path: Path
    error: str


class TreeWalker:
    """Depth-first walker that yields entries in directory-listing order.

    Unreadable subdirectories are logged and skipped; the rest of the tree is
    still visited. Directory symlinks are skipped, never followed.
    """

    def __init__(
        self,
        extensions: Iterable[str],
        *,
        include_hidden: bool = True,
        hidden_prefix: str = HIDDEN_PREFIX,
    ) -> None:
        self._extensions = frozenset(ext.lower() for ext in extensions)
        self._include_hidden = bool(include_hidden)
        self._hidden_prefix = hidden_prefix
        self.errors: List[WalkFailure] = []

    @property
    def extensions(self) -> frozenset[str]:
        return self._extensions

    def is_video_name(self, name: str) -> bool:
        return os.path.splitext(name)[1].lower() in self._extensions

    def walk(self, root: Path, *, strict: bool = False) -> Iterator[WalkEntry]:
        root = Path(root)
        self.errors = []
        try:
            entries = self._list(root)
        except OSError as exc:
            self._record(root, exc)
            if strict:
                raise WalkError(f"Cannot read root directory {root}: {exc}") from exc
            return
        yield from self._walk_entries(entries, root)

    def _walk_entries(self, entries: List[os.DirEntry], root: Path) -> Iterator[WalkEntry]:
        for entry in entries:
            if not self._include_hidden and entry.name.startswith(self._hidden_prefix):
                continue
            full_path = Path(entry.path)
            relative = to_catalog_path(os.path.relpath(entry.path, root))
            try:
                is_dir = entry.is_dir(follow_symlinks=False)
                is_file = not is_dir and entry.is_file()
            except OSError as exc:
                self._record(full_path, exc)
                continue
            if is_dir:
                yield WalkEntry(name=entry.name, path=full_path, relative=relative, is_dir=True)
                try:
                    children = self._list(full_path)
                except OSError as exc:
                    self._record(full_path, exc)
                    continue
                yield from self._walk_entries(children, root)
            elif is_file:
                yield WalkEntry(
                    name=entry.name,
                    path=full_path,
                    relative=relative,
                    is_dir=False,
                    is_video=self.is_video_name(entry.name),
                )

    @staticmethod
    def _list(directory: Path) -> List[os.DirEntry]:
        with os.scandir(directory) as iterator:
            return list(iterator)

    def _record(self, path: Path, exc: BaseException) -> None:
        LOGGER.error("Error scanning directory %s: %s", path, exc)
        self.errors.append(WalkFailure(path=path, error=str(exc)))


def iter_videos(walker: TreeWalker, root: Path) -> Iterator[WalkEntry]:
    """Yield only the video files found by *walker* under *root*."""

    for entry in walker.walk(root):
        if not entry.is_dir and entry.is_video:
            yield entry


__all__ = [
    "HIDDEN_PREFIX",
    "TreeWalker",
    "WalkEntry",
    "WalkError",
    "WalkFailure",
    "iter_videos",
]
