"""Flattened catalog and single-directory listings of the media tree."""
from __future__ import annotations

import logging
import os
import posixpath
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, List

from core.paths import to_catalog_path
from media.walker import HIDDEN_PREFIX, TreeWalker, WalkError

from .errors import DirectoryReadError, UnsafePathError

LOGGER = logging.getLogger("vidgrid.catalog")

TYPE_DIRECTORY = "directory"
TYPE_FILE = "file"


@dataclass(frozen=True, slots=True)
class CatalogEntry:
    name: str
    type: str
    path: str

    @property
    def is_dir(self) -> bool:
        return self.type == TYPE_DIRECTORY

    def as_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "type": self.type, "path": self.path}


def is_safe_path(target: Path, root: Path) -> bool:
    rel = os.path.relpath(os.path.normpath(target), os.path.normpath(root))
    if os.path.isabs(rel):
        return False
    return rel != os.pardir and not rel.startswith(os.pardir + os.sep)


def resolve_within(root: Path, relative: str) -> Path:
    """Join *relative* onto *root*, refusing anything that escapes the root."""

    if "\x00" in (relative or ""):
        raise UnsafePathError(f"Path contains a NUL byte: {relative!r}")
    cleaned = (relative or "").replace("\\", "/").lstrip("/")
    target = Path(os.path.normpath(os.path.join(root, cleaned)))
    if not is_safe_path(target, Path(root)):
        raise UnsafePathError(f"Path escapes root: {relative!r}")
    return target


def _sort_key(entry: CatalogEntry) -> tuple:
    return (0 if entry.is_dir else 1, entry.name.casefold(), entry.name)


def list_directory(root: Path, relative: str, extensions: Iterable[str]) -> List[CatalogEntry]:
    """Return one directory's visible entries, directories first, then by name."""

    target = resolve_within(root, relative)
    allowed = frozenset(ext.lower() for ext in extensions)
    prefix = to_catalog_path(os.path.relpath(target, os.path.normpath(root)))
    if prefix == os.curdir:
        prefix = ""
    try:
        with os.scandir(target) as iterator:
            raw = list(iterator)
    except (OSError, ValueError) as exc:
        raise DirectoryReadError(f"Cannot list {relative or '/'}: {exc}") from exc

    results: List[CatalogEntry] = []
    for entry in raw:
        if entry.name.startswith(HIDDEN_PREFIX):
            continue
        entry_path = posixpath.join(prefix, entry.name) if prefix else entry.name
        try:
            is_dir = entry.is_dir()
        except OSError:
            continue
        if is_dir:
            results.append(CatalogEntry(name=entry.name, type=TYPE_DIRECTORY, path=entry_path))
        elif os.path.splitext(entry.name)[1].lower() in allowed:
            results.append(CatalogEntry(name=entry.name, type=TYPE_FILE, path=entry_path))
    results.sort(key=_sort_key)
    return results


def build_catalog(root: Path, extensions: Iterable[str]) -> List[CatalogEntry]:
    """Return every visible directory and video under *root* in traversal order.

    Hidden entries (and everything beneath hidden directories) are left out.
    No sort is applied; unreadable subdirectories are skipped.
    """

    walker = TreeWalker(extensions, include_hidden=False)
    results: List[CatalogEntry] = []
    try:
        for entry in walker.walk(Path(root), strict=True):
            if entry.is_dir:
                results.append(CatalogEntry(name=entry.name, type=TYPE_DIRECTORY, path=entry.relative))
            elif entry.is_video:
                results.append(CatalogEntry(name=entry.name, type=TYPE_FILE, path=entry.relative))
    except WalkError as exc:
        raise DirectoryReadError(str(exc)) from exc
    if walker.errors:
        LOGGER.warning("Catalog built with %d unreadable director(ies)", len(walker.errors))
    return results


__all__ = [
    "CatalogEntry",
    "TYPE_DIRECTORY",
    "TYPE_FILE",
    "build_catalog",
    "is_safe_path",
    "list_directory",
    "resolve_within",
]
