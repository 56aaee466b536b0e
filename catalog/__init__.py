"""Server-side catalog of the media tree."""

from .errors import CatalogError, DirectoryReadError, UnsafePathError
from .flatten import CatalogEntry, build_catalog, list_directory, resolve_within

__all__ = [
    "CatalogEntry",
    "CatalogError",
    "DirectoryReadError",
    "UnsafePathError",
    "build_catalog",
    "list_directory",
    "resolve_within",
]
