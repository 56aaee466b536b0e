"""Errors raised by the catalog and directory listing helpers."""
from __future__ import annotations


class CatalogError(RuntimeError):
    """Base class for catalog failures."""


class UnsafePathError(CatalogError):
    """Raised when a requested path resolves outside its root."""


class DirectoryReadError(CatalogError):
    """Raised when a directory cannot be listed."""


__all__ = ["CatalogError", "DirectoryReadError", "UnsafePathError"]
