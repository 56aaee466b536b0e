"""Thumbnail pipeline: tree walk, duration probe and frame extraction."""

from .run import ThumbnailRunner, ThumbnailSummary
from .thumbs import ThumbnailMaterializer, ThumbnailOutcome, ThumbnailSettings
from .walker import TreeWalker, WalkEntry

__all__ = [
    "ThumbnailMaterializer",
    "ThumbnailOutcome",
    "ThumbnailRunner",
    "ThumbnailSettings",
    "ThumbnailSummary",
    "TreeWalker",
    "WalkEntry",
]
