"""HTTP API serving the media tree, thumbnails and UI configuration."""

__version__ = "0.3.0"
