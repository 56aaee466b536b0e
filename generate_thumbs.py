"""CLI entry-point that generates thumbnails for every video under a directory."""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from core.logging_utils import configure_cli_logging
from core.paths import get_thumbs_dir, resolve_library_root, resolve_working_dir
from core.settings import load_settings
from media.ffprobe import ffprobe_available
from media.run import ThumbnailRunner

LOGGER = logging.getLogger("vidgrid.thumbs")


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Generate a midpoint JPEG thumbnail for each video in a directory tree.")
    parser.add_argument("directory", help="Media directory to scan")
    parser.add_argument("--thumbs", default=None, help="Output directory (default ./thumbs)")
    parser.add_argument(
        "--staleness",
        choices=["exists", "mtime"],
        default=None,
        help="When to regenerate: only missing thumbnails (exists) or also ones older than the video (mtime).",
    )
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    working_dir = resolve_working_dir()
    settings = load_settings(working_dir)
    configure_cli_logging(settings, working_dir)

    if args.staleness:
        settings["thumbnails"]["staleness_policy"] = args.staleness

    root = resolve_library_root(args.directory, working_dir, settings)
    if not root.is_dir():
        LOGGER.error("Not a directory: %s", root)
        return 2
    thumbs_dir = Path(args.thumbs).resolve() if args.thumbs else get_thumbs_dir(working_dir, settings)

    ffprobe = settings["thumbnails"].get("ffprobe_path") or "ffprobe"
    if not ffprobe_available(ffprobe):
        LOGGER.warning("%s was not found on PATH; every video will be skipped.", ffprobe)

    LOGGER.info("Scanning %s for videos...", root)
    LOGGER.info("Saving thumbnails to %s...", thumbs_dir)
    runner = ThumbnailRunner.from_settings(thumbs_dir, settings)
    summary = runner.run(root)
    LOGGER.info("Done. %s", summary.as_dict())
    return 0


if __name__ == "__main__":
    sys.exit(main())
