"""Minimal ffprobe wrapper used by the thumbnail pipeline."""
from __future__ import annotations

import logging
import math
import shutil
import subprocess
from pathlib import Path
from typing import List, Optional

LOGGER = logging.getLogger("vidgrid.media.ffprobe")

DEFAULT_FFPROBE = "ffprobe"


def ffprobe_available(ffprobe: str = DEFAULT_FFPROBE) -> bool:
    """Return True when *ffprobe* resolves to an executable."""

    return shutil.which(ffprobe) is not None


def duration_command(video_path: Path, *, ffprobe: str = DEFAULT_FFPROBE) -> List[str]:
    return [
        ffprobe,
        "-v",
        "error",
        "-show_entries",
        "format=duration",
        "-of",
        "default=noprint_wrappers=1:nokey=1",
        str(video_path),
    ]


def parse_duration(output: Optional[str]) -> float:
    """Parse the bare container duration printed by ffprobe.

    Anything that is not a finite number (``N/A``, empty output, garbage)
    yields ``nan`` so callers can skip the file.
    """

    text = (output or "").strip()
    if not text:
        return math.nan
    try:
        value = float(text.splitlines()[0].strip())
    except (ValueError, IndexError):
        return math.nan
    if not math.isfinite(value):
        return math.nan
    return value


def probe_duration(
    video_path: Path,
    *,
    ffprobe: str = DEFAULT_FFPROBE,
    timeout: Optional[float] = None,
) -> float:
    """Return the container duration of *video_path* in seconds, or ``nan``."""

    try:
        completed = subprocess.run(
            duration_command(video_path, ffprobe=ffprobe),
            stdout=subprocess.PIPE,
            stderr=subprocess.DEVNULL,
            text=True,
            check=False,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired:
        LOGGER.error("ffprobe timed out for %s", video_path)
        return math.nan
    except OSError as exc:
        LOGGER.error("ffprobe could not be started for %s: %s", video_path, exc)
        return math.nan
    return parse_duration(completed.stdout)


__all__ = [
    "DEFAULT_FFPROBE",
    "duration_command",
    "ffprobe_available",
    "parse_duration",
    "probe_duration",
]
