"""Derive and persist one representative JPEG still per video."""
from __future__ import annotations

import logging
import math
import os
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, List, Mapping, Optional

from .ffprobe import DEFAULT_FFPROBE, probe_duration

LOGGER = logging.getLogger("vidgrid.media.thumbs")

DEFAULT_FFMPEG = "ffmpeg"
DEFAULT_JPEG_QUALITY = 2
THUMB_SUFFIX = ".jpg"
TEMP_SUFFIX = ".tmp"

STALENESS_EXISTS = "exists"
STALENESS_MTIME = "mtime"
STALENESS_POLICIES = (STALENESS_EXISTS, STALENESS_MTIME)

OUTCOME_GENERATED = "generated"
OUTCOME_SKIPPED = "skipped"
OUTCOME_NO_DURATION = "no_duration"
OUTCOME_FAILED = "failed"

DurationProbe = Callable[[Path], float]


@dataclass(slots=True)
class ThumbnailSettings:
    quality: int = DEFAULT_JPEG_QUALITY
    staleness_policy: str = STALENESS_EXISTS
    ffmpeg_path: str = DEFAULT_FFMPEG
    ffprobe_path: str = DEFAULT_FFPROBE
    probe_timeout_s: Optional[float] = None
    extract_timeout_s: Optional[float] = None

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any] | None) -> "ThumbnailSettings":
        data = dict(mapping or {})
        policy = str(data.get("staleness_policy") or STALENESS_EXISTS).strip().lower()
        if policy not in STALENESS_POLICIES:
            LOGGER.warning("Unknown staleness policy %r; using %r", policy, STALENESS_EXISTS)
            policy = STALENESS_EXISTS
        return cls(
            quality=int(data.get("quality") or DEFAULT_JPEG_QUALITY),
            staleness_policy=policy,
            ffmpeg_path=str(data.get("ffmpeg_path") or DEFAULT_FFMPEG),
            ffprobe_path=str(data.get("ffprobe_path") or DEFAULT_FFPROBE),
            probe_timeout_s=_optional_float(data.get("probe_timeout_s")),
            extract_timeout_s=_optional_float(data.get("extract_timeout_s")),
        )


@dataclass(frozen=True, slots=True)
class ThumbnailOutcome:
    video: Path
    target: Path
    status: str
    seek_s: Optional[float] = None


def _optional_float(value: Any) -> Optional[float]:
    if value in (None, ""):
        return None
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        return None
    return parsed if parsed > 0 else None


def thumbnail_path(thumbs_root: Path, relative_path: str) -> Path:
    """Mirror *relative_path* under *thumbs_root* with a ``.jpg`` suffix appended."""

    return Path(thumbs_root) / (relative_path + THUMB_SUFFIX)


def midpoint(duration: float) -> float:
    return duration / 2


def extract_command(
    video_path: Path,
    output_path: Path,
    seek_s: float,
    *,
    ffmpeg: str = DEFAULT_FFMPEG,
    quality: int = DEFAULT_JPEG_QUALITY,
) -> List[str]:
    return [
        ffmpeg,
        "-v",
        "error",
        "-y",
        "-ss",
        str(seek_s),
        "-i",
        str(video_path),
        "-vframes",
        "1",
        "-q:v",
        str(quality),
        "-f",
        "image2",
        "-c:v",
        "mjpeg",
        str(output_path),
    ]


class ThumbnailMaterializer:
    """Writes ``<thumbs_root>/<relative>.jpg`` for a video, at most once.

    With the default ``exists`` policy the presence of the target file is the
    only signal that a video was processed; a replaced source video keeps its
    old thumbnail. The ``mtime`` policy regenerates thumbnails older than their
    source.
    """

    def __init__(
        self,
        thumbs_root: Path,
        *,
        settings: Optional[ThumbnailSettings] = None,
        probe: Optional[DurationProbe] = None,
    ) -> None:
        self.thumbs_root = Path(thumbs_root)
        self.settings = settings or ThumbnailSettings()
        self._probe = probe or self._default_probe

    def _default_probe(self, video_path: Path) -> float:
        return probe_duration(
            video_path,
            ffprobe=self.settings.ffprobe_path,
            timeout=self.settings.probe_timeout_s,
        )

    def is_current(self, video_path: Path, target: Path) -> bool:
        try:
            target_stat = target.stat()
        except OSError:
            return False
        if self.settings.staleness_policy != STALENESS_MTIME:
            return True
        try:
            source_mtime = video_path.stat().st_mtime
        except OSError:
            return True
        return target_stat.st_mtime >= source_mtime

    def materialize(self, video_path: Path, relative_path: str) -> ThumbnailOutcome:
        video_path = Path(video_path)
        target = thumbnail_path(self.thumbs_root, relative_path)
        if self.is_current(video_path, target):
            LOGGER.debug("Skipping existing: %s", target)
            return ThumbnailOutcome(video=video_path, target=target, status=OUTCOME_SKIPPED)

        try:
            target.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            LOGGER.error("Cannot create thumbnail directory %s: %s", target.parent, exc)
            return ThumbnailOutcome(video=video_path, target=target, status=OUTCOME_FAILED)

        duration = self._probe(video_path)
        if duration is None or math.isnan(duration):
            LOGGER.error("Could not determine duration for %s", video_path)
            return ThumbnailOutcome(video=video_path, target=target, status=OUTCOME_NO_DURATION)

        seek_s = midpoint(duration)
        tmp = target.with_name(target.name + TEMP_SUFFIX)
        if self._extract(video_path, tmp, seek_s):
            try:
                os.replace(tmp, target)
            except OSError as exc:
                LOGGER.error("Failed to move thumbnail into place for %s: %s", video_path, exc)
                _discard(tmp)
                return ThumbnailOutcome(video=video_path, target=target, status=OUTCOME_FAILED, seek_s=seek_s)
            LOGGER.info("Generated: %s", target)
            return ThumbnailOutcome(video=video_path, target=target, status=OUTCOME_GENERATED, seek_s=seek_s)

        _discard(tmp)
        return ThumbnailOutcome(video=video_path, target=target, status=OUTCOME_FAILED, seek_s=seek_s)

    def _extract(self, video_path: Path, output_path: Path, seek_s: float) -> bool:
        cmd = extract_command(
            video_path,
            output_path,
            seek_s,
            ffmpeg=self.settings.ffmpeg_path,
            quality=self.settings.quality,
        )
        try:
            completed = subprocess.run(
                cmd,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                check=False,
                timeout=self.settings.extract_timeout_s,
            )
        except subprocess.TimeoutExpired:
            LOGGER.error("ffmpeg timed out for %s", video_path)
            return False
        except OSError as exc:
            LOGGER.error("Error processing %s: %s", video_path, exc)
            return False
        if completed.returncode != 0:
            LOGGER.error("Failed to generate thumbnail for %s (exit %s)", video_path, completed.returncode)
            return False
        if not output_path.exists():
            LOGGER.error("ffmpeg reported success but wrote nothing for %s", video_path)
            return False
        return True


def _discard(path: Path) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError as exc:
        LOGGER.warning("Could not remove partial thumbnail %s: %s", path, exc)


__all__ = [
    "DEFAULT_FFMPEG",
    "DEFAULT_JPEG_QUALITY",
    "OUTCOME_FAILED",
    "OUTCOME_GENERATED",
    "OUTCOME_NO_DURATION",
    "OUTCOME_SKIPPED",
    "STALENESS_EXISTS",
    "STALENESS_MTIME",
    "ThumbnailMaterializer",
    "ThumbnailOutcome",
    "ThumbnailSettings",
    "extract_command",
    "midpoint",
    "thumbnail_path",
]
