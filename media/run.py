"""Sequential thumbnail batch over a media tree."""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional

from core.settings import video_extensions

from .thumbs import (
    OUTCOME_FAILED,
    OUTCOME_GENERATED,
    OUTCOME_NO_DURATION,
    OUTCOME_SKIPPED,
    ThumbnailMaterializer,
    ThumbnailOutcome,
    ThumbnailSettings,
    thumbnail_path,
)
from .walker import TreeWalker, iter_videos

LOGGER = logging.getLogger("vidgrid.media.run")

ProgressCallback = Callable[[ThumbnailOutcome], None]


@dataclass(slots=True)
class ThumbnailSummary:
    videos: int = 0
    generated: int = 0
    skipped: int = 0
    no_duration: int = 0
    failed: int = 0
    walk_errors: int = 0
    elapsed_s: float = 0.0

    def record(self, outcome: ThumbnailOutcome) -> None:
        self.videos += 1
        if outcome.status == OUTCOME_GENERATED:
            self.generated += 1
        elif outcome.status == OUTCOME_SKIPPED:
            self.skipped += 1
        elif outcome.status == OUTCOME_NO_DURATION:
            self.no_duration += 1
        elif outcome.status == OUTCOME_FAILED:
            self.failed += 1

    def as_dict(self) -> Dict[str, Any]:
        return {
            "videos": self.videos,
            "generated": self.generated,
            "skipped": self.skipped,
            "no_duration": self.no_duration,
            "failed": self.failed,
            "walk_errors": self.walk_errors,
            "elapsed_s": round(self.elapsed_s, 3),
        }


class ThumbnailRunner:
    """Walks a tree and materializes a thumbnail for each video, one at a time."""

    def __init__(
        self,
        materializer: ThumbnailMaterializer,
        walker: TreeWalker,
        *,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> None:
        self.materializer = materializer
        self.walker = walker
        self.progress_callback = progress_callback

    @classmethod
    def from_settings(cls, thumbs_root: Path, settings: Mapping[str, Any]) -> "ThumbnailRunner":
        section = settings.get("thumbnails") if isinstance(settings.get("thumbnails"), Mapping) else {}
        materializer = ThumbnailMaterializer(
            thumbs_root,
            settings=ThumbnailSettings.from_mapping(section),
        )
        return cls(materializer, TreeWalker(video_extensions(settings)))

    def _emit(self, outcome: ThumbnailOutcome) -> None:
        if self.progress_callback is None:
            return
        try:
            self.progress_callback(outcome)
        except Exception:
            LOGGER.debug("Progress callback failed", exc_info=True)

    def run(self, root: Path) -> ThumbnailSummary:
        summary = ThumbnailSummary()
        started = time.perf_counter()
        for entry in iter_videos(self.walker, Path(root)):
            try:
                outcome = self.materializer.materialize(entry.path, entry.relative)
            except Exception as exc:  # noqa: BLE001
                LOGGER.error("Error processing %s: %s", entry.path, exc)
                outcome = ThumbnailOutcome(
                    video=entry.path,
                    target=thumbnail_path(self.materializer.thumbs_root, entry.relative),
                    status=OUTCOME_FAILED,
                )
            summary.record(outcome)
            self._emit(outcome)
        summary.walk_errors = len(self.walker.errors)
        summary.elapsed_s = time.perf_counter() - started
        LOGGER.info(
            "Thumbnail run finished: %s videos, %s generated, %s skipped, %s without duration, %s failed",
            summary.videos,
            summary.generated,
            summary.skipped,
            summary.no_duration,
            summary.failed,
        )
        return summary


__all__ = ["ThumbnailRunner", "ThumbnailSummary"]
