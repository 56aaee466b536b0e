from __future__ import annotations

import math
import os
import subprocess
from pathlib import Path
from typing import List

import pytest

from media import thumbs
from media.thumbs import (
    OUTCOME_FAILED,
    OUTCOME_GENERATED,
    OUTCOME_NO_DURATION,
    OUTCOME_SKIPPED,
    ThumbnailMaterializer,
    ThumbnailSettings,
    thumbnail_path,
)


class FakeFfmpeg:
    """Stands in for ``subprocess.run``: writes the output file named last on the command line."""

    def __init__(self, returncode: int = 0, write: bool = True) -> None:
        self.returncode = returncode
        self.write = write
        self.calls: List[List[str]] = []

    def __call__(self, cmd, **kwargs):
        self.calls.append(list(cmd))
        if self.write:
            Path(cmd[-1]).write_bytes(b"\xff\xd8jpeg")
        return subprocess.CompletedProcess(cmd, self.returncode)

    def seek(self, index: int = -1) -> float:
        cmd = self.calls[index]
        return float(cmd[cmd.index("-ss") + 1])


@pytest.fixture()
def video(tmp_path: Path) -> Path:
    root = tmp_path / "media"
    (root / "show").mkdir(parents=True)
    path = root / "show" / "ep1.mp4"
    path.write_bytes(b"video")
    return path


def test_thumbnail_path_appends_suffix(tmp_path: Path) -> None:
    assert thumbnail_path(tmp_path, "show/ep1.mp4") == tmp_path / "show" / "ep1.mp4.jpg"


def test_generates_at_midpoint(monkeypatch, tmp_path: Path, video: Path) -> None:
    fake = FakeFfmpeg()
    monkeypatch.setattr(thumbs.subprocess, "run", fake)
    materializer = ThumbnailMaterializer(tmp_path / "thumbs", probe=lambda _path: 10.0)

    outcome = materializer.materialize(video, "show/ep1.mp4")

    assert outcome.status == OUTCOME_GENERATED
    assert outcome.target == tmp_path / "thumbs" / "show" / "ep1.mp4.jpg"
    assert outcome.target.read_bytes().startswith(b"\xff\xd8")
    assert fake.seek() == 5.0
    assert not outcome.target.with_name("ep1.mp4.jpg.tmp").exists()


def test_existing_thumbnail_is_not_regenerated(monkeypatch, tmp_path: Path, video: Path) -> None:
    fake = FakeFfmpeg()
    monkeypatch.setattr(thumbs.subprocess, "run", fake)
    probes: List[Path] = []

    def probe(path: Path) -> float:
        probes.append(path)
        return 8.0

    materializer = ThumbnailMaterializer(tmp_path / "thumbs", probe=probe)
    first = materializer.materialize(video, "show/ep1.mp4")
    second = materializer.materialize(video, "show/ep1.mp4")

    assert first.status == OUTCOME_GENERATED
    assert second.status == OUTCOME_SKIPPED
    assert len(fake.calls) == 1
    assert len(probes) == 1


def test_unknown_duration_skips_extraction(monkeypatch, tmp_path: Path, video: Path) -> None:
    fake = FakeFfmpeg()
    monkeypatch.setattr(thumbs.subprocess, "run", fake)
    materializer = ThumbnailMaterializer(tmp_path / "thumbs", probe=lambda _path: math.nan)

    outcome = materializer.materialize(video, "show/ep1.mp4")

    assert outcome.status == OUTCOME_NO_DURATION
    assert fake.calls == []
    assert not outcome.target.exists()


def test_failed_extraction_leaves_nothing_behind(monkeypatch, tmp_path: Path, video: Path) -> None:
    fake = FakeFfmpeg(returncode=1, write=True)
    monkeypatch.setattr(thumbs.subprocess, "run", fake)
    materializer = ThumbnailMaterializer(tmp_path / "thumbs", probe=lambda _path: 4.0)

    outcome = materializer.materialize(video, "show/ep1.mp4")

    assert outcome.status == OUTCOME_FAILED
    assert not outcome.target.exists()
    assert list(outcome.target.parent.iterdir()) == []


def test_missing_ffmpeg_is_a_failure(monkeypatch, tmp_path: Path, video: Path) -> None:
    def fake_run(cmd, **kwargs):
        raise FileNotFoundError(cmd[0])

    monkeypatch.setattr(thumbs.subprocess, "run", fake_run)
    materializer = ThumbnailMaterializer(tmp_path / "thumbs", probe=lambda _path: 4.0)

    assert materializer.materialize(video, "show/ep1.mp4").status == OUTCOME_FAILED


def test_mtime_policy_regenerates_stale_thumbnail(monkeypatch, tmp_path: Path, video: Path) -> None:
    fake = FakeFfmpeg()
    monkeypatch.setattr(thumbs.subprocess, "run", fake)
    target = thumbnail_path(tmp_path / "thumbs", "show/ep1.mp4")
    target.parent.mkdir(parents=True)
    target.write_bytes(b"old")
    os.utime(target, (1_000_000, 1_000_000))

    exists_policy = ThumbnailMaterializer(tmp_path / "thumbs", probe=lambda _path: 2.0)
    assert exists_policy.materialize(video, "show/ep1.mp4").status == OUTCOME_SKIPPED

    mtime_policy = ThumbnailMaterializer(
        tmp_path / "thumbs",
        settings=ThumbnailSettings(staleness_policy="mtime"),
        probe=lambda _path: 2.0,
    )
    assert mtime_policy.materialize(video, "show/ep1.mp4").status == OUTCOME_GENERATED
    assert target.read_bytes() != b"old"


def test_settings_from_mapping_falls_back_on_bad_values() -> None:
    settings = ThumbnailSettings.from_mapping(
        {"staleness_policy": "sometimes", "quality": 4, "probe_timeout_s": "7", "extract_timeout_s": 0}
    )

    assert settings.staleness_policy == "exists"
    assert settings.quality == 4
    assert settings.probe_timeout_s == 7.0
    assert settings.extract_timeout_s is None
    assert settings.ffmpeg_path == "ffmpeg"
