from __future__ import annotations

import os
from pathlib import Path

import pytest

from media.walker import TreeWalker, WalkError, iter_videos

EXTENSIONS = {".mp4", ".mkv", ".m4v"}


def _touch(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"")


def _block(monkeypatch, blocked: Path) -> None:
    real_scandir = os.scandir

    def fake_scandir(path="."):
        if Path(path) == blocked:
            raise PermissionError(13, "Permission denied", str(path))
        return real_scandir(path)

    monkeypatch.setattr(os, "scandir", fake_scandir)


@pytest.fixture()
def tree(tmp_path: Path) -> Path:
    root = tmp_path / "media"
    _touch(root / "a.mp4")
    _touch(root / "notes.txt")
    _touch(root / "Show" / "S01" / "e1.MKV")
    _touch(root / "Show" / "e0.m4v")
    _touch(root / ".hidden" / "secret.mp4")
    (root / "Empty").mkdir()
    return root


def test_walk_reaches_every_entry(tree: Path) -> None:
    walker = TreeWalker(EXTENSIONS)

    relatives = {entry.relative for entry in walker.walk(tree)}

    assert relatives == {
        "a.mp4",
        "notes.txt",
        "Show",
        "Show/S01",
        "Show/S01/e1.MKV",
        "Show/e0.m4v",
        ".hidden",
        ".hidden/secret.mp4",
        "Empty",
    }
    assert walker.errors == []


def test_directory_is_yielded_before_its_children(tree: Path) -> None:
    order = [entry.relative for entry in TreeWalker(EXTENSIONS).walk(tree)]

    assert order.index("Show") < order.index("Show/S01") < order.index("Show/S01/e1.MKV")


def test_iter_videos_matches_extensions_case_insensitively(tree: Path) -> None:
    videos = {entry.relative for entry in iter_videos(TreeWalker(EXTENSIONS), tree)}

    assert videos == {"a.mp4", "Show/S01/e1.MKV", "Show/e0.m4v", ".hidden/secret.mp4"}


def test_hidden_entries_can_be_excluded(tree: Path) -> None:
    walker = TreeWalker(EXTENSIONS, include_hidden=False)

    relatives = {entry.relative for entry in walker.walk(tree)}

    assert not any(rel.startswith(".hidden") for rel in relatives)


def test_unreadable_subdirectory_is_skipped(monkeypatch, tree: Path) -> None:
    _block(monkeypatch, tree / "Show")
    walker = TreeWalker(EXTENSIONS)

    relatives = {entry.relative for entry in walker.walk(tree)}

    assert "Show" in relatives
    assert "Show/e0.m4v" not in relatives
    assert "a.mp4" in relatives
    assert [failure.path for failure in walker.errors] == [tree / "Show"]


def test_unreadable_root(monkeypatch, tree: Path) -> None:
    _block(monkeypatch, tree)

    walker = TreeWalker(EXTENSIONS)
    assert list(walker.walk(tree)) == []
    assert len(walker.errors) == 1

    with pytest.raises(WalkError):
        list(TreeWalker(EXTENSIONS).walk(tree, strict=True))


def test_directory_symlinks_are_not_followed(tmp_path: Path, tree: Path) -> None:
    (tree / "loop").symlink_to(tree, target_is_directory=True)

    relatives = [entry.relative for entry in TreeWalker(EXTENSIONS).walk(tree)]

    assert not any(rel.startswith("loop/") for rel in relatives)
    assert "loop" not in relatives
