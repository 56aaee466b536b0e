from __future__ import annotations

from browse.cell import (
    EMPTY_DIRECTORY,
    ERROR_LOADING,
    NO_MATCHES,
    BrowserCell,
    Listing,
    Playing,
    Searching,
    on_search,
    parent_path,
)
from browse.engine import normalize_catalog

TREE = {
    "": [
        {"name": "Movies", "type": "directory", "path": "Movies"},
        {"name": "clip.mp4", "type": "file", "path": "clip.mp4"},
    ],
    "Movies": [{"name": "Heat.mp4", "type": "file", "path": "Movies/Heat.mp4"}],
    "Empty": [],
}

CATALOG = normalize_catalog(
    [
        {"name": "Movies", "type": "directory", "path": "Movies"},
        {"name": "Heat.mp4", "type": "file", "path": "Movies/Heat.mp4"},
        {"name": "clip.mp4", "type": "file", "path": "clip.mp4"},
    ]
)


def _loader(path):
    if path not in TREE:
        raise OSError(f"missing {path}")
    return TREE[path]


def _cell(**kwargs) -> BrowserCell:
    cell = BrowserCell(_loader, lambda: CATALOG, **kwargs)
    cell.navigate("")
    return cell


def test_parent_path() -> None:
    assert parent_path("a/b/c") == "a/b"
    assert parent_path("a") == ""
    assert parent_path("") == ""


def test_search_transition_ignores_blank_terms() -> None:
    assert on_search(Listing(path="x"), "  ") == Listing(path="x")
    assert on_search(Listing(path="x"), "heat") == Searching(path="x", term="heat")
    playing = Playing(path="x", video="x/a.mp4")
    assert on_search(playing, "heat") is playing


def test_navigate_and_go_up() -> None:
    cell = _cell()

    cell.navigate("Movies")
    assert cell.view() == TREE["Movies"]

    cell.go_up()
    assert cell.path == ""
    assert cell.view() == TREE[""]


def test_typing_searches_catalog() -> None:
    cell = _cell()

    cell.type_search("he")
    assert cell.view() == TREE[""]

    cell.type_search("heat")
    assert [entry.path for entry in cell.view()] == ["Movies/Heat.mp4"]
    assert cell.message is None

    cell.type_search("heatwave")
    assert cell.view() == []
    assert cell.message == NO_MATCHES


def test_results_are_capped() -> None:
    cell = _cell(max_results=1)

    cell.type_search("mp4")

    assert len(cell.view()) == 1


def test_play_and_back_returns_to_listing() -> None:
    cell = _cell()
    cell.navigate("Movies")

    cell.play("Movies/Heat.mp4")
    assert isinstance(cell.state, Playing)
    assert cell.view() == []

    cell.back()
    assert cell.state == Listing(path="Movies")
    assert cell.view() == TREE["Movies"]


def test_load_errors_and_empty_directories_are_reported() -> None:
    cell = _cell()

    cell.navigate("Empty")
    assert cell.message == EMPTY_DIRECTORY

    cell.navigate("missing")
    assert cell.error == ERROR_LOADING
    assert cell.message == ERROR_LOADING
    assert cell.view() == []
