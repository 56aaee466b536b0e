from __future__ import annotations

from browse.engine import SearchSession, normalize, normalize_catalog

LISTING = [{"name": "Movies", "type": "directory", "path": "Movies"}]

CATALOG_RECORDS = [
    {"name": "Movies", "type": "directory", "path": "Movies"},
    {"name": "Alien (1979).mkv", "type": "file", "path": "Movies/Alien (1979).mkv"},
    {"name": "Aliens.mp4", "type": "file", "path": "Movies/Aliens.mp4"},
    {"name": "Heat.mp4", "type": "file", "path": "Movies/Heat.mp4"},
    {"name": "Série", "type": "directory", "path": "Série"},
]


def _session(records=CATALOG_RECORDS):
    catalog = normalize_catalog(records)
    session = SearchSession(lambda: catalog)
    session.navigate("", LISTING)
    return session


def _paths(results):
    return [entry.path for entry in results]


def test_normalize_keeps_letters_and_digits() -> None:
    assert normalize("Alien (1979).MKV") == "alien1979mkv"
    assert normalize("Série_01") == "série01"
    assert normalize("--") == ""


def test_short_terms_return_listing() -> None:
    session = _session()

    assert session.search("") == LISTING
    assert session.search("al") == LISTING
    assert session.search("  al  ") == LISTING
    assert session.full_scans == 0


def test_term_without_letters_returns_listing() -> None:
    assert _session().search("...") == LISTING


def test_search_matches_name_and_path() -> None:
    session = _session()

    assert _paths(session.search("alien")) == ["Movies/Alien (1979).mkv", "Movies/Aliens.mp4"]
    assert _paths(session.search("movies")) == [
        "Movies",
        "Movies/Alien (1979).mkv",
        "Movies/Aliens.mp4",
        "Movies/Heat.mp4",
    ]


def test_punctuation_is_ignored_in_query() -> None:
    session = _session()

    assert _paths(session.search("a.m")) == []
    assert _paths(session.search("(1979)")) == ["Movies/Alien (1979).mkv"]


def test_extension_fragment_matches_only_mp4() -> None:
    session = _session(
        [
            {"name": "a.mp4", "type": "file", "path": "a.mp4"},
            {"name": "b.mkv", "type": "file", "path": "b.mkv"},
        ]
    )

    assert _paths(session.search("a.m")) == ["a.mp4"]


def test_repeated_query_is_served_from_cache() -> None:
    session = _session()

    first = session.search("heat")
    second = session.search("HEAT ")

    assert second is first
    assert session.full_scans == 1
    assert session.cache_hits == 1


def test_extending_query_narrows_previous_result() -> None:
    session = _session()

    broad = session.search("ali")
    narrow = session.search("alie")
    narrower = session.search("aliens")

    assert session.full_scans == 1
    assert session.narrowed_scans == 2
    assert set(_paths(narrow)) <= set(_paths(broad))
    assert _paths(narrower) == ["Movies/Aliens.mp4"]


def test_unrelated_query_rescans_catalog() -> None:
    session = _session()

    session.search("alien")
    assert _paths(session.search("heat")) == ["Movies/Heat.mp4"]
    assert session.full_scans == 2


def test_navigate_clears_cache() -> None:
    session = _session()
    session.search("alien")

    session.navigate("Movies", [])

    assert session.cache == {}
    assert session.last_query == ""


def test_malformed_entries_never_match() -> None:
    session = _session(
        [
            {"name": "Heat.mp4", "type": "file"},
            {"type": "file", "path": "Heat.mp4"},
            {"name": 7, "type": "file", "path": "Heat7.mp4"},
            "not-a-record",
            {"name": "Heat.mp4", "type": "file", "path": "x/Heat.mp4"},
        ]
    )

    assert _paths(session.search("heat")) == ["x/Heat.mp4"]


def test_catalog_not_loaded_returns_listing() -> None:
    session = SearchSession(lambda: None)
    session.navigate("", LISTING)

    assert session.search("alien") == LISTING
    assert session.cache == {}


def test_new_catalog_generation_drops_cache() -> None:
    generations = [normalize_catalog(CATALOG_RECORDS)]
    session = SearchSession(lambda: generations[-1])
    session.navigate("", LISTING)
    assert _paths(session.search("heat")) == ["Movies/Heat.mp4"]

    generations.append(
        normalize_catalog(CATALOG_RECORDS + [{"name": "Heat 2.mp4", "type": "file", "path": "Heat 2.mp4"}])
    )

    assert _paths(session.search("heat")) == ["Movies/Heat.mp4", "Heat 2.mp4"]
    assert session.full_scans == 2


def test_end_to_end_catalog_with_directory_prefix() -> None:
    listing = [{"name": "dir", "type": "directory", "path": "dir"}]
    catalog = normalize_catalog(
        [
            {"name": "a.mp4", "type": "file", "path": "dir/a.mp4"},
            {"name": "ab.mp4", "type": "file", "path": "dir/ab.mp4"},
            {"name": "b.mkv", "type": "file", "path": "b.mkv"},
        ]
    )
    session = SearchSession(lambda: catalog)
    session.navigate("", listing)

    assert session.search("a") == listing
    assert session.search("ab") == listing
    assert session.full_scans == 0
    assert _paths(session.search("a.m")) == ["dir/a.mp4"]


def test_results_cannot_corrupt_cache() -> None:
    session = _session()

    first = session.search("alien")

    assert isinstance(first, tuple)
    assert session.cache["alien"] is first
    assert _paths(session.search("alien")) == ["Movies/Alien (1979).mkv", "Movies/Aliens.mp4"]
