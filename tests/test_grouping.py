# MergeVersions test scripts
from __future__ import annotations

from mv_platform.grouping import episode_key, find_duplicates, group_items, movie_key
from mv_platform.models import ItemKind, MediaItem

from conftest import episode, movie


def test_movies_group_by_tmdb_and_parent_folder() -> None:
    items = [
        movie("A", parent="F"),
        movie("B", parent="F"),
        movie("C", parent="F"),
        movie("D", parent="F2"),
    ]
    groups = find_duplicates(items, ItemKind.MOVIE)
    assert len(groups) == 1
    assert sorted(groups[0].ids) == ["A", "B", "C"]
    assert groups[0].key == ("100", "F")


def test_singletons_and_id_less_movies_are_not_candidates() -> None:
    items = [
        movie("A", tmdb="1"),
        movie("B", tmdb="2"),
        movie("C", tmdb=None),
        movie("D", tmdb=None),
    ]
    assert find_duplicates(items, ItemKind.MOVIE) == []
    assert movie_key(items[2]) is None


def test_tmdb_lookup_ignores_key_case_and_blank_values() -> None:
    a = MediaItem(id="a", kind=ItemKind.MOVIE, parent_id="F", provider_ids={"TMDB": " 550 "})
    b = MediaItem(id="b", kind=ItemKind.MOVIE, parent_id="F", provider_ids={"tmdb": "550"})
    c = MediaItem(id="c", kind=ItemKind.MOVIE, parent_id="F", provider_ids={"Tmdb": "  "})
    assert movie_key(a) == movie_key(b) == ("550", "F")
    assert movie_key(c) is None


def test_episodes_group_by_exact_composite_key() -> None:
    e1 = episode("e1", path="/tv/a/s01e01.mkv")
    e2 = episode("e2", path="/tv/b/s01e01.mkv")
    e3 = episode("e3", index=2, name="Second")
    groups = find_duplicates([e1, e2, e3], ItemKind.EPISODE)
    assert len(groups) == 1
    assert sorted(groups[0].ids) == ["e1", "e2"]
    assert episode_key(e1) == ("Show", "Season 1", "Pilot", 1, 2020)


def test_episode_naming_differences_are_not_reconciled() -> None:
    e1 = episode("e1", name="Pilot")
    e2 = episode("e2", name="pilot")
    e3 = episode("e3", year=2021)
    assert find_duplicates([e1, e2, e3], ItemKind.EPISODE) == []


def test_grouping_is_order_independent() -> None:
    items = [movie("A"), movie("X", tmdb="7"), movie("B"), movie("Y", tmdb="7")]
    fwd = {g.key: sorted(g.ids) for g in group_items(items, movie_key)}
    rev = {g.key: sorted(g.ids) for g in group_items(list(reversed(items)), movie_key)}
    assert fwd == rev
