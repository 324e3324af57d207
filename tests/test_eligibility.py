# MergeVersions test scripts
from __future__ import annotations

import io

from _logging import Logger
from mv_platform.eligibility import EligibilityFilter, contains_sub_path

from conftest import episode, movie


def test_contains_sub_path_prefix_rules() -> None:
    assert contains_sub_path("/media/movies", "/media/movies/a.mkv")
    assert contains_sub_path("/media/movies/", "/media/movies/sub/a.mkv")
    assert contains_sub_path("/media/movies", "/media/movies")
    assert contains_sub_path("C:\\Media\\Movies", "C:/Media/Movies/a.mkv")
    assert not contains_sub_path("/media/mov", "/media/movies/a.mkv")
    assert not contains_sub_path("/media/movies", "/other/a.mkv")
    assert not contains_sub_path("", "/media/movies/a.mkv")
    assert not contains_sub_path("/media/movies", None)


def test_excluded_path_is_never_eligible() -> None:
    filt = EligibilityFilter(["/media/4k"])
    assert filt.is_eligible(movie("a", path="/media/4k/a.mkv")) is False
    assert filt.is_eligible(movie("b", path="/media/4k/sub/b.mkv", tmdb=None)) is False
    assert filt.is_eligible(episode("c", path="/media/4k/show/e1.mkv")) is False
    assert filt.is_eligible(movie("d", path="/media/hd/d.mkv")) is True


def test_no_exclusions_means_everything_is_eligible() -> None:
    filt = EligibilityFilter(None)
    assert filt(movie("a")) is True
    assert EligibilityFilter([" ", ""]).is_eligible(movie("b")) is True


def test_extra_predicates_compose_with_and() -> None:
    def not_bonus(item) -> bool:
        return "bonus" not in (item.path or "")

    filt = EligibilityFilter(["/media/4k"], extra=[not_bonus])
    assert filt.is_eligible(movie("a", path="/media/hd/a.mkv")) is True
    assert filt.is_eligible(movie("b", path="/media/hd/bonus/b.mkv")) is False
    assert filt.is_eligible(movie("c", path="/media/4k/c.mkv")) is False

    filt.add_predicate(lambda it: it.year != 1999)
    assert filt.is_eligible(movie("d", path="/media/hd/d.mkv", year=1999)) is False


def test_live_source_is_read_on_every_check_and_snapshot_freezes() -> None:
    locs: list[str] = []
    filt = EligibilityFilter(lambda: locs)
    item = movie("a", path="/media/old/a.mkv")

    frozen = filt.snapshot()
    assert filt.is_eligible(item) is True

    locs.append("/media/old")
    assert filt.is_eligible(item) is False
    assert frozen.is_eligible(item) is True


def test_every_decision_is_logged_with_identity() -> None:
    stream = io.StringIO()
    log = Logger(stream=stream, use_color=False, show_time=False).child("VERSIONS")
    filt = EligibilityFilter(["/media/4k"], log=log)

    filt.is_eligible(movie("id-1", name="Heat", year=1995, path="/media/4k/heat.mkv"))
    filt.is_eligible(movie("id-2", name="Heat", year=1995, path="/media/hd/heat.mkv"))

    lines = stream.getvalue().splitlines()
    assert len(lines) == 2
    assert "not eligible" in lines[0]
    assert "'Heat' (1995)" in lines[0] and "/media/4k/heat.mkv" in lines[0] and "id-1" in lines[0]
    assert "is eligible" in lines[1] and "id-2" in lines[1]
    assert lines[0].startswith("[VERSIONS] INFO")
