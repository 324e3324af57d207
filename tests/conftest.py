# MergeVersions test scripts
from __future__ import annotations

import io
import sys
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, Sequence

import pytest

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from _logging import Logger  # noqa: E402
from mv_platform._types import MergeContext  # noqa: E402
from mv_platform.manager import MergeVersionsManager  # noqa: E402
from mv_platform.models import ItemKind, MediaItem, MergeState  # noqa: E402


def movie(iid: str, *, tmdb: str | None = "100", parent: str = "F", path: str | None = None,
          name: str = "Movie", year: int = 2001) -> MediaItem:
    return MediaItem(
        id=iid,
        kind=ItemKind.MOVIE,
        name=name,
        year=year,
        path=path or f"/media/{parent}/{iid}.mkv",
        parent_id=parent,
        provider_ids={"Tmdb": tmdb} if tmdb else {},
    )


def episode(iid: str, *, index: int = 1, name: str = "Pilot", series: str = "Show",
            season: str = "Season 1", year: int = 2020, path: str | None = None) -> MediaItem:
    return MediaItem(
        id=iid,
        kind=ItemKind.EPISODE,
        name=name,
        year=year,
        path=path or f"/tv/{iid}.mkv",
        parent_id="S1",
        series_name=series,
        season_name=season,
        index_number=index,
    )


@dataclass
class FakeLibrary:
    items: list[MediaItem] = field(default_factory=list)
    merge_calls: list[list[str]] = field(default_factory=list)
    split_calls: list[str] = field(default_factory=list)
    fail_merge_for: set[str] = field(default_factory=set)
    fail_split_for: set[str] = field(default_factory=set)
    primary_of: dict[str, str] = field(default_factory=dict)
    alternates: dict[str, list[str]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self._lock = threading.Lock()

    def query(
        self,
        kind: ItemKind,
        *,
        recursive: bool = True,
        exclude_virtual: bool = True,
        require_external_id: bool = False,
    ) -> Sequence[MediaItem]:
        out = [it for it in self.items if it.kind is kind]
        if require_external_id:
            out = [it for it in out if it.tmdb_id]
        return out

    def merge(self, ids: Iterable[str]) -> None:
        ids = list(ids)
        with self._lock:
            self.merge_calls.append(ids)
            if self.fail_merge_for & set(ids):
                raise RuntimeError("merge exploded")
            primary, rest = ids[0], ids[1:]
            self.alternates.setdefault(primary, []).extend(rest)
            for r in rest:
                self.primary_of[r] = primary

    def split(self, item_id: str) -> None:
        with self._lock:
            self.split_calls.append(item_id)
            if item_id in self.fail_split_for:
                raise RuntimeError("split exploded")
            for alt in self.alternates.pop(item_id, []):
                self.primary_of.pop(alt, None)

    def get_merge_state(self, item: MediaItem) -> MergeState:
        with self._lock:
            return MergeState(
                is_primary=item.id not in self.primary_of,
                linked_alternate_count=len(self.alternates.get(item.id, [])),
            )

    def state_of(self, iid: str) -> MergeState:
        return self.get_merge_state(MediaItem(id=iid, kind=ItemKind.MOVIE))


@pytest.fixture()
def log_stream() -> io.StringIO:
    return io.StringIO()


@pytest.fixture()
def test_log(log_stream: io.StringIO) -> Logger:
    return Logger(stream=log_stream, level="debug", use_color=False, show_time=False).child("VERSIONS")


@pytest.fixture()
def library() -> FakeLibrary:
    return FakeLibrary()


@pytest.fixture()
def make_manager(library: FakeLibrary, test_log: Logger):
    def _make(*, excluded: Sequence[str] = (), **kw: Any) -> MergeVersionsManager:
        locs = list(excluded)
        ctx = MergeContext(
            index=library,
            versions=library,
            merge_state=library,
            excluded_locations=lambda: locs,
            log=test_log,
            **kw,
        )
        return MergeVersionsManager(ctx)
    return _make


@pytest.fixture()
def config_base(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.setenv("CONFIG_BASE", str(tmp_path))
    return tmp_path
