# mv_platform/models.py
# Library item model shared by the grouping, eligibility and orchestration layers.
# Copyright (c) 2025-2026 CrossWatch / Cenodude (https://github.com/cenodude/CrossWatch)
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping


class ItemKind(str, Enum):
    MOVIE = "Movie"
    EPISODE = "Episode"

    @classmethod
    def parse(cls, value: Any) -> "ItemKind":
        """Accept 'Movie', 'movies', 'episode', 'Episodes', ... (case-insensitive)."""
        if isinstance(value, ItemKind):
            return value
        s = str(value or "").strip().lower()
        if s in ("movie", "movies"):
            return cls.MOVIE
        if s in ("episode", "episodes"):
            return cls.EPISODE
        raise ValueError(f"unknown item kind: {value!r}")

    @property
    def plural(self) -> str:
        return "movies" if self is ItemKind.MOVIE else "episodes"


@dataclass(frozen=True)
class MediaItem:
    id: str
    kind: ItemKind
    name: str | None = None
    year: int | None = None
    path: str | None = None
    parent_id: str | None = None
    provider_ids: Mapping[str, str] = field(default_factory=dict)
    # episodes only
    series_name: str | None = None
    season_name: str | None = None
    index_number: int | None = None
    # source payload, kept for adapters that derive merge state from it
    raw: Mapping[str, Any] = field(default_factory=dict, repr=False, compare=False)

    def provider_id(self, name: str) -> str | None:
        want = name.strip().lower()
        for k, v in (self.provider_ids or {}).items():
            if str(k).strip().lower() == want:
                sv = str(v or "").strip()
                return sv or None
        return None

    @property
    def tmdb_id(self) -> str | None:
        return self.provider_id("tmdb")

    def label(self) -> str:
        """'Name (Year)' for movies, 'Index (Series)' for episodes."""
        if self.kind is ItemKind.EPISODE:
            return f"{self.index_number} ({self.series_name})"
        return f"{self.name} ({self.year})"


@dataclass(frozen=True)
class MergeState:
    is_primary: bool = True
    linked_alternate_count: int = 0

    @property
    def is_unmerged(self) -> bool:
        # standalone, or a primary that carries no alternates yet
        return self.is_primary and self.linked_alternate_count == 0


STANDALONE = MergeState(is_primary=True, linked_alternate_count=0)


@dataclass
class DuplicateGroup:
    key: tuple[Any, ...]
    items: list[MediaItem] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.items)

    @property
    def ids(self) -> list[str]:
        return [it.id for it in self.items]


__all__ = ["ItemKind", "MediaItem", "MergeState", "STANDALONE", "DuplicateGroup"]
