# mv_platform/grouping.py
# Duplicate-identity keys and grouping.
# Copyright (c) 2025-2026 CrossWatch / Cenodude (https://github.com/cenodude/CrossWatch)
from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import Any

from .models import DuplicateGroup, ItemKind, MediaItem

KeyFn = Callable[[MediaItem], "tuple[Any, ...] | None"]


def movie_key(item: MediaItem) -> tuple[Any, ...] | None:
    # same TMDb id under the same parent folder; other folders/libraries never mix
    tmdb = item.tmdb_id
    if not tmdb:
        return None
    return (tmdb, item.parent_id)


def episode_key(item: MediaItem) -> tuple[Any, ...] | None:
    # exact match only; inconsistent naming is not reconciled
    return (item.series_name, item.season_name, item.name, item.index_number, item.year)


def key_for(kind: ItemKind) -> KeyFn:
    return movie_key if kind is ItemKind.MOVIE else episode_key


def group_items(items: Iterable[MediaItem], key: KeyFn) -> list[DuplicateGroup]:
    buckets: dict[tuple[Any, ...], DuplicateGroup] = {}
    for it in items:
        k = key(it)
        if k is None:
            continue
        grp = buckets.get(k)
        if grp is None:
            grp = buckets[k] = DuplicateGroup(key=k)
        grp.items.append(it)
    return list(buckets.values())


def find_duplicates(items: Iterable[MediaItem], kind: ItemKind) -> list[DuplicateGroup]:
    """Groups of 2+ items sharing the kind's identity key."""
    return [g for g in group_items(items, key_for(kind)) if len(g) > 1]


__all__ = ["movie_key", "episode_key", "key_for", "group_items", "find_duplicates"]
