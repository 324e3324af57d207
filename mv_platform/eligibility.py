# mv_platform/eligibility.py
# Copyright (c) 2025-2026 CrossWatch / Cenodude (https://github.com/cenodude/CrossWatch)
from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from typing import Any

from .models import MediaItem

Predicate = Callable[[MediaItem], bool]


def _norm_path(p: Any) -> str:
    s = str(p or "").strip().replace("\\", "/")
    while len(s) > 1 and s.endswith("/"):
        s = s[:-1]
    return s


def contains_sub_path(parent: str | None, path: str | None) -> bool:
    """True when `path` is `parent` itself or lives somewhere below it."""
    par = _norm_path(parent)
    sub = _norm_path(path)
    if not par or not sub:
        return False
    if sub == par:
        return True
    if par == "/":
        return sub.startswith("/")
    return sub.startswith(par + "/")


class EligibilityFilter:
    """
    Decides whether an item may take part in a merge or split.

    Exclusions come from a callable so config edits are picked up; `snapshot()`
    freezes the current list for the duration of a batch. Extra predicates are
    ANDed after the location check.
    """

    def __init__(
        self,
        excluded_locations: Callable[[], Sequence[str]] | Sequence[str] | None = None,
        *,
        log: Any = None,
        extra: Iterable[Predicate] = (),
    ):
        if excluded_locations is None:
            self._source: Callable[[], Sequence[str]] = lambda: []
        elif callable(excluded_locations):
            self._source = excluded_locations
        else:
            frozen = list(excluded_locations)
            self._source = lambda: frozen
        self._log = log
        self._extra: list[Predicate] = list(extra)

    def add_predicate(self, pred: Predicate) -> None:
        self._extra.append(pred)

    def excluded(self) -> list[str]:
        return [s for s in (self._source() or []) if str(s or "").strip()]

    def snapshot(self) -> "EligibilityFilter":
        return EligibilityFilter(self.excluded(), log=self._log, extra=self._extra)

    def _say(self, msg: str) -> None:
        if self._log is not None:
            self._log.info(msg)

    def is_eligible(self, item: MediaItem) -> bool:
        if any(contains_sub_path(loc, item.path) for loc in self.excluded()):
            self._say(
                f"Item '{item.name}' ({item.year}) located in '{item.path}' with id '{item.id}' "
                f"is not eligible for merging due to location exclusion."
            )
            return False
        for pred in self._extra:
            if not pred(item):
                self._say(
                    f"Item '{item.name}' ({item.year}) located in '{item.path}' with id '{item.id}' "
                    f"is not eligible for merging ({getattr(pred, '__name__', 'predicate')})."
                )
                return False
        self._say(
            f"Item '{item.name}' ({item.year}) located in '{item.path}' with id '{item.id}' "
            f"is eligible for merging."
        )
        return True

    __call__ = is_eligible


__all__ = ["EligibilityFilter", "contains_sub_path", "Predicate"]
