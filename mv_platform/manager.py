# mv_platform/manager.py
# Merge/split orchestration for movie and episode versions.
# Copyright (c) 2025-2026 CrossWatch / Cenodude (https://github.com/cenodude/CrossWatch)
from __future__ import annotations

import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from collections.abc import Callable, Iterable, Mapping, Sequence
from typing import Any, TypeVar

from _logging import log as _root_log

from ._types import BatchResult, MergeContext
from .eligibility import EligibilityFilter
from .grouping import find_duplicates
from .models import DuplicateGroup, ItemKind, MediaItem
from .progress import BatchProgress

T = TypeVar("T")


def _describe_group(group: DuplicateGroup) -> str:
    return ", ".join(f"{it.label()} [{it.id}]" for it in group.items)


def _describe_item(item: MediaItem) -> str:
    return f"{item.label()} [{item.id}]"


class MergeVersionsManager:
    def __init__(self, ctx: MergeContext):
        self.ctx = ctx
        self.log = ctx.log or _root_log.child("VERSIONS")
        self.eligibility = EligibilityFilter(ctx.excluded_locations, log=self.log)

    @classmethod
    def from_config(cls, cfg: Mapping[str, Any], library: Any, *, log: Any = None) -> "MergeVersionsManager":
        """Wire a library object that implements query/merge/split/get_merge_state."""
        m = dict((cfg or {}).get("merge") or {})
        if m.get("live_exclusions"):
            from .config_base import excluded_locations as source
        else:
            locs = list(m.get("locations_excluded") or [])
            source = lambda: locs
        ctx = MergeContext(
            index=library,
            versions=library,
            merge_state=library,
            excluded_locations=source,
            log=log,
            workers=int(m.get("workers") or 4),
            episode_workers=int(m.get("episode_workers") or 0),
            live_exclusions=bool(m.get("live_exclusions", False)),
            split_episodes_respect_exclusions=bool(m.get("split_episodes_respect_exclusions", False)),
        )
        return cls(ctx)

    # --- fetch ---------------------------------------------------------------
    def fetch_movies(self) -> list[MediaItem]:
        return list(self.ctx.index.query(
            ItemKind.MOVIE, recursive=True, exclude_virtual=True, require_external_id=True,
        ))

    def fetch_episodes(self) -> list[MediaItem]:
        return list(self.ctx.index.query(
            ItemKind.EPISODE, recursive=True, exclude_virtual=True, require_external_id=False,
        ))

    def fetch(self, kind: ItemKind) -> list[MediaItem]:
        return self.fetch_movies() if kind is ItemKind.MOVIE else self.fetch_episodes()

    # --- policy --------------------------------------------------------------
    def _batch_filter(self) -> EligibilityFilter:
        # one exclusion list per batch unless live mode is on
        return self.eligibility if self.ctx.live_exclusions else self.eligibility.snapshot()

    def is_eligible(self, item: MediaItem) -> bool:
        return self.eligibility.is_eligible(item)

    def is_unmerged(self, item: MediaItem) -> bool:
        return self.ctx.merge_state.get_merge_state(item).is_unmerged

    # --- merge ---------------------------------------------------------------
    def merge_group(self, candidates: Iterable[MediaItem], *, eligibility: EligibilityFilter | None = None) -> bool:
        """Merge the eligible, unmerged members of one group. Returns True if a merge call was made."""
        filt = eligibility or self.eligibility
        seen: set[str] = set()
        eligible: list[MediaItem] = []
        for it in candidates:
            if it.id in seen:
                continue
            seen.add(it.id)
            if self.is_unmerged(it) and filt.is_eligible(it):
                eligible.append(it)

        if len(eligible) < 2:
            self.log.debug(f"Skipping group: {len(eligible)} eligible unmerged item(s)")
            return False

        ids = [it.id for it in eligible]
        self.log.info(f"Merging {eligible[0].label()}")
        self.log.debug(f"Ids are {', '.join(ids)} Merging...")
        self.ctx.versions.merge(ids)
        self.log.debug("Merged")
        return True

    def merge_all(self, kind: ItemKind | str, progress: Any = None) -> BatchResult:
        kind = ItemKind.parse(kind)
        started = time.time()
        filt = self._batch_filter()
        items = self.fetch(kind)

        self.log.info(f"Scanning for repeated {kind.plural}")
        groups = find_duplicates(items, kind)
        res = BatchResult(action="merge", kind=kind.plural, total=len(groups), started_at=started)

        def _tally(made: bool) -> None:
            if made:
                res.merged += 1
            else:
                res.skipped += 1

        self._run_units(
            groups,
            lambda g: self.merge_group(g.items, eligibility=filt),
            workers=self.ctx.workers_for(kind),
            progress=progress,
            result=res,
            on_done=_tally,
            describe=_describe_group,
            verb="Merging",
        )
        return self._finish(res)

    # --- split ---------------------------------------------------------------
    def split_item(self, item: MediaItem) -> bool:
        self.log.info(f"Splitting {item.label()}")
        self.ctx.versions.split(item.id)
        return True

    def split_all(self, kind: ItemKind | str, progress: Any = None) -> BatchResult:
        kind = ItemKind.parse(kind)
        started = time.time()
        filt = self._batch_filter()
        items = self.fetch(kind)

        if kind is ItemKind.MOVIE or self.ctx.split_episodes_respect_exclusions:
            selected = [it for it in items if filt.is_eligible(it)]
        else:
            selected = items

        res = BatchResult(action="split", kind=kind.plural, total=len(selected), started_at=started)
        res.skipped = len(items) - len(selected)

        def _tally(_: bool) -> None:
            res.split += 1

        self._run_units(
            selected,
            self.split_item,
            workers=self.ctx.workers_for(kind),
            progress=progress,
            result=res,
            on_done=_tally,
            describe=_describe_item,
            verb="Splitting",
        )
        return self._finish(res)

    # --- entry points --------------------------------------------------------
    def merge_movies(self, progress: Any = None) -> BatchResult:
        return self.merge_all(ItemKind.MOVIE, progress)

    def split_movies(self, progress: Any = None) -> BatchResult:
        return self.split_all(ItemKind.MOVIE, progress)

    def merge_episodes(self, progress: Any = None) -> BatchResult:
        return self.merge_all(ItemKind.EPISODE, progress)

    def split_episodes(self, progress: Any = None) -> BatchResult:
        return self.split_all(ItemKind.EPISODE, progress)

    def run(self, action: str, kind: ItemKind | str, progress: Any = None) -> BatchResult:
        act = str(action or "").strip().lower()
        if act == "merge":
            return self.merge_all(kind, progress)
        if act == "split":
            return self.split_all(kind, progress)
        raise ValueError(f"unknown action: {action!r}")

    # --- batch runner --------------------------------------------------------
    def _run_units(
        self,
        units: Sequence[T],
        fn: Callable[[T], bool],
        *,
        workers: int,
        progress: Any,
        result: BatchResult,
        on_done: Callable[[bool], None],
        describe: Callable[[T], str],
        verb: str,
    ) -> None:
        prog = BatchProgress(progress, len(units), log=self.log)

        def _settle(unit: T, outcome: bool | None, err: BaseException | None) -> None:
            result.processed += 1
            if err is not None:
                result.errors += 1
                self.log.error(f"{verb} failed for {describe(unit)}: {err}")
            else:
                on_done(bool(outcome))
            prog.step()

        if workers <= 1 or len(units) <= 1:
            for unit in units:
                try:
                    outcome = fn(unit)
                except Exception as e:
                    _settle(unit, None, e)
                else:
                    _settle(unit, outcome, None)
        else:
            with ThreadPoolExecutor(max_workers=min(workers, len(units))) as ex:
                futs = {ex.submit(fn, u): u for u in units}
                for fut in as_completed(futs):
                    unit = futs[fut]
                    try:
                        outcome = fut.result()
                    except Exception as e:
                        _settle(unit, None, e)
                    else:
                        _settle(unit, outcome, None)

        prog.finish()

    def _finish(self, res: BatchResult) -> BatchResult:
        res.finished_at = time.time()
        res.duration_ms = int((res.finished_at - res.started_at) * 1000)
        summary = (
            f"{res.action.capitalize()} {res.kind} done: total={res.total} merged={res.merged} "
            f"split={res.split} skipped={res.skipped} errors={res.errors} ({res.duration_ms} ms)"
        )
        if res.errors:
            self.log.warn(summary)
        else:
            self.log.success(summary)
        return res


__all__ = ["MergeVersionsManager"]
