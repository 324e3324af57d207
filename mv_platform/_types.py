# mv_platform/_types.py
# Capability protocols, context bundle and batch results.
# Copyright (c) 2025-2026 CrossWatch / Cenodude (https://github.com/cenodude/CrossWatch)
from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from collections.abc import Callable, Iterable, Mapping, Sequence
from typing import Any, Protocol

from .models import ItemKind, MediaItem, MergeState


# Log types

class Logger(Protocol):
    def __call__(
        self,
        message: str,
        *,
        level: str = "INFO",
        module: str | None = None,
        extra: Mapping[str, Any] | None = None,
    ) -> None: ...

    def debug(self, *parts: Any, extra: Mapping[str, Any] | None = None) -> None: ...
    def info(self, *parts: Any, extra: Mapping[str, Any] | None = None) -> None: ...
    def warn(self, *parts: Any, extra: Mapping[str, Any] | None = None) -> None: ...
    def error(self, *parts: Any, extra: Mapping[str, Any] | None = None) -> None: ...
    def success(self, *parts: Any, extra: Mapping[str, Any] | None = None) -> None: ...


# External capabilities

class LibraryIndex(Protocol):
    def query(
        self,
        kind: ItemKind,
        *,
        recursive: bool = True,
        exclude_virtual: bool = True,
        require_external_id: bool = False,
    ) -> Sequence[MediaItem]: ...


class VersionOps(Protocol):
    def merge(self, ids: Iterable[str]) -> None: ...
    def split(self, item_id: str) -> None: ...


class MergeStateReader(Protocol):
    def get_merge_state(self, item: MediaItem) -> MergeState: ...


ExclusionSource = Callable[[], Sequence[str]]
ProgressSink = Callable[[float], None]


def _no_exclusions() -> list[str]:
    return []


@dataclass
class MergeContext:
    """Everything the manager needs from its host, nothing more."""
    index: LibraryIndex
    versions: VersionOps
    merge_state: MergeStateReader
    excluded_locations: ExclusionSource = _no_exclusions
    log: Logger | None = None
    workers: int = 4
    episode_workers: int = 0
    live_exclusions: bool = False
    split_episodes_respect_exclusions: bool = False

    def workers_for(self, kind: ItemKind) -> int:
        if kind is ItemKind.EPISODE and self.episode_workers > 0:
            return self.episode_workers
        return max(1, int(self.workers or 1))


# Results

@dataclass
class BatchResult:
    action: str
    kind: str
    total: int = 0
    processed: int = 0
    merged: int = 0
    split: int = 0
    skipped: int = 0
    errors: int = 0
    started_at: float = 0.0
    finished_at: float = 0.0
    duration_ms: int = 0

    @property
    def ok(self) -> bool:
        return self.errors == 0

    def to_dict(self) -> dict[str, Any]:
        out = dataclasses.asdict(self)
        out["ok"] = self.ok
        return out


__all__ = [
    "Logger",
    "LibraryIndex",
    "VersionOps",
    "MergeStateReader",
    "ExclusionSource",
    "ProgressSink",
    "MergeContext",
    "BatchResult",
]
