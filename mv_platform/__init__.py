# mv_platform/__init__.py
from __future__ import annotations

from .models import ItemKind, MediaItem, MergeState, STANDALONE, DuplicateGroup
from ._types import BatchResult, MergeContext
from .eligibility import EligibilityFilter, contains_sub_path
from .grouping import find_duplicates, episode_key, movie_key
from .progress import BatchProgress
from .manager import MergeVersionsManager

__all__ = [
    "ItemKind",
    "MediaItem",
    "MergeState",
    "STANDALONE",
    "DuplicateGroup",
    "BatchResult",
    "MergeContext",
    "EligibilityFilter",
    "contains_sub_path",
    "find_duplicates",
    "movie_key",
    "episode_key",
    "BatchProgress",
    "MergeVersionsManager",
]
