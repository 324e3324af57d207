# /providers/sync/jellyfin/_common.py
# Copyright (c) 2025-2026 CrossWatch / Cenodude (https://github.com/cenodude/CrossWatch)
from __future__ import annotations
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional
import re

from mv_platform.models import ItemKind, MediaItem, MergeState

_NUM_PAT  = re.compile(r"(\d{1,10})$")
_IMDB_PAT = re.compile(r"(?:tt)?(\d{5,9})$")

ITEM_FIELDS = "Path,ProviderIds,ParentId,ProductionYear,MediaSources,MediaSourceCount"

## --- cfg helpers ----Library selection------------------------------------------
def _as_list_str(v: Any) -> List[str]:
    if v is None: return []
    it = v if isinstance(v, (list, tuple, set)) else [v]
    out: List[str] = []
    seen = set()
    for x in it:
        s = str(x).strip()
        if s and s not in seen:
            seen.add(s); out.append(s)
    return out

def jf_library_scope(libraries: Any) -> Dict[str, Any]:
    libs = _as_list_str(libraries)
    if not libs:
        return {}
    if len(libs) == 1:
        return {"ParentId": libs[0]}
    return {"AncestorIds": ",".join(libs)}

# --- type & id helpers --------------------------------------------------------
def _int_or_none(v: Any) -> Optional[int]:
    try:
        return int(v) if v is not None and str(v).strip() != "" else None
    except (TypeError, ValueError):
        return None

def _str_or_none(v: Any) -> Optional[str]:
    s = str(v).strip() if v is not None else ""
    return s or None

def ids_from_provider_ids(pids: Optional[Mapping[str, Any]]) -> Dict[str, str]:
    out: Dict[str, str] = {}
    if not isinstance(pids, Mapping): return out
    for k, v in pids.items():
        key = str(k).strip().lower()
        sv = str(v if v is not None else "").strip()
        if not key or not sv:
            continue
        if key == "imdb":
            m = _IMDB_PAT.search(sv)
            if m: out["imdb"] = f"tt{m.group(1)}"
        elif key in ("tmdb", "tvdb"):
            m = _NUM_PAT.search(sv)
            if m: out[key] = m.group(1)
        else:
            out[key] = sv
    return out

def to_media_item(row: Mapping[str, Any], kind: ItemKind) -> Optional[MediaItem]:
    iid = _str_or_none(row.get("Id"))
    if not iid:
        return None
    ep = kind is ItemKind.EPISODE
    return MediaItem(
        id=iid,
        kind=kind,
        name=_str_or_none(row.get("Name")),
        year=_int_or_none(row.get("ProductionYear")),
        path=_str_or_none(row.get("Path")),
        parent_id=_str_or_none(row.get("ParentId")),
        provider_ids=ids_from_provider_ids(row.get("ProviderIds")),
        series_name=_str_or_none(row.get("SeriesName")) if ep else None,
        season_name=_str_or_none(row.get("SeasonName")) if ep else None,
        index_number=_int_or_none(row.get("IndexNumber")) if ep else None,
        raw=dict(row),
    )

def merge_state_from_row(row: Mapping[str, Any]) -> MergeState:
    # an item pointing at a primary version is itself an alternate
    is_primary = not _str_or_none(row.get("PrimaryVersionId"))
    sources = row.get("MediaSources")
    if isinstance(sources, list) and sources:
        n = len(sources)
    else:
        n = _int_or_none(row.get("MediaSourceCount")) or 1
    return MergeState(is_primary=is_primary, linked_alternate_count=max(0, n - 1))

# --- paging -------------------------------------------------------------------
def paginate_items(http, user_id: str, params: Mapping[str, Any], *, page_size: int = 500) -> Iterator[Dict[str, Any]]:
    start, total = 0, None
    limit = max(1, int(page_size))
    while True:
        q = dict(params)
        q.update({"StartIndex": start, "Limit": limit, "EnableTotalRecordCount": True})
        body = http.get_json(f"/Users/{user_id}/Items", params=q)
        items = body.get("Items") or []
        if total is None:
            total = _int_or_none(body.get("TotalRecordCount"))
        for row in items:
            if isinstance(row, Mapping):
                yield dict(row)
        start += len(items)
        if not items or len(items) < limit or (total is not None and start >= total):
            break

def join_ids(ids: Iterable[Any]) -> str:
    return ",".join(str(x) for x in ids if str(x).strip())
