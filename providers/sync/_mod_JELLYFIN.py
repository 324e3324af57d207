# /providers/sync/_mod_JELLYFIN.py
# Jellyfin adapter: config + client + library capabilities (query / merge / split / merge state).
# Copyright (c) 2025-2026 CrossWatch / Cenodude (https://github.com/cenodude/CrossWatch)

from __future__ import annotations
__VERSION__ = "1.0.0"
__all__ = ["JFConfig", "JFClient", "JellyfinLibrary", "JellyfinError", "ConfigError", "from_config"]

import os, requests
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from mv_platform.models import ItemKind, MediaItem, MergeState
from ._mod_common import build_session, request_with_retries, safe_json
from .jellyfin._common import (
    ITEM_FIELDS,
    jf_library_scope,
    join_ids,
    merge_state_from_row,
    paginate_items,
    to_media_item,
)

_DEF_UA = os.environ.get("MV_UA", f"MergeVersions/{__VERSION__} (Jellyfin)")


class ConfigError(RuntimeError): ...


class JellyfinError(RuntimeError):
    def __init__(self, method: str, path: str, status: int | None, body: str = ""):
        self.method, self.path, self.status = method, path, status
        super().__init__(f"{method} {path} -> {status}: {body[:200]}")

# ──────────────────────────────────────────────────────────────────────────────
# config + client

@dataclass
class JFConfig:
    server: str
    access_token: str
    user_id: str
    device_id: str = "mergeversions"
    verify_ssl: bool = True
    timeout: float = 15.0
    max_retries: int = 3
    page_size: int = 500
    libraries: List[str] = field(default_factory=list)

    @classmethod
    def from_mapping(cls, cfg: Mapping[str, Any]) -> "JFConfig":
        jf = dict((cfg or {}).get("jellyfin") or {})
        server = str(jf.get("server") or "").strip()
        token = str(jf.get("access_token") or "").strip()
        uid = str(jf.get("user_id") or "").strip()
        if not server or not token or not uid:
            raise ConfigError("Jellyfin config requires server, access_token, user_id")
        return cls(
            server=server,
            access_token=token,
            user_id=uid,
            device_id=str(jf.get("device_id") or "mergeversions"),
            verify_ssl=bool(jf.get("verify_ssl", True)),
            timeout=float(jf.get("timeout", 15.0) or 15.0),
            max_retries=int(jf.get("max_retries", 3) or 3),
            page_size=int(jf.get("page_size", 500) or 500),
            libraries=[str(x).strip() for x in (jf.get("libraries") or []) if str(x).strip()],
        )


class JFClient:
    BASE_PATH_PING = "/System/Ping"
    BASE_PATH_MERGE = "/Videos/MergeVersions"
    BASE_PATH_SPLIT = "/Videos/{item_id}/AlternateSources"

    def __init__(self, cfg: JFConfig):
        self.cfg = cfg
        self.base = cfg.server.rstrip("/")
        auth_val = (f'MediaBrowser Client="MergeVersions", Device="MergeVersions", '
                    f'DeviceId="{cfg.device_id}", Version="{__VERSION__}", Token="{cfg.access_token}"')
        self.session = build_session(verify=cfg.verify_ssl, headers={
            "User-Agent": _DEF_UA,
            "Authorization": auth_val,
            "X-Emby-Authorization": auth_val,
            "X-MediaBrowser-Token": cfg.access_token,
        })

    def _url(self, path: str) -> str:
        return self.base + (path if path.startswith("/") else ("/" + path))

    def _request(self, method: str, path: str, *, params: Optional[dict] = None) -> requests.Response:
        resp = request_with_retries(
            self.session, method, self._url(path),
            params=(params or {}),
            timeout=self.cfg.timeout, max_retries=self.cfg.max_retries,
        )
        if not resp.ok:
            raise JellyfinError(method, path, resp.status_code, resp.text or "")
        return resp

    def get_json(self, path: str, *, params: Optional[dict] = None) -> Dict[str, Any]:
        body = safe_json(self._request("GET", path, params=params))
        return body if isinstance(body, dict) else {}

    def post(self, path: str, *, params: Optional[dict] = None) -> requests.Response:
        return self._request("POST", path, params=params)

    def delete(self, path: str, *, params: Optional[dict] = None) -> requests.Response:
        return self._request("DELETE", path, params=params)

    def ping(self) -> bool:
        try:
            self._request("GET", self.BASE_PATH_PING)
            return True
        except (JellyfinError, requests.RequestException):
            return False

# ──────────────────────────────────────────────────────────────────────────────
# library capabilities

class JellyfinLibrary:
    """Index query, merge/split primitives and merge-state read for one Jellyfin server."""

    def __init__(self, cfg: JFConfig, client: JFClient | None = None):
        self.cfg = cfg
        self.client = client or JFClient(cfg)

    def query(
        self,
        kind: ItemKind,
        *,
        recursive: bool = True,
        exclude_virtual: bool = True,
        require_external_id: bool = False,
    ) -> Sequence[MediaItem]:
        kind = ItemKind.parse(kind)
        params: Dict[str, Any] = {
            "IncludeItemTypes": kind.value,
            "Recursive": "true" if recursive else "false",
            "Fields": ITEM_FIELDS,
            "EnableUserData": "false",
            "EnableImages": "false",
        }
        if exclude_virtual:
            params["IsMissing"] = "false"
            params["IsVirtualItem"] = "false"
        if require_external_id and kind is ItemKind.MOVIE:
            params["HasTmdbId"] = "true"
        params.update(jf_library_scope(self.cfg.libraries))

        out: List[MediaItem] = []
        for row in paginate_items(self.client, self.cfg.user_id, params, page_size=self.cfg.page_size):
            if exclude_virtual and row.get("LocationType") == "Virtual":
                continue
            item = to_media_item(row, kind)
            if item is None:
                continue
            # servers that ignore HasTmdbId still hand back id-less movies
            if require_external_id and kind is ItemKind.MOVIE and not item.tmdb_id:
                continue
            out.append(item)
        return out

    def merge(self, ids: Iterable[str]) -> None:
        self.client.post(JFClient.BASE_PATH_MERGE, params={"ids": join_ids(ids)})

    def split(self, item_id: str) -> None:
        self.client.delete(JFClient.BASE_PATH_SPLIT.format(item_id=item_id))

    def get_merge_state(self, item: MediaItem) -> MergeState:
        return merge_state_from_row(item.raw or {})


def from_config(cfg: Mapping[str, Any]) -> JellyfinLibrary:
    return JellyfinLibrary(JFConfig.from_mapping(cfg))
