# api/versionsAPI.py
# MergeVersions - merge / split triggers and run status
# Copyright (c) 2025-2026 CrossWatch / Cenodude (https://github.com/cenodude/CrossWatch)
from __future__ import annotations

import threading
import time
import uuid
from typing import Any, Callable, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from _logging import log as _log
from mv_platform.config_base import load_config, save_config, normalize_merge_block
from mv_platform.manager import MergeVersionsManager
from mv_platform.models import ItemKind

__all__ = ["router", "set_manager_factory", "status_snapshot"]

router = APIRouter(prefix="/api/versions", tags=["versions"])
log = _log.child("VERSIONS")

ACTIONS = ("merge", "split")


class RunPayload(BaseModel):
    wait: bool = False


class MergeSettings(BaseModel):
    locations_excluded: Optional[list[str]] = None
    workers: Optional[int] = None
    episode_workers: Optional[int] = None
    live_exclusions: Optional[bool] = None
    split_episodes_respect_exclusions: Optional[bool] = None


# ── Manager wiring
def _default_factory() -> MergeVersionsManager:
    from providers.sync._mod_JELLYFIN import from_config
    cfg = load_config()
    return MergeVersionsManager.from_config(cfg, from_config(cfg))

_FACTORY: Callable[[], MergeVersionsManager] = _default_factory

def set_manager_factory(fn: Callable[[], MergeVersionsManager] | None) -> None:
    global _FACTORY
    _FACTORY = fn or _default_factory


# ── Run state
RUN_LOCK = threading.Lock()
_STATUS_LOCK = threading.Lock()
_STATUS: dict[str, Any] = {
    "running": False,
    "run_id": None,
    "action": None,
    "kind": None,
    "progress": 0.0,
    "started_at": None,
    "error": None,
    "last": None,
}

def status_snapshot() -> dict[str, Any]:
    with _STATUS_LOCK:
        return dict(_STATUS)

def _status_update(**kv: Any) -> None:
    with _STATUS_LOCK:
        _STATUS.update(kv)

def _on_progress(pct: float) -> None:
    _status_update(progress=round(float(pct), 2))


def _run(run_id: str, action: str, kind: ItemKind) -> dict[str, Any]:
    try:
        mgr = _FACTORY()
        res = mgr.run(action, kind, progress=_on_progress).to_dict()
        _status_update(running=False, last=res, error=None)
        return {"ok": True, "run_id": run_id, "result": res}
    except Exception as e:
        log.error(f"{action} {kind.plural} failed: {e}")
        _status_update(running=False, error=str(e))
        return {"ok": False, "run_id": run_id, "error": str(e)}
    finally:
        RUN_LOCK.release()


def _start(action: str, kind: ItemKind, wait: bool) -> dict[str, Any]:
    if not RUN_LOCK.acquire(blocking=False):
        return {"ok": False, "error": "busy"}
    run_id = uuid.uuid4().hex[:12]
    _status_update(
        running=True, run_id=run_id, action=action, kind=kind.plural,
        progress=0.0, started_at=time.time(), error=None,
    )
    log.info(f"Triggered {action} {kind.plural} run {run_id}")
    if wait:
        return _run(run_id, action, kind)
    threading.Thread(target=_run, args=(run_id, action, kind), daemon=True).start()
    return {"ok": True, "run_id": run_id}


# ── Routes
@router.get("/status")
def api_versions_status() -> dict[str, Any]:
    return status_snapshot()


@router.get("/config")
def api_versions_config() -> dict[str, Any]:
    return dict(load_config().get("merge") or {})


@router.post("/config")
def api_versions_config_save(payload: MergeSettings) -> dict[str, Any]:
    cfg = load_config()
    block = dict(cfg.get("merge") or {})
    block.update({k: v for k, v in payload.model_dump().items() if v is not None})
    cfg["merge"] = normalize_merge_block(block)
    save_config(cfg)
    return {"ok": True, "merge": cfg["merge"]}


@router.post("/{action}/{kind}")
def api_versions_run(action: str, kind: str, payload: Optional[RunPayload] = None) -> dict[str, Any]:
    act = action.strip().lower()
    if act not in ACTIONS:
        raise HTTPException(status_code=404, detail=f"unknown action: {action}")
    try:
        k = ItemKind.parse(kind)
    except ValueError:
        raise HTTPException(status_code=404, detail=f"unknown kind: {kind}")
    return _start(act, k, bool(payload.wait) if payload else False)
