# /mergeversions.py
# MergeVersions - merge duplicate movies/episodes into multi-version items
# Copyright (c) 2025-2026 CrossWatch / Cenodude (https://github.com/cenodude/CrossWatch)
from __future__ import annotations

import sys
sys.modules.setdefault("mergeversions", sys.modules[__name__])

import uvicorn
from fastapi import FastAPI

from api import register as register_api, status_snapshot
from mv_platform.config_base import load_config, config_path
from _logging import log

app = FastAPI(title="MergeVersions", version="1.0.0")
register_api(app)


@app.get("/healthz")
def healthz() -> dict:
    snap = status_snapshot()
    return {"ok": True, "running": bool(snap.get("running"))}


# Entry point
def main(host: str = "0.0.0.0", port: int = 8788) -> None:
    cfg = load_config()
    rt = cfg.get("runtime") or {}
    debug = bool(rt.get("debug"))
    if debug:
        log.set_level("debug")

    print("\nMergeVersions running:")
    print(f"  Local:   http://127.0.0.1:{port}")
    print(f"  Bind:    {host}:{port}")
    print(f"  Config:  {config_path()} (JSON)")
    print(f"  Server:  {(cfg.get('jellyfin') or {}).get('server') or '(not configured)'}\n")

    uvicorn.run(
        app,
        host=host,
        port=port,
        log_level=("debug" if debug else "warning"),
        access_log=bool(rt.get("debug_http")),
    )

if __name__ == "__main__":
    main()
