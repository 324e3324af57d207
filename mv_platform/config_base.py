# mv_platform/config_base.py
# Copyright (c) 2025-2026 CrossWatch / Cenodude (https://github.com/cenodude/CrossWatch)
from __future__ import annotations

import copy
import json
import os
import secrets
import threading
import time
from pathlib import Path
from typing import Any, Dict, Iterable, List

# ------------------------------------------------------------
# Base dir resolution
# ------------------------------------------------------------
def CONFIG_BASE() -> Path:
    """
    Determine the base directory for config files.

    Priority:
      1) $CONFIG_BASE if set
      2) /config (when running in container that mounts /config)
      3) Project root (one level up from this file)
    """
    env = os.getenv("CONFIG_BASE")
    if env:
        return Path(env)

    if Path("/app").exists():
        return Path("/config")

    return Path(__file__).resolve().parents[1]

# Default config structure
DEFAULT_CFG: Dict[str, Any] = {
    # --- Media server --------------------------------------------------------
    "jellyfin": {
        "server": "",                                   # http(s)://host:port (required)
        "access_token": "",                             # Jellyfin API key or user access token (required)
        "user_id": "",                                  # Jellyfin userId used for item queries (required)
        "device_id": "mergeversions",                   # Client device id
        "verify_ssl": False,                            # Verify TLS certificates
        "timeout": 15.0,                                # HTTP timeout (seconds)
        "max_retries": 3,                               # Retry budget for API calls (429/5xx backoff)
        "page_size": 500,                               # Items per page when querying the library
        "libraries": [],                                # Library ids to scan (empty = all)
    },

    # --- Merge / split -------------------------------------------------------
    "merge": {
        "locations_excluded": [],                       # Path prefixes never merged or split (movies)
        "workers": 4,                                   # Parallel workers per batch (1–32)
        "episode_workers": 0,                           # 0 = same as workers; 1 = strictly sequential episode merging
        "live_exclusions": False,                       # Re-read exclusions on every check instead of once per batch
        "split_episodes_respect_exclusions": False,     # Apply locations_excluded to episode splits too
    },

    # --- Runtime -------------------------------------------------------------
    "runtime": {
        "debug": False,                                 # Extra verbose logging (debug level)
        "debug_http": False,                            # Uvicorn access log
    },
}

MAX_WORKERS = 32

# ------------------------------------------------------------
# Helpers: paths, IO, merging, normalization
# ------------------------------------------------------------
def _cfg_file() -> Path:
    return CONFIG_BASE() / "config.json"

def config_path() -> Path:
    return _cfg_file()


def _read_json(p: Path) -> Dict[str, Any]:
    with p.open("r", encoding="utf-8") as f:
        return json.load(f)


def _write_json_atomic(p: Path, data: Dict[str, Any]) -> None:
    p.parent.mkdir(parents=True, exist_ok=True)
    suffix = f".{time.time_ns()}.{os.getpid()}.{threading.get_ident()}.{secrets.token_hex(4)}.tmp"
    tmp = p.with_suffix(suffix)

    with tmp.open("w", encoding="utf-8", newline="\n") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)
        f.write("\n")
    tmp.replace(p)


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    out = copy.deepcopy(base)
    for k, v in (override or {}).items():
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k] = _deep_merge(out[k], v)  # type: ignore[assignment]
        else:
            out[k] = v
    return out


def _as_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Iterable):
        return [str(x) for x in value if isinstance(x, (str, int, float))]
    return []


def _clamp_int(value: Any, lo: int, hi: int, default: int) -> int:
    try:
        n = int(value)
    except (TypeError, ValueError):
        return default
    return max(lo, min(hi, n))


def normalize_merge_block(val: Dict[str, Any] | None) -> Dict[str, Any]:
    v = dict(val or {})
    defaults = DEFAULT_CFG["merge"]

    seen: set[str] = set()
    locs: List[str] = []
    for s in _as_list(v.get("locations_excluded")):
        s = s.strip()
        if s and s not in seen:
            seen.add(s); locs.append(s)
    v["locations_excluded"] = locs

    v["workers"] = _clamp_int(v.get("workers"), 1, MAX_WORKERS, defaults["workers"])
    v["episode_workers"] = _clamp_int(v.get("episode_workers"), 0, MAX_WORKERS, 0)
    v["live_exclusions"] = bool(v.get("live_exclusions", False))
    v["split_episodes_respect_exclusions"] = bool(v.get("split_episodes_respect_exclusions", False))
    return v


# ------------------------------------------------------------
# Public API
# ------------------------------------------------------------
def load_config() -> Dict[str, Any]:
    """
    Read config.json merged over the defaults.
    """
    p = _cfg_file()
    user_cfg: Dict[str, Any] = {}
    if p.exists():
        try:
            user_cfg = _read_json(p)
        except (OSError, ValueError):
            user_cfg = {}

    cfg = _deep_merge(DEFAULT_CFG, user_cfg)
    cfg["merge"] = normalize_merge_block(cfg.get("merge"))
    return cfg


def save_config(cfg: Dict[str, Any]) -> None:
    """
    Write config.json atomically.
    """
    data = dict(cfg or {})
    if isinstance(data.get("merge"), dict):
        data["merge"] = normalize_merge_block(data["merge"])
    _write_json_atomic(_cfg_file(), data)


def excluded_locations() -> List[str]:
    """Live read of merge.locations_excluded from config.json."""
    return list(load_config()["merge"]["locations_excluded"])
