#!/usr/local/bin/python
"""
MergeVersions maintenance utility.
- Merges or splits duplicate movies / episodes on the configured Jellyfin server.
- Reads config.json (see mv_platform.config_base) for server/access_token/user_id and merge settings.
"""

from __future__ import annotations
import sys
from pathlib import Path
from typing import Callable, Optional

import requests

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from mv_platform.config_base import load_config, config_path
from mv_platform.manager import MergeVersionsManager
from mv_platform._types import BatchResult
from providers.sync._mod_JELLYFIN import ConfigError, JellyfinError, from_config

BAR_WIDTH = 28

# ---------- helpers ----------
def progress_line(label: str, pct: float) -> None:
    pct = max(0.0, min(100.0, float(pct)))
    fill = int(BAR_WIDTH * pct / 100.0)
    bar = "#" * fill + "-" * (BAR_WIDTH - fill)
    sys.stdout.write("\r" + f"{label} [{bar}] {pct:5.1f}%".ljust(80))
    sys.stdout.flush()

def done_line() -> None:
    sys.stdout.write("\r" + (" " * 80) + "\r")
    sys.stdout.flush()

def confirm_danger(msg: str) -> bool:
    print(msg)
    ans = input("Type YES to continue: ").strip().upper()
    return ans == "YES"

def print_result(res: BatchResult) -> None:
    print(f"\n=== {res.action.capitalize()} {res.kind} ===")
    print(f"Units   : {res.total}")
    if res.action == "merge":
        print(f"Merged  : {res.merged}")
    else:
        print(f"Split   : {res.split}")
    print(f"Skipped : {res.skipped}")
    print(f"Errors  : {res.errors}")
    print(f"Took    : {res.duration_ms} ms")

def run_with_bar(label: str, fn: Callable[..., BatchResult]) -> BatchResult:
    try:
        return fn(lambda pct: progress_line(label, pct))
    finally:
        done_line()

def menu() -> str:
    print("\n=== MergeVersions ===")
    print("1. Merge movies")
    print("2. Split movies")
    print("3. Merge episodes")
    print("4. Split episodes")
    print("0. Exit")
    return input("Select: ").strip()


def main() -> None:
    cfg = load_config()
    try:
        library = from_config(cfg)
    except ConfigError as e:
        print(f"[!] {e} ({config_path()})")
        return

    if not library.client.ping():
        print(f"[!] Jellyfin not reachable at {library.cfg.server}")
        return

    mgr = MergeVersionsManager.from_config(cfg, library)
    excluded = (cfg.get("merge") or {}).get("locations_excluded") or []
    print(f"Excluded locations: {', '.join(excluded) if excluded else '(none)'}")

    while True:
        choice = menu()
        res: Optional[BatchResult] = None

        try:
            if choice == "0":
                print("Bye.")
                return

            elif choice == "1":
                res = run_with_bar("Merging movies", mgr.merge_movies)

            elif choice == "2":
                if not confirm_danger("This will remove ALL alternate versions from every eligible movie."):
                    print("Aborted.")
                    continue
                res = run_with_bar("Splitting movies", mgr.split_movies)

            elif choice == "3":
                res = run_with_bar("Merging episodes", mgr.merge_episodes)

            elif choice == "4":
                if not confirm_danger("This will remove ALL alternate versions from every episode."):
                    print("Aborted.")
                    continue
                res = run_with_bar("Splitting episodes", mgr.split_episodes)

            else:
                print("Unknown option.")

        except JellyfinError as e:
            print(f"[!] Jellyfin error: {e}")
        except requests.RequestException as e:
            print(f"[!] HTTP error: {e}")

        if res is not None:
            print_result(res)

if __name__ == "__main__":
    main()
