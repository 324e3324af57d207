# /providers/sync/_mod_common.py
# Shared HTTP helpers for media-server adapters
# Copyright (c) 2025-2026 CrossWatch / Cenodude (https://github.com/cenodude/CrossWatch)
from __future__ import annotations

import json
import time
from typing import Any, Mapping

import requests

__VERSION__ = "0.3.0"
__all__ = [
    "build_session",
    "safe_json",
    "request_with_retries",
]


def build_session(
    *,
    headers: Mapping[str, str] | None = None,
    verify: bool = True,
) -> requests.Session:
    s = requests.Session()
    s.headers.update({"Accept": "application/json"})
    s.headers.update(dict(headers or {}))
    s.verify = bool(verify)
    return s


def safe_json(resp: requests.Response) -> Any:
    try:
        if not (resp.text or "").strip():
            return {}
        ctype = (resp.headers.get("Content-Type") or "").lower()
        if "json" in ctype:
            return resp.json()
        return json.loads(resp.text)
    except ValueError:
        return {}


def request_with_retries(
    session: requests.Session,
    method: str,
    url: str,
    *,
    timeout: float = 10.0,
    max_retries: int = 3,
    retry_on: tuple[int, ...] = (429, 500, 502, 503, 504),
    backoff_base: float = 0.5,
    **kwargs: Any,
) -> requests.Response:
    last: Any = None
    attempts = max(1, int(max_retries))
    for i in range(attempts):
        try:
            resp = session.request(method, url, timeout=timeout, **kwargs)
            if resp.status_code in retry_on and i < attempts - 1:
                wait = backoff_base * (2**i)
                if resp.status_code == 429:
                    ra = resp.headers.get("Retry-After")
                    try:
                        if ra:
                            wait = max(wait, float(ra))
                    except ValueError:
                        pass
                time.sleep(wait)
                last = resp
                continue
            return resp
        except requests.RequestException as e:
            last = e
            if i < attempts - 1:
                time.sleep(backoff_base * (2**i))
    if isinstance(last, requests.Response):
        return last
    raise requests.RequestException(f"request failed after retries: {method} {url}: {last}")
