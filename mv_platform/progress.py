# mv_platform/progress.py
# Copyright (c) 2025-2026 CrossWatch / Cenodude (https://github.com/cenodude/CrossWatch)
from __future__ import annotations

import threading
from typing import Any, Callable


def _as_sink(sink: Any) -> Callable[[float], None] | None:
    if sink is None:
        return None
    report = getattr(sink, "report", None)
    if callable(report):
        return report
    if callable(sink):
        return sink
    raise TypeError(f"progress sink must be callable or have report(): {sink!r}")


class BatchProgress:
    """
    Fractional progress over a batch of `total` units.

    step() and finish() deliver while holding the lock, so the sink sees
    values in order even when workers complete concurrently.
    """

    def __init__(self, sink: Any, total: int, *, log: Any = None):
        self._sink = _as_sink(sink)
        self.total = max(0, int(total))
        self.done = 0
        self.last: float | None = None
        self._lock = threading.Lock()
        self._log = log

    def _deliver(self, pct: float) -> None:
        self.last = pct
        if self._sink is None:
            return
        try:
            self._sink(pct)
        except Exception as e:
            if self._log is not None:
                self._log.warn(f"progress sink failed: {e}")

    def step(self) -> float:
        with self._lock:
            if self.done < self.total:
                self.done += 1
            pct = (self.done / self.total) * 100.0 if self.total else 100.0
            if self.last is not None and pct < self.last:
                pct = self.last
            self._deliver(pct)
            return pct

    def finish(self) -> None:
        with self._lock:
            if self.last != 100.0:
                self._deliver(100.0)


__all__ = ["BatchProgress"]
