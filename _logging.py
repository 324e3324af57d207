# _logging.py
# Structured console logger with colored output and an optional JSON-lines sink.
# Copyright (c) 2025-2026 CrossWatch / Cenodude (https://github.com/cenodude/CrossWatch)
from __future__ import annotations
import sys, datetime, json, os, threading, time
from pathlib import Path
from typing import Any, Optional, TextIO, Mapping, Dict

RESET = "\033[0m"
DIM = "\033[90m"
RED = "\033[91m"
GREEN = "\033[92m"
YELLOW = "\033[33m"
BLUE = "\033[94m"

LEVELS = {"silent": 60, "error": 40, "warn": 30, "info": 20, "debug": 10}

# ── runtime debug gate (reads config.json, cached briefly) ────────────────
_CFG_CACHE: Dict[str, Any] | None = None
_CFG_TS: float = 0.0
_CFG_LOCK = threading.Lock()

def _config_file() -> Path:
    base = os.getenv("CONFIG_BASE")
    if base:
        return Path(base) / "config.json"
    if Path("/app").exists():
        return Path("/config/config.json")
    return Path(__file__).resolve().parent / "config.json"

def _debug_enabled() -> bool:
    global _CFG_CACHE, _CFG_TS
    now = time.time()
    with _CFG_LOCK:
        if _CFG_CACHE is None or (now - _CFG_TS) > 5.0:
            try:
                with _config_file().open("r", encoding="utf-8") as f:
                    _CFG_CACHE = json.load(f)
            except (OSError, ValueError):
                _CFG_CACHE = {}
            _CFG_TS = now
        rt = (_CFG_CACHE or {}).get("runtime") or {}
    return bool(rt.get("debug"))

def reset_debug_cache() -> None:
    global _CFG_CACHE, _CFG_TS
    with _CFG_LOCK:
        _CFG_CACHE, _CFG_TS = None, 0.0

class Logger:
    def __init__(
        self,
        stream: TextIO = sys.stdout,
        level: str = "info",
        use_color: bool = True,
        show_time: bool = True,
        time_fmt: str = "%Y-%m-%d %H:%M:%S",
        *,
        _context: Optional[Dict[str, Any]] = None,
        _name: Optional[str] = None,
        _json_stream: Optional[TextIO] = None,
        _lock: Optional[threading.Lock] = None,
    ):
        self.stream = stream
        self.level_no = LEVELS.get(level, 20)
        self.use_color = use_color
        self.show_time = show_time
        self.time_fmt = time_fmt
        self.tag_color_map = {
            "DEBUG": YELLOW,
            "INFO": BLUE,
            "WARN": YELLOW,
            "ERROR": RED,
            "SUCCESS": GREEN,
        }
        self._context: Dict[str, Any] = dict(_context or {})
        if _name:
            self._context.setdefault("module", _name)
        self._json_stream: Optional[TextIO] = _json_stream
        # shared across bind()/child() so worker threads never interleave lines
        self._lock = _lock or threading.Lock()

    # Configuration
    def set_level(self, level: str) -> None:
        self.level_no = LEVELS.get(level, self.level_no)

    def enable_color(self, on: bool = True) -> None:
        self.use_color = on

    def enable_json(self, file_path: str) -> None:
        self._json_stream = open(file_path, "a", encoding="utf-8")

    # Context
    def get_context(self) -> Dict[str, Any]:
        return dict(self._context)

    def bind(self, **ctx: Any) -> "Logger":
        new_ctx = dict(self._context); new_ctx.update(ctx)
        return Logger(
            stream=self.stream,
            level=self.level_name,
            use_color=self.use_color,
            show_time=self.show_time,
            time_fmt=self.time_fmt,
            _context=new_ctx,
            _name=new_ctx.get("module"),
            _json_stream=self._json_stream,
            _lock=self._lock,
        )

    def child(self, name: str) -> "Logger":
        return self.bind(module=name)

    @property
    def level_name(self) -> str:
        for k, v in LEVELS.items():
            if v == self.level_no:
                return k
        return "info"

    def _fmt_text(self, display_level: str, msg: str) -> str:
        # "[ts] [MODULE] LEVEL message"
        mod = str(self._context.get("module") or "").strip()
        col = self.tag_color_map.get(display_level) if self.use_color else None
        lvl_disp = f"{col}{display_level}{RESET}" if col else display_level
        head = f"[{mod}]" if mod else ""
        line = f"{head} {lvl_disp} {msg}".strip()
        if self.show_time:
            ts = datetime.datetime.now().strftime(self.time_fmt)
            prefix = f"{DIM}[{ts}]{RESET}" if self.use_color else f"[{ts}]"
            return f"{prefix} {line}"
        return line

    def _write_sinks(self, display_level: str, text: str, *, msg: str, extra: Optional[Mapping[str, Any]]) -> None:
        with self._lock:
            self.stream.write(text + "\n")
            self.stream.flush()
            if self._json_stream:
                payload: Dict[str, Any] = {
                    "ts": datetime.datetime.now(datetime.timezone.utc).isoformat(timespec="milliseconds"),
                    "level": display_level,
                    "msg": msg,
                    "ctx": self._context or {},
                }
                if extra:
                    payload["extra"] = dict(extra)
                self._json_stream.write(json.dumps(payload, ensure_ascii=False, default=str) + "\n")
                self._json_stream.flush()

    def _emit(self, severity: str, display_level: str, *parts: Any, extra: Optional[Mapping[str, Any]] = None) -> None:
        sev_no = LEVELS.get(severity, LEVELS["info"])
        if severity == "debug":
            if self.level_no > sev_no and not _debug_enabled():
                return
        elif self.level_no > sev_no:
            return
        msg = " ".join(str(p) for p in parts)
        self._write_sinks(display_level, self._fmt_text(display_level, msg), msg=msg, extra=extra)

    # Public API
    def debug(self, *parts: Any, extra: Optional[Mapping[str, Any]] = None) -> None:
        self._emit("debug", "DEBUG", *parts, extra=extra)

    def info(self, *parts: Any, extra: Optional[Mapping[str, Any]] = None) -> None:
        self._emit("info", "INFO", *parts, extra=extra)

    def warn(self, *parts: Any, extra: Optional[Mapping[str, Any]] = None) -> None:
        self._emit("warn", "WARN", *parts, extra=extra)

    def warning(self, *parts: Any, extra: Optional[Mapping[str, Any]] = None) -> None:
        self.warn(*parts, extra=extra)

    def error(self, *parts: Any, extra: Optional[Mapping[str, Any]] = None) -> None:
        self._emit("error", "ERROR", *parts, extra=extra)

    def success(self, *parts: Any, extra: Optional[Mapping[str, Any]] = None) -> None:
        self._emit("info", "SUCCESS", *parts, extra=extra)

    # Callable adapter: log("text", level="INFO", module="VERSIONS")
    def __call__(
        self,
        message: str,
        *,
        level: str = "INFO",
        module: Optional[str] = None,
        extra: Optional[Mapping[str, Any]] = None,
    ) -> None:
        target = self.bind(module=module) if module else self
        lvl = (level or "INFO").lower()
        if lvl == "debug":
            target.debug(message, extra=extra)
        elif lvl in ("warn", "warning"):
            target.warn(message, extra=extra)
        elif lvl == "error":
            target.error(message, extra=extra)
        elif lvl == "success":
            target.success(message, extra=extra)
        else:
            target.info(message, extra=extra)

# default instance
log = Logger(level=(os.getenv("MV_LOG_LEVEL") or "info").strip().lower())

__all__ = ["Logger", "log", "LEVELS", "reset_debug_cache"]
