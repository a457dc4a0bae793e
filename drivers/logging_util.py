"""Lightweight structured logging helper.

Avoids external deps; emits JSON lines. The terminal belongs to the UI, so
when SQ_LOG_FILE is set records are appended there instead of stderr.
"""
from __future__ import annotations
import os, sys, json, time, threading

_lock = threading.Lock()
LEVEL_ORDER = ["DEBUG","INFO","WARN","ERROR"]

def _threshold() -> str:
    return os.environ.get("LOG_LEVEL", "INFO").upper()

def _should(level: str) -> bool:
    try:
        return LEVEL_ORDER.index(level) >= LEVEL_ORDER.index(_threshold())
    except ValueError:
        return True

def _write(line: str) -> None:
    path = os.environ.get("SQ_LOG_FILE")
    with _lock:
        if path:
            with open(path, "a", encoding="utf-8") as fh:
                fh.write(line + "\n")
            return
        sys.stderr.write(line + "\n")
        sys.stderr.flush()

def log(level: str, event: str, **fields):
    if not _should(level.upper()):
        return
    record = {
        "ts": time.strftime('%Y-%m-%dT%H:%M:%SZ', time.gmtime()),
        "level": level.upper(),
        "event": event,
    }
    record.update(fields)
    _write(json.dumps(record, separators=(',',':'), default=str))

def debug(event: str, **fields): log("DEBUG", event, **fields)
def info(event: str, **fields): log("INFO", event, **fields)
def warn(event: str, **fields): log("WARN", event, **fields)
def error(event: str, **fields): log("ERROR", event, **fields)
