"""Cell rendering shared by every driver: the browser only ever sees strings."""
from __future__ import annotations
import json
import math
from decimal import Decimal
from typing import Any

NULL = "NULL"


def format_float(val: float) -> str:
    if not math.isfinite(val):
        return repr(val)
    text = repr(val)
    if "e" in text or "E" in text:
        text = format(Decimal(text), "f")
    if text.endswith(".0"):
        text = text[:-2]
    return text


def format_value(val: Any) -> str:
    if val is None:
        return NULL
    if isinstance(val, (bytes, bytearray, memoryview)):
        return bytes(val).decode("utf-8", errors="replace")
    if isinstance(val, bool):
        return "true" if val else "false"
    if isinstance(val, float):
        return format_float(val)
    if isinstance(val, Decimal):
        return format(val, "f")
    return str(val)


def format_document_value(val: Any) -> str:
    """Like format_value, with arrays and sub-documents rendered as compact JSON."""
    if isinstance(val, (list, tuple, dict)):
        return json.dumps(val, separators=(",", ":"), default=str, ensure_ascii=False)
    return format_value(val)
