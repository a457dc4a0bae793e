"""MongoDB filter parsing.

Two accepted forms:

    {"age": {"$gt": 21}}                 JSON (MongoDB Extended JSON allowed)
    age=25,status=active                 simple key=value pairs, AND-combined

Simple values are coerced in order: int64, float64, true/false, and for the
_id key a 24-hex ObjectId; anything else stays a string. Pairs that do not
split into exactly one key and one value are ignored.
"""
from __future__ import annotations
import re
from typing import Any, Dict

from bson import ObjectId, json_util
from bson.errors import BSONError

from .errors import QueryError

INT64_MIN = -(2 ** 63)
INT64_MAX = 2 ** 63 - 1

_INT_RE = re.compile(r"^[+-]?\d+$")
_FLOAT_RE = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?$|^[+-]?(?:inf|infinity|nan)$", re.IGNORECASE)
_HEX24_RE = re.compile(r"^[0-9a-fA-F]{24}$")


def coerce_value(key: str, value: str) -> Any:
    if key == "_id":
        if _HEX24_RE.match(value):
            return ObjectId(value)
        return value
    if _INT_RE.match(value):
        as_int = int(value)
        if INT64_MIN <= as_int <= INT64_MAX:
            return as_int
        return float(value)
    if _FLOAT_RE.match(value):
        return float(value)
    if value == "true":
        return True
    if value == "false":
        return False
    return value


def parse_simple_filter(text: str) -> Dict[str, Any]:
    result: Dict[str, Any] = {}
    for pair in text.split(","):
        parts = pair.split("=")
        if len(parts) != 2:
            continue
        key, value = parts[0].strip(), parts[1].strip()
        if not key:
            continue
        result[key] = coerce_value(key, value)
    return result


def parse_filter(text: str) -> Dict[str, Any]:
    """Filter document for find()/count_documents(); blank text means 'match all'.

    Text starting with "{" must be a valid filter document. Anything else must
    yield at least one key=value pair. Both failures raise QueryError.
    """
    text = (text or "").strip()
    if not text:
        return {}
    if text.startswith("{"):
        try:
            doc = json_util.loads(text)
        except (ValueError, TypeError, KeyError, BSONError) as e:
            raise QueryError(f"invalid filter document: {e}") from e
        if not isinstance(doc, dict):
            raise QueryError(f"filter document must be an object: {text!r}")
        return doc
    doc = parse_simple_filter(text)
    if not doc:
        raise QueryError(f"filter has no key=value pairs: {text!r}")
    return doc
