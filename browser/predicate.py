"""Predicate text helpers.

Filter terms are raw backend expressions typed by the user and are passed
through untouched. Only their combination and the foreign-key equality built
from a cell value are produced here.
"""
from __future__ import annotations
from typing import Iterable, Optional


def combine_filters(terms: Iterable[str]) -> str:
    """AND-combine terms; each is parenthesized once there is more than one.

    >>> combine_filters(["a = 1"])
    'a = 1'
    >>> combine_filters(["a = 1 OR b = 2", "c = 3"])
    '(a = 1 OR b = 2) AND (c = 3)'
    """
    items = [t.strip() for t in terms if t and t.strip()]
    if not items:
        return ""
    if len(items) == 1:
        return items[0]
    return " AND ".join(f"({t})" for t in items)


def quote_literal(value: Optional[str]) -> str:
    return "'" + (value or "").replace("'", "''") + "'"


def fk_predicate(column: str, value: Optional[str]) -> str:
    return f"{column} = {quote_literal(value)}"
