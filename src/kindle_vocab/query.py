"""Stateless review queries over words with their lookups."""

from __future__ import annotations

import re
from collections.abc import Iterable
from datetime import date, datetime, time, timezone
from typing import Any

from kindle_vocab.models import (
    Lookup,
    WordWithContext,
    lookup_order,
    parse_timestamp as parse_timestamp,
)

_DATE_ONLY = re.compile(r"^\d{4}-\d{2}-\d{2}$")

DateBound = datetime | date | str | None


def latest_lookup_of(word: WordWithContext) -> Lookup | None:
    """The lookup with the greatest timestamp; ties go to the greatest id."""
    if not word.lookups:
        return None
    return max(word.lookups, key=lookup_order)


def parse_date_bound(value: DateBound, *, end: bool = False) -> datetime | None:
    """Turn a range bound into a datetime; a whole-day ``end`` covers that day."""
    if value is None or value == "":
        return None
    if isinstance(value, str) and _DATE_ONLY.match(value.strip()):
        value = date.fromisoformat(value.strip())
    if isinstance(value, date) and not isinstance(value, datetime):
        return datetime.combine(value, time.max if end else time.min, tzinfo=timezone.utc)
    parsed = parse_timestamp(value)
    if parsed is None:
        raise ValueError(f"Invalid date bound: {value!r}")
    return parsed


def filter_by_date_range(
    words: Iterable[WordWithContext],
    start: DateBound = None,
    end: DateBound = None,
) -> list[WordWithContext]:
    """Keep words whose latest lookup falls within ``[start, end]``.

    Either bound may be omitted.  With at least one bound, words without a
    parseable latest timestamp are dropped.
    """
    lo = parse_date_bound(start)
    hi = parse_date_bound(end, end=True)
    if lo is None and hi is None:
        return list(words)

    kept = []
    for word in words:
        latest = latest_lookup_of(word)
        when = parse_timestamp(latest.timestamp) if latest else None
        if when is None:
            continue
        if lo is not None and when < lo:
            continue
        if hi is not None and when > hi:
            continue
        kept.append(word)
    return kept


def sort_by_lookup_count_descending(
    words: Iterable[WordWithContext],
) -> list[WordWithContext]:
    # sorted() is stable with reverse=True as well
    return sorted(words, key=lambda w: len(w.lookups), reverse=True)


def limit(words: Iterable[WordWithContext], n: Any = None) -> list[WordWithContext]:
    """The first *n* words; a missing, non-numeric or non-positive *n* keeps all."""
    words = list(words)
    count = _as_count(n)
    return words[:count] if count else words


def _as_count(n: Any) -> int | None:
    if n is None or isinstance(n, bool):
        return None
    try:
        count = int(n)
    except (TypeError, ValueError):
        return None
    return count if count > 0 else None


def select_for_review(
    words: Iterable[WordWithContext],
    start: DateBound = None,
    end: DateBound = None,
    max_count: Any = None,
) -> list[WordWithContext]:
    """Filter by date, order by lookup count, then cap the result."""
    filtered = filter_by_date_range(words, start, end)
    return limit(sort_by_lookup_count_descending(filtered), max_count)
