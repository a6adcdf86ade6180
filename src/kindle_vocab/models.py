"""Record dataclasses and collection definitions for kindle-vocab."""

from __future__ import annotations

import dataclasses
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date, datetime, time, timezone
from enum import Enum
from typing import Any

# ---------------------------------------------------------------------------
# Stored records
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class Book:
    """A publication that at least one lookup was made in."""

    id: str
    asin: str | None
    guid: str | None
    lang: str | None
    title: str
    authors: str | None

    @classmethod
    def from_row(cls, row: Sequence[Any]) -> Book:
        return cls(*_text_values(row, 6))


@dataclass(frozen=True, slots=True)
class Word:
    """A distinct vocabulary entry."""

    id: str
    word: str
    stem: str | None
    lang: str | None
    category: str | None
    timestamp: str | None
    profiled: str | None

    @classmethod
    def from_row(cls, row: Sequence[Any]) -> Word:
        return cls(*_text_values(row, 7))


@dataclass(frozen=True, slots=True)
class Lookup:
    """One occurrence of a word in context within a book."""

    id: str
    word_key: str
    book_key: str | None
    dict_key: str | None
    pos: str | None
    usage: str | None
    timestamp: str | None

    @classmethod
    def from_row(cls, row: Sequence[Any]) -> Lookup:
        return cls(*_text_values(row, 7))


# ---------------------------------------------------------------------------
# Timestamps
# ---------------------------------------------------------------------------

_EARLIEST = datetime.min.replace(tzinfo=timezone.utc)


def parse_timestamp(value: Any) -> datetime | None:
    """Parse a lookup timestamp into an aware UTC datetime.

    Kindle stores milliseconds since the epoch; ISO 8601 strings are accepted
    as well.  Returns None for anything unparseable.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return _as_utc(value)
    if isinstance(value, date):
        return datetime.combine(value, time.min, tzinfo=timezone.utc)
    if isinstance(value, (int, float)):
        return _from_epoch_ms(value)

    text = str(value).strip()
    if not text:
        return None
    if text.isdigit():
        return _from_epoch_ms(int(text))
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        return _as_utc(datetime.fromisoformat(text))
    except ValueError:
        return None


def _from_epoch_ms(ms: float) -> datetime | None:
    try:
        return datetime.fromtimestamp(ms / 1000, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None


def _as_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def lookup_order(lookup: Lookup) -> tuple[bool, datetime, str, str]:
    """Chronological sort key; unparseable timestamps first, ties by id."""
    parsed = parse_timestamp(lookup.timestamp)
    return (
        parsed is not None,
        parsed or _EARLIEST,
        lookup.timestamp or "",
        lookup.id,
    )


# ---------------------------------------------------------------------------
# Derived view
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class WordWithContext:
    """A word together with the lookups that reference it.

    Assembled on every read and never persisted.  ``lookups`` is in
    chronological order (see :func:`lookup_order`), so the last one is the
    latest.
    """

    id: str
    word: str
    stem: str | None
    lang: str | None
    category: str | None
    timestamp: str | None
    profiled: str | None
    lookups: tuple[Lookup, ...] = ()

    @classmethod
    def from_word(cls, word: Word, lookups: Iterable[Lookup] = ()) -> WordWithContext:
        ordered = sorted(lookups, key=lookup_order)
        return cls(
            id=word.id,
            word=word.word,
            stem=word.stem,
            lang=word.lang,
            category=word.category,
            timestamp=word.timestamp,
            profiled=word.profiled,
            lookups=tuple(ordered),
        )

    @property
    def lookup_count(self) -> int:
        return len(self.lookups)

    def to_word(self) -> Word:
        """Strip the context and return the stored record."""
        return Word(
            id=self.id,
            word=self.word,
            stem=self.stem,
            lang=self.lang,
            category=self.category,
            timestamp=self.timestamp,
            profiled=self.profiled,
        )


# ---------------------------------------------------------------------------
# Collections
# ---------------------------------------------------------------------------

class Collection(str, Enum):
    """The three named collections owned by the local store."""

    BOOKS = "books"
    WORDS = "words"
    LOOKUPS = "lookups"

    @property
    def record_type(self) -> type:
        return _RECORD_TYPES[self]

    @property
    def columns(self) -> tuple[str, ...]:
        return tuple(f.name for f in dataclasses.fields(self.record_type))

    @property
    def unique_indices(self) -> tuple[str, ...]:
        return _UNIQUE_INDICES[self]

    @property
    def indices(self) -> tuple[str, ...]:
        return _INDICES[self]

    def from_row(self, row: Sequence[Any]) -> Book | Word | Lookup:
        return self.record_type.from_row(row)


_RECORD_TYPES: dict[Collection, type] = {
    Collection.BOOKS: Book,
    Collection.WORDS: Word,
    Collection.LOOKUPS: Lookup,
}

_UNIQUE_INDICES: dict[Collection, tuple[str, ...]] = {
    Collection.BOOKS: ("title", "asin", "guid"),
    Collection.WORDS: ("word",),
    Collection.LOOKUPS: (),
}

_INDICES: dict[Collection, tuple[str, ...]] = {
    Collection.BOOKS: ("lang", "authors"),
    Collection.WORDS: ("stem", "lang", "category", "timestamp", "profiled"),
    Collection.LOOKUPS: (
        "word_key", "book_key", "dict_key", "pos", "usage", "timestamp",
    ),
}


def record_values(record: Book | Word | Lookup) -> tuple[Any, ...]:
    """Column values of a stored record, in column order."""
    return tuple(getattr(record, f.name) for f in dataclasses.fields(record))


def _text_values(row: Sequence[Any], width: int) -> list[str | None]:
    # The Kindle export stores timestamps and categories as integers.
    values = list(row)[:width]
    if len(values) < width:
        raise ValueError(f"Expected {width} columns, got {len(values)}")
    return [v if v is None or isinstance(v, str) else str(v) for v in values]
