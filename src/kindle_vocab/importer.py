"""Import pipeline: Kindle ``vocab.db`` snapshot into the local store."""

from __future__ import annotations

import logging
import os
import sqlite3
import tempfile
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol, TypeVar

from kindle_vocab.exceptions import (
    InvalidSourceFormat,
    SourceReadError,
    StoreIOError,
    StoreNotInitialized,
)
from kindle_vocab.models import Book, Collection, Lookup, Word
from kindle_vocab.store import VocabStore

logger = logging.getLogger(__name__)

SOURCE_TABLES = ("BOOK_INFO", "WORDS", "LOOKUPS")

_SQLITE_HEADER = b"SQLite format 3\x00"

# Columns are mapped by position: the Kindle WORDS table calls its last
# column ``profileid``.
_BOOKS_SQL = (
    "SELECT b.* FROM BOOK_INFO b"
    " INNER JOIN LOOKUPS l ON l.book_key = b.id"
    " INNER JOIN WORDS w ON w.id = l.word_key"
)
_WORDS_SQL = "SELECT w.* FROM WORDS w INNER JOIN LOOKUPS l ON l.word_key = w.id"
# Lookups whose word is missing from WORDS would dangle; they are dropped,
# along with books that only such lookups reach.
_LOOKUPS_SQL = (
    "SELECT l.* FROM LOOKUPS l INNER JOIN WORDS w ON w.id = l.word_key"
)

_R = TypeVar("_R", Book, Word, Lookup)


class SnapshotReader(Protocol):
    """Read-only query access to an external relational snapshot."""

    def query(self, sql: str, params: Sequence[Any] = ()) -> list[tuple]:
        ...


@dataclass(frozen=True, slots=True)
class ImportSummary:
    """Number of records written by one import."""

    books: int
    words: int
    lookups: int

    @property
    def total(self) -> int:
        return self.books + self.words + self.lookups


class SqliteSnapshot:
    """A Kindle ``vocab.db`` opened read-only from a path or raw bytes.

    Bytes are spilled to a temporary file that is removed on :meth:`close`.
    """

    def __init__(self, source: str | Path | bytes) -> None:
        self._tmp_path: str | None = None
        if isinstance(source, (bytes, bytearray, memoryview)):
            data = bytes(source)
            _check_header(data[:len(_SQLITE_HEADER)], "<bytes>")
            with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as tmp:
                tmp.write(data)
                self._tmp_path = tmp.name
            path = Path(self._tmp_path)
        else:
            path = Path(source)
            if not path.exists():
                raise FileNotFoundError(f"File not found: {path}")
            try:
                with open(path, "rb") as f:
                    header = f.read(len(_SQLITE_HEADER))
            except OSError as e:
                raise SourceReadError(f"Cannot read {path}: {e}") from e
            _check_header(header, str(path))

        try:
            self._conn = sqlite3.connect(
                f"{path.resolve().as_uri()}?mode=ro", uri=True
            )
        except sqlite3.Error as e:
            self._remove_tmp()
            raise SourceReadError(f"Cannot open snapshot {path}: {e}") from e

    def query(self, sql: str, params: Sequence[Any] = ()) -> list[tuple]:
        try:
            return [tuple(r) for r in self._conn.execute(sql, params).fetchall()]
        except sqlite3.DatabaseError as e:
            raise SourceReadError(f"Cannot read snapshot: {e}") from e

    def close(self) -> None:
        self._conn.close()
        self._remove_tmp()

    def __enter__(self) -> SqliteSnapshot:
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def _remove_tmp(self) -> None:
        if self._tmp_path is not None:
            os.unlink(self._tmp_path)
            self._tmp_path = None


def _check_header(header: bytes, name: str) -> None:
    if header != _SQLITE_HEADER:
        raise SourceReadError(f"Not a SQLite database: {name}")


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------

def import_file(store: VocabStore, source: str | Path | bytes) -> ImportSummary:
    """Import a Kindle vocabulary database from a path or its raw bytes."""
    with SqliteSnapshot(source) as snapshot:
        return import_snapshot(store, snapshot)


def import_snapshot(store: VocabStore, reader: SnapshotReader) -> ImportSummary:
    """Replace the store contents with the rows extracted from *reader*.

    The snapshot is validated and fully extracted before the store is
    touched, so a rejected upload leaves existing data intact.  Once the
    store has been cleared, a failed write empties it again: callers must
    treat any failure as "re-import required".

    Raises:
        InvalidSourceFormat: a Kindle table is missing or malformed.
        SourceReadError: the snapshot cannot be queried.
        StoreIOError: the store failed while being repopulated.
    """
    if not store.is_initialized:
        raise StoreNotInitialized("Store not initialized; call initialize() first")

    validate_shape(reader)
    books = _extract(reader, _BOOKS_SQL, Book)
    words = _extract(reader, _WORDS_SQL, Word)
    lookups = _extract(reader, _LOOKUPS_SQL, Lookup)
    logger.debug(
        f"Extracted {len(books)} book(s), {len(words)} word(s), "
        f"{len(lookups)} lookup(s)"
    )

    store.clear_all()
    try:
        store.put_many(Collection.BOOKS, books)
        store.put_many(Collection.WORDS, words)
        store.put_many(Collection.LOOKUPS, lookups)
    except StoreIOError:
        logger.warning("Import failed after clearing the store; leaving it empty")
        store.clear_all()
        raise

    summary = ImportSummary(books=len(books), words=len(words), lookups=len(lookups))
    logger.info(
        f"Imported {summary.books} book(s), {summary.words} word(s), "
        f"{summary.lookups} lookup(s)"
    )
    return summary


def validate_shape(reader: SnapshotReader) -> None:
    """Confirm the snapshot exposes the three Kindle tables."""
    placeholders = ", ".join("?" for _ in SOURCE_TABLES)
    rows = reader.query(
        "SELECT name FROM sqlite_master "
        f"WHERE type = 'table' AND name IN ({placeholders})",
        SOURCE_TABLES,
    )
    found = {r[0] for r in rows}
    missing = [t for t in SOURCE_TABLES if t not in found]
    if missing:
        raise InvalidSourceFormat(
            "Invalid database structure, missing table(s): "
            f"{', '.join(missing)}. Please upload a Kindle vocabulary database."
        )


def _extract(reader: SnapshotReader, sql: str, record_type: type[_R]) -> list[_R]:
    """Run an extraction query and deduplicate by id, first row wins."""
    unique: dict[str, _R] = {}
    for row in reader.query(sql):
        try:
            record = record_type.from_row(row)
        except ValueError as e:
            raise InvalidSourceFormat(
                f"Malformed {record_type.__name__} row: {e}"
            ) from e
        unique.setdefault(record.id, record)
    return list(unique.values())
