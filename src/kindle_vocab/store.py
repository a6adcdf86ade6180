"""VocabStore: the local persistent store for books, words, and lookups.

SQLite is used as a keyed record engine only: there are no foreign keys and
no ``ON DELETE CASCADE``.  Every integrity rule (a lookup always resolves to
a live word, a word deletion takes its lookups with it) is enforced here, and
every mutation runs in a single transaction.
"""

from __future__ import annotations

import functools
import logging
import sqlite3
from collections import defaultdict
from collections.abc import Callable, Generator, Iterable
from contextlib import contextmanager
from pathlib import Path
from typing import Any, TypeVar

from kindle_vocab import db as _db
from kindle_vocab.exceptions import (
    StoreIOError,
    StoreNotInitialized,
    StoreUnavailable,
    ValidationError,
)
from kindle_vocab.models import (
    Book,
    Collection,
    Lookup,
    Word,
    WordWithContext,
    lookup_order,
    record_values,
)

logger = logging.getLogger(__name__)

_F = TypeVar("_F", bound=Callable[..., Any])

_WORD_COLUMNS = ", ".join(Collection.WORDS.columns)
_LOOKUP_COLUMNS = ", ".join(Collection.LOOKUPS.columns)


def _reads_db(method: _F) -> _F:
    """Decorator: requires an initialized store and maps engine errors."""

    @functools.wraps(method)
    def wrapper(self: VocabStore, *args: Any, **kwargs: Any) -> Any:
        self._connection()
        try:
            return method(self, *args, **kwargs)
        except sqlite3.Error as e:
            raise StoreIOError(f"{method.__name__} failed: {e}") from e

    return wrapper  # type: ignore[return-value]


def _modifies_db(method: _F) -> _F:
    """Decorator: wraps mutation methods in a single transaction."""

    @functools.wraps(method)
    def wrapper(self: VocabStore, *args: Any, **kwargs: Any) -> Any:
        conn = self._connection()
        try:
            with conn:
                return method(self, *args, **kwargs)
        except sqlite3.Error as e:
            raise StoreIOError(f"{method.__name__} failed: {e}") from e

    return wrapper  # type: ignore[return-value]


class VocabStore:
    """Durable, indexed storage for the three vocabulary collections.

    Construct one store per process and pass it to every consumer.  Call
    :meth:`initialize` before anything else (or use the store as a context
    manager, which initializes on enter and closes on exit).
    """

    def __init__(self, db_path: str | Path = ":memory:") -> None:
        self._db_path = str(db_path)
        self._conn: sqlite3.Connection | None = None

    @property
    def db_path(self) -> str:
        return self._db_path

    @property
    def is_initialized(self) -> bool:
        return self._conn is not None

    def initialize(self) -> None:
        """Open the store, creating collections and indices if absent.

        Calling it again on an open store does nothing.

        Raises:
            StoreUnavailable: the engine cannot be opened or holds an
                incompatible schema version.
        """
        if self._conn is not None:
            return
        conn = _db.connect(self._db_path)
        try:
            _db.check_schema_version(conn)
            _db.init_db(conn)
        except StoreUnavailable:
            conn.close()
            raise
        self._conn = conn
        logger.debug(f"Opened store at {self._db_path}")

    def close(self) -> None:
        """Close the database connection."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def __enter__(self) -> VocabStore:
        self.initialize()
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def _connection(self) -> sqlite3.Connection:
        if self._conn is None:
            raise StoreNotInitialized(
                "Store not initialized; call initialize() first"
            )
        return self._conn

    @contextmanager
    def _snapshot(self) -> Generator[sqlite3.Connection, None, None]:
        """Run several reads against one consistent view of the store."""
        conn = self._connection()
        if conn.in_transaction:
            yield conn
            return
        conn.execute("BEGIN")
        try:
            yield conn
        finally:
            conn.commit()

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    @_modifies_db
    def put_many(
        self,
        collection: Collection | str,
        records: Iterable[Book | Word | Lookup],
    ) -> int:
        """Upsert a batch of records of one kind; all or nothing.

        A record whose id already exists replaces the stored one.  A record
        that collides with a *different* id on a unique index aborts the
        whole batch.
        """
        collection = Collection(collection)
        records = list(records)
        record_type = collection.record_type
        for record in records:
            if not isinstance(record, record_type):
                raise ValidationError(
                    f"Cannot store {type(record).__name__} in "
                    f"{collection.value!r} (expected {record_type.__name__})"
                )
        if not records:
            return 0

        columns = collection.columns
        updates = ", ".join(f"{c} = excluded.{c}" for c in columns if c != "id")
        self._connection().executemany(
            f"INSERT INTO {collection.value} ({', '.join(columns)}) "
            f"VALUES ({', '.join('?' for _ in columns)}) "
            f"ON CONFLICT (id) DO UPDATE SET {updates}",
            [record_values(r) for r in records],
        )
        logger.debug(f"Stored {len(records)} record(s) in {collection.value}")
        return len(records)

    @_modifies_db
    def delete_lookup(self, lookup_id: str) -> bool:
        """Remove exactly one lookup.

        The lookup's word is left alone even if this was its last context;
        see :func:`kindle_vocab.review.delete_context` for that policy.
        Returns False when no such lookup exists.
        """
        cur = self._connection().execute(
            "DELETE FROM lookups WHERE id = ?", (lookup_id,)
        )
        return cur.rowcount > 0

    @_modifies_db
    def delete_word(self, word_id: str) -> bool:
        """Remove a word and every lookup that references it.

        Returns False when no such word exists.
        """
        conn = self._connection()
        removed = conn.execute(
            "DELETE FROM lookups WHERE word_key = ?", (word_id,)
        ).rowcount
        cur = conn.execute(
            "DELETE FROM words WHERE id = ?", (word_id,)
        )
        logger.debug(f"Deleted word {word_id} with {removed} lookup(s)")
        return cur.rowcount > 0

    @_modifies_db
    def clear_all(self) -> None:
        """Empty all three collections at once."""
        conn = self._connection()
        for collection in (Collection.LOOKUPS, Collection.WORDS, Collection.BOOKS):
            conn.execute(f"DELETE FROM {collection.value}")
        logger.debug("Cleared all collections")

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @_reads_db
    def get_all(self, collection: Collection | str) -> list[Book | Word | Lookup]:
        """Every record of a collection, in storage order."""
        collection = Collection(collection)
        rows = self._connection().execute(
            f"SELECT {', '.join(collection.columns)} FROM {collection.value}"
        ).fetchall()
        return [collection.from_row(r) for r in rows]

    @_reads_db
    def get(
        self, collection: Collection | str, record_id: str
    ) -> Book | Word | Lookup | None:
        """One record by id, or None."""
        collection = Collection(collection)
        row = self._connection().execute(
            f"SELECT {', '.join(collection.columns)} FROM {collection.value} "
            "WHERE id = ?",
            (record_id,),
        ).fetchone()
        return collection.from_row(row) if row else None

    @_reads_db
    def count(self, collection: Collection | str) -> int:
        collection = Collection(collection)
        return self._connection().execute(
            f"SELECT COUNT(*) FROM {collection.value}"
        ).fetchone()[0]

    @_reads_db
    def get_word_with_context(self, word_id: str) -> WordWithContext | None:
        """A word merged with all of its lookups, or None if it doesn't exist."""
        with self._snapshot() as conn:
            row = conn.execute(
                f"SELECT {_WORD_COLUMNS} FROM words WHERE id = ?",
                (word_id,),
            ).fetchone()
            if row is None:
                return None
            lookup_rows = conn.execute(
                f"SELECT {_LOOKUP_COLUMNS} FROM lookups WHERE word_key = ?",
                (word_id,),
            ).fetchall()
        return WordWithContext.from_word(
            Word.from_row(row), [Lookup.from_row(r) for r in lookup_rows]
        )

    @_reads_db
    def get_words_by_book(self, book_id: str) -> list[WordWithContext]:
        """Words looked up in one book, each carrying only that book's lookups.

        Ordered by each word's first appearance among the book's lookups.
        """
        with self._snapshot() as conn:
            lookup_rows = conn.execute(
                f"SELECT {_LOOKUP_COLUMNS} FROM lookups WHERE book_key = ?",
                (book_id,),
            ).fetchall()
            word_rows = conn.execute(
                f"SELECT {_WORD_COLUMNS} FROM words WHERE id IN "
                "(SELECT word_key FROM lookups WHERE book_key = ?)",
                (book_id,),
            ).fetchall()

        grouped: dict[str, list[Lookup]] = defaultdict(list)
        for lookup in sorted(map(Lookup.from_row, lookup_rows), key=lookup_order):
            grouped[lookup.word_key].append(lookup)
        words = {w.id: w for w in (Word.from_row(r) for r in word_rows)}
        return [
            WordWithContext.from_word(words[word_id], lookups)
            for word_id, lookups in grouped.items()
            if word_id in words
        ]

    @_reads_db
    def get_all_words_with_context(self) -> list[WordWithContext]:
        """Every word with all of its lookups, using one scan per collection."""
        with self._snapshot() as conn:
            word_rows = conn.execute(
                f"SELECT {_WORD_COLUMNS} FROM words"
            ).fetchall()
            lookup_rows = conn.execute(
                f"SELECT {_LOOKUP_COLUMNS} FROM lookups"
            ).fetchall()

        grouped: dict[str, list[Lookup]] = defaultdict(list)
        for r in lookup_rows:
            lookup = Lookup.from_row(r)
            grouped[lookup.word_key].append(lookup)
        return [
            WordWithContext.from_word(word, grouped.get(word.id, ()))
            for word in (Word.from_row(r) for r in word_rows)
        ]
