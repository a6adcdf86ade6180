"""Shared test fixtures for kindle-vocab."""

import sqlite3

import pytest

from kindle_vocab import Book, Collection, Lookup, VocabStore, Word

# Schema of the vocab.db file written by Kindle devices.
KINDLE_DDL = """
CREATE TABLE BOOK_INFO (id TEXT PRIMARY KEY NOT NULL UNIQUE, asin TEXT, guid TEXT,
    lang TEXT, title TEXT, authors TEXT);
CREATE TABLE WORDS (id TEXT PRIMARY KEY NOT NULL UNIQUE, word TEXT, stem TEXT,
    lang TEXT, category INTEGER DEFAULT 0, timestamp INTEGER DEFAULT 0, profileid TEXT);
CREATE TABLE LOOKUPS (id TEXT PRIMARY KEY NOT NULL UNIQUE, word_key TEXT, book_key TEXT,
    dict_key TEXT, pos TEXT, usage TEXT, timestamp INTEGER DEFAULT 0);
CREATE TABLE DICT_INFO (id TEXT PRIMARY KEY NOT NULL UNIQUE, asin TEXT, langin TEXT,
    langout TEXT);
CREATE TABLE METADATA (id TEXT PRIMARY KEY NOT NULL UNIQUE, dsname TEXT, sscnt INTEGER,
    profileid TEXT);
CREATE TABLE VERSION (id TEXT PRIMARY KEY NOT NULL UNIQUE, dsname TEXT, value INTEGER);
"""

# 2023-11-14T22:13:20Z in epoch milliseconds
BASE_TS = 1_700_000_000_000

SAMPLE_BOOKS = [
    ("dune:1", "B000DUNE01", "guid-dune", "en", "Dune", "Frank Herbert"),
    ("emma:1", "B000EMMA01", "guid-emma", "en", "Emma", "Jane Austen"),
    ("unread:1", "B000UNREAD", "guid-unread", "en", "Unread Book", "Nobody"),
]

SAMPLE_WORDS = [
    ("en:run", "run", "run", "en", 0, BASE_TS + 1000, "profile-1"),
    ("en:sand", "sand", "sand", "en", 0, BASE_TS + 4000, "profile-1"),
    ("en:spice", "spice", "spice", "en", 0, BASE_TS + 6000, "profile-1"),
    ("en:ball", "ball", "ball", "en", 0, BASE_TS + 8000, "profile-1"),
    ("en:orphan", "orphan", "orphan", "en", 0, BASE_TS, "profile-1"),
]

SAMPLE_LOOKUPS = [
    ("L01", "en:run", "dune:1", "dict", "0", "I went for a run today", BASE_TS + 1000),
    ("L02", "en:run", "dune:1", "dict", "0", "She will run the company", BASE_TS + 2000),
    ("L03", "en:run", "emma:1", "dict", "0", "They run every morning", BASE_TS + 3000),
    ("L04", "en:sand", "dune:1", "dict", "0", "Sand got into everything", BASE_TS + 4000),
    ("L05", "en:sand", "dune:1", "dict", "0", "The sand was hot", BASE_TS + 5000),
    ("L06", "en:spice", "dune:1", "dict", "0", "The spice must flow", BASE_TS + 6000),
    ("L07", "en:spice", "emma:1", "dict", "0", "A spice from the east", BASE_TS + 7000),
    ("L08", "en:ball", "emma:1", "dict", "0", "She went to the ball", BASE_TS + 8000),
    ("L09", "en:run", "dune:1", "dict", "0", "Run, he said", BASE_TS + 9000),
    ("L10", "en:sand", "emma:1", "dict", "0", "Grains of sand", BASE_TS + 10000),
]


class ConnectionReader:
    """In-memory stand-in for a parsed snapshot."""

    def __init__(self, conn):
        self._conn = conn
        self.queries = []

    def query(self, sql, params=()):
        self.queries.append(sql)
        return [tuple(r) for r in self._conn.execute(sql, params).fetchall()]


def build_kindle_db(conn, books=SAMPLE_BOOKS, words=SAMPLE_WORDS, lookups=SAMPLE_LOOKUPS):
    """Create the Kindle tables on *conn* and fill them."""
    conn.executescript(KINDLE_DDL)
    conn.executemany("INSERT INTO BOOK_INFO VALUES (?, ?, ?, ?, ?, ?)", books)
    conn.executemany("INSERT INTO WORDS VALUES (?, ?, ?, ?, ?, ?, ?)", words)
    conn.executemany("INSERT INTO LOOKUPS VALUES (?, ?, ?, ?, ?, ?, ?)", lookups)
    conn.commit()
    return conn


@pytest.fixture(autouse=True)
def _isolated_config(tmp_path, monkeypatch):
    """Keep the user's own config and environment out of the tests."""
    monkeypatch.delenv("KINDLE_VOCAB_CONFIG", raising=False)
    monkeypatch.delenv("KINDLE_VOCAB_DB", raising=False)
    monkeypatch.setattr(
        "kindle_vocab.config.DEFAULT_CONFIG_PATH", tmp_path / "no-config.yaml"
    )


@pytest.fixture
def store():
    """An initialized in-memory store."""
    with VocabStore(":memory:") as st:
        yield st


@pytest.fixture
def seeded_store(store):
    """Store holding the reachable part of the sample data, written directly."""
    store.put_many(Collection.BOOKS, [Book.from_row(b) for b in SAMPLE_BOOKS[:2]])
    store.put_many(Collection.WORDS, [Word.from_row(w) for w in SAMPLE_WORDS[:4]])
    store.put_many(Collection.LOOKUPS, [Lookup.from_row(lk) for lk in SAMPLE_LOOKUPS])
    return store


@pytest.fixture
def make_snapshot():
    """Factory for in-memory Kindle snapshots behind a fake reader."""
    conns = []

    def _make(books=SAMPLE_BOOKS, words=SAMPLE_WORDS, lookups=SAMPLE_LOOKUPS):
        conn = sqlite3.connect(":memory:")
        conns.append(conn)
        return ConnectionReader(build_kindle_db(conn, books, words, lookups))

    yield _make
    for conn in conns:
        conn.close()


@pytest.fixture
def kindle_snapshot(make_snapshot):
    """Fake reader over the sample Kindle data."""
    return make_snapshot()


@pytest.fixture
def kindle_db_file(tmp_path):
    """The sample Kindle data written to a vocab.db file."""
    path = tmp_path / "vocab.db"
    conn = sqlite3.connect(path)
    build_kindle_db(conn)
    conn.close()
    return path
