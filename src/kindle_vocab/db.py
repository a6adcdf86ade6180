"""Database connection, DDL, and schema versioning for the local store."""

from __future__ import annotations

import sqlite3
from pathlib import Path

from kindle_vocab.exceptions import StoreUnavailable

SCHEMA_VERSION = "1"

# ---------------------------------------------------------------------------
# DDL statements
# ---------------------------------------------------------------------------

# No foreign keys: referential integrity is enforced by VocabStore.
_DDL = """
CREATE TABLE IF NOT EXISTS meta (
    key TEXT NOT NULL,
    value TEXT,
    UNIQUE (key)
);

CREATE TABLE IF NOT EXISTS books (
    id TEXT PRIMARY KEY,
    asin TEXT,
    guid TEXT,
    lang TEXT,
    title TEXT NOT NULL,
    authors TEXT
);
CREATE UNIQUE INDEX IF NOT EXISTS book_title_index ON books (title);
CREATE UNIQUE INDEX IF NOT EXISTS book_asin_index ON books (asin);
CREATE UNIQUE INDEX IF NOT EXISTS book_guid_index ON books (guid);
CREATE INDEX IF NOT EXISTS book_lang_index ON books (lang);
CREATE INDEX IF NOT EXISTS book_authors_index ON books (authors);

CREATE TABLE IF NOT EXISTS words (
    id TEXT PRIMARY KEY,
    word TEXT NOT NULL,
    stem TEXT,
    lang TEXT,
    category TEXT,
    timestamp TEXT,
    profiled TEXT
);
CREATE UNIQUE INDEX IF NOT EXISTS word_word_index ON words (word);
CREATE INDEX IF NOT EXISTS word_stem_index ON words (stem);
CREATE INDEX IF NOT EXISTS word_lang_index ON words (lang);
CREATE INDEX IF NOT EXISTS word_category_index ON words (category);
CREATE INDEX IF NOT EXISTS word_timestamp_index ON words (timestamp);
CREATE INDEX IF NOT EXISTS word_profiled_index ON words (profiled);

CREATE TABLE IF NOT EXISTS lookups (
    id TEXT PRIMARY KEY,
    word_key TEXT NOT NULL,
    book_key TEXT,
    dict_key TEXT,
    pos TEXT,
    usage TEXT,
    timestamp TEXT
);
CREATE INDEX IF NOT EXISTS lookup_word_key_index ON lookups (word_key);
CREATE INDEX IF NOT EXISTS lookup_book_key_index ON lookups (book_key);
CREATE INDEX IF NOT EXISTS lookup_dict_key_index ON lookups (dict_key);
CREATE INDEX IF NOT EXISTS lookup_pos_index ON lookups (pos);
CREATE INDEX IF NOT EXISTS lookup_usage_index ON lookups (usage);
CREATE INDEX IF NOT EXISTS lookup_timestamp_index ON lookups (timestamp);
"""


def connect(db_path: str | Path = ":memory:") -> sqlite3.Connection:
    """Open a store connection, creating parent directories for file paths."""
    db_path_str = str(db_path)
    try:
        if db_path_str != ":memory:":
            Path(db_path_str).parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(db_path_str)
        if db_path_str != ":memory:":
            conn.execute("PRAGMA journal_mode = WAL")
    except (OSError, sqlite3.Error) as e:
        raise StoreUnavailable(f"Cannot open store at {db_path_str}: {e}") from e
    conn.row_factory = sqlite3.Row
    return conn


def init_db(conn: sqlite3.Connection) -> None:
    """Create the collections and indices if they don't exist. Set schema version."""
    try:
        conn.executescript(_DDL)
        conn.execute(
            "INSERT OR IGNORE INTO meta (key, value) VALUES ('schema_version', ?)",
            (SCHEMA_VERSION,),
        )
        conn.execute(
            "INSERT OR IGNORE INTO meta (key, value) "
            "VALUES ('created_at', strftime('%Y-%m-%dT%H:%M:%f', 'now'))",
        )
        conn.commit()
    except sqlite3.Error as e:
        raise StoreUnavailable(f"Cannot create store schema: {e}") from e


def check_schema_version(conn: sqlite3.Connection) -> None:
    """Verify the store's schema version; a mismatch requires a fresh import."""
    try:
        row = conn.execute(
            "SELECT value FROM meta WHERE key = 'schema_version'"
        ).fetchone()
    except sqlite3.OperationalError:
        # meta table doesn't exist - new store
        return
    except sqlite3.DatabaseError as e:
        raise StoreUnavailable(f"Store file is not usable: {e}") from e
    if row is None:
        return
    version = row[0]
    if version != SCHEMA_VERSION:
        raise StoreUnavailable(
            f"Incompatible schema version: {version} "
            f"(expected {SCHEMA_VERSION})"
        )
