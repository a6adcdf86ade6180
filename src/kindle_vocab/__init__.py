"""kindle-vocab: a local, queryable store for Kindle vocabulary lookups."""

__version__ = "0.1.0"

from .exceptions import (
    KindleVocabError as KindleVocabError,
    StoreError as StoreError,
    StoreNotInitialized as StoreNotInitialized,
    StoreUnavailable as StoreUnavailable,
    StoreIOError as StoreIOError,
    ImportFailure as ImportFailure,
    InvalidSourceFormat as InvalidSourceFormat,
    SourceReadError as SourceReadError,
    ValidationError as ValidationError,
    ConfigError as ConfigError,
)

from .models import (
    Book as Book,
    Word as Word,
    Lookup as Lookup,
    WordWithContext as WordWithContext,
    Collection as Collection,
)

from .store import VocabStore as VocabStore

from .importer import (
    ImportSummary as ImportSummary,
    SnapshotReader as SnapshotReader,
    SqliteSnapshot as SqliteSnapshot,
    import_file as import_file,
    import_snapshot as import_snapshot,
)

from .query import (
    latest_lookup_of as latest_lookup_of,
    filter_by_date_range as filter_by_date_range,
    sort_by_lookup_count_descending as sort_by_lookup_count_descending,
    limit as limit,
    select_for_review as select_for_review,
)

from .review import (
    ContextDeletion as ContextDeletion,
    edit_usage as edit_usage,
    delete_context as delete_context,
    delete_word as delete_word,
)

from .exporter import (
    format_tsv as format_tsv,
    write_tsv as write_tsv,
)

from .config import (
    VocabConfig as VocabConfig,
    load_config as load_config,
)

__all__ = [
    # Store
    "VocabStore",
    # Records
    "Book",
    "Word",
    "Lookup",
    "WordWithContext",
    "Collection",
    # Import
    "ImportSummary",
    "SnapshotReader",
    "SqliteSnapshot",
    "import_file",
    "import_snapshot",
    # Review queries
    "latest_lookup_of",
    "filter_by_date_range",
    "sort_by_lookup_count_descending",
    "limit",
    "select_for_review",
    # Edit and delete
    "ContextDeletion",
    "edit_usage",
    "delete_context",
    "delete_word",
    # Export
    "format_tsv",
    "write_tsv",
    # Config
    "VocabConfig",
    "load_config",
    # Exceptions
    "KindleVocabError",
    "StoreError",
    "StoreNotInitialized",
    "StoreUnavailable",
    "StoreIOError",
    "ImportFailure",
    "InvalidSourceFormat",
    "SourceReadError",
    "ValidationError",
    "ConfigError",
]
