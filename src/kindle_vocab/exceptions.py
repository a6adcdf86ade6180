"""Custom exception hierarchy for kindle-vocab."""


class KindleVocabError(Exception):
    """Base exception for all kindle-vocab errors."""


class StoreError(KindleVocabError):
    """Base class for local store failures."""


class StoreNotInitialized(StoreError):
    """Store operation attempted before initialize()."""


class StoreUnavailable(StoreError):
    """Storage engine cannot be opened (permissions, schema version)."""


class StoreIOError(StoreError):
    """Storage engine failed mid-operation; the transaction was rolled back."""


class ImportFailure(KindleVocabError):
    """Base class for import pipeline failures."""


class InvalidSourceFormat(ImportFailure):
    """Snapshot is missing one of the expected Kindle tables."""


class SourceReadError(ImportFailure):
    """Snapshot bytes are not a readable SQLite database."""


class ValidationError(KindleVocabError):
    """Invalid data (record of the wrong kind for a collection)."""


class ConfigError(KindleVocabError):
    """Configuration file is unreadable or malformed."""
