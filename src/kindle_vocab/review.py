"""Edit and delete operations triggered from the review list."""

from __future__ import annotations

import dataclasses
import logging
from enum import Enum

from kindle_vocab.models import Collection, Lookup
from kindle_vocab.store import VocabStore

logger = logging.getLogger(__name__)


class ContextDeletion(str, Enum):
    """What :func:`delete_context` ended up removing."""

    LOOKUP = "lookup"
    WORD = "word"
    NOT_FOUND = "not_found"


def edit_usage(store: VocabStore, lookup_id: str, usage: str) -> Lookup | None:
    """Replace a lookup's usage text in place. The previous text is not kept."""
    lookup = store.get(Collection.LOOKUPS, lookup_id)
    if lookup is None:
        return None
    updated = dataclasses.replace(lookup, usage=usage)
    store.put_many(Collection.LOOKUPS, [updated])
    return updated


def delete_context(store: VocabStore, lookup_id: str) -> ContextDeletion:
    """Delete one lookup; if it was its word's last one, delete the word.

    Keeps every word in the review list backed by at least one context.
    """
    lookup = store.get(Collection.LOOKUPS, lookup_id)
    if lookup is None:
        return ContextDeletion.NOT_FOUND

    word = store.get_word_with_context(lookup.word_key)
    if word is not None and len(word.lookups) <= 1:
        store.delete_word(word.id)
        logger.info(f"Deleted last context of {word.word!r}; word removed")
        return ContextDeletion.WORD
    store.delete_lookup(lookup_id)
    return ContextDeletion.LOOKUP


def delete_word(store: VocabStore, word_id: str) -> bool:
    """Delete a word together with all of its contexts."""
    return store.delete_word(word_id)
