"""Anki export: words with their latest usage as a two-column TSV."""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from pathlib import Path

from kindle_vocab.models import WordWithContext
from kindle_vocab.query import latest_lookup_of

logger = logging.getLogger(__name__)

DEFAULT_FILENAME = "vocab.tsv"
DEFAULT_TAG = "strong"

_FIELD_BREAKS = re.compile(r"[\t\r\n]+")


def highlight_first(headword: str, text: str, tag: str = DEFAULT_TAG) -> str:
    """Wrap the first case-insensitive whole-word match of *headword* in *tag*."""
    if not headword or not text:
        return text
    pattern = re.compile(rf"\b{re.escape(headword)}\b", re.IGNORECASE)
    return pattern.sub(lambda m: f"<{tag}>{m.group(0)}</{tag}>", text, count=1)


def _field(value: str) -> str:
    return _FIELD_BREAKS.sub(" ", value)


def format_tsv(words: Iterable[WordWithContext], tag: str = DEFAULT_TAG) -> str:
    """One ``word<TAB>usage`` row per word, in input order, no header."""
    rows = []
    for word in words:
        latest = latest_lookup_of(word)
        if latest is None:
            logger.warning(f"Skipping {word.word!r}: no lookups to export")
            continue
        usage = highlight_first(word.word, latest.usage or "", tag)
        rows.append(f"{_field(word.word)}\t{_field(usage)}")
    return "\n".join(rows)


def write_tsv(
    words: Iterable[WordWithContext],
    destination: str | Path = DEFAULT_FILENAME,
    tag: str = DEFAULT_TAG,
) -> Path:
    """Write the TSV payload; a directory destination receives ``vocab.tsv``."""
    path = Path(destination)
    if path.is_dir():
        path = path / DEFAULT_FILENAME
    payload = format_tsv(words, tag)
    path.write_text(payload, encoding="utf-8")
    row_count = payload.count("\n") + 1 if payload else 0
    logger.info(f"Exported {row_count} word(s) to {path}")
    return path
