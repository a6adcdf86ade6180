"""
Command-line interface for the Kindle vocabulary store.
"""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from . import __version__
from .config import VocabConfig, load_config
from .exceptions import ConfigError, KindleVocabError
from .exporter import write_tsv
from .importer import import_file
from .models import Book, Collection, WordWithContext
from .query import latest_lookup_of, parse_date_bound, select_for_review
from .review import ContextDeletion, delete_context, delete_word, edit_usage
from .store import VocabStore


def main(argv: Optional[list] = None) -> int:
    """Main entry point for the kindle-vocab CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    try:
        config = load_config(args.config)
    except (ConfigError, FileNotFoundError) as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        return 1
    if args.db:
        config.db_path = args.db
    _configure_logging(args.verbose, config.log_level)

    try:
        with VocabStore(config.db_path) as store:
            return args.func(args, store, config)
    except (KindleVocabError, FileNotFoundError) as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        return 1


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="kindle-vocab",
        description="Import, review and export Kindle vocabulary lookups",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="YAML config file (default: ~/.kindle_vocab/config.yaml)",
    )
    parser.add_argument(
        "--db",
        type=Path,
        help="Local store file (overrides config)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Log progress (-v for info, -vv for debug)",
    )

    subparsers = parser.add_subparsers(title="commands", dest="command")

    # import command
    import_parser = subparsers.add_parser(
        "import",
        help="Replace the store with the contents of a Kindle vocab.db",
    )
    import_parser.add_argument(
        "file",
        type=Path,
        help="Kindle vocabulary database (vocab.db)",
    )
    import_parser.set_defaults(func=cmd_import)

    # stats command
    stats_parser = subparsers.add_parser(
        "stats",
        help="Show record counts",
    )
    stats_parser.set_defaults(func=cmd_stats)

    # books command
    books_parser = subparsers.add_parser(
        "books",
        help="List imported books",
    )
    books_parser.set_defaults(func=cmd_books)

    # words command
    words_parser = subparsers.add_parser(
        "words",
        help="List words for review, most looked-up first",
    )
    _add_selection_arguments(words_parser)
    words_parser.set_defaults(func=cmd_words)

    # export command
    export_parser = subparsers.add_parser(
        "export",
        help="Export words to an Anki-ready TSV file",
    )
    _add_selection_arguments(export_parser)
    export_parser.add_argument(
        "-o", "--output",
        type=Path,
        help="Output file or directory (default: vocab.tsv)",
    )
    export_parser.set_defaults(func=cmd_export)

    # edit command
    edit_parser = subparsers.add_parser(
        "edit",
        help="Replace the usage text of a lookup",
    )
    edit_parser.add_argument("lookup_id", help="Lookup ID")
    edit_parser.add_argument("usage", help="New usage text")
    edit_parser.set_defaults(func=cmd_edit)

    # delete-context command
    delete_context_parser = subparsers.add_parser(
        "delete-context",
        help="Delete one lookup (and its word, if it was the last one)",
    )
    delete_context_parser.add_argument("lookup_id", help="Lookup ID")
    delete_context_parser.set_defaults(func=cmd_delete_context)

    # delete-word command
    delete_word_parser = subparsers.add_parser(
        "delete-word",
        help="Delete a word and all of its lookups",
    )
    delete_word_parser.add_argument("word_id", help="Word ID")
    delete_word_parser.add_argument(
        "--yes", "-y",
        action="store_true",
        help="Skip confirmation prompt",
    )
    delete_word_parser.set_defaults(func=cmd_delete_word)

    # clear command
    clear_parser = subparsers.add_parser(
        "clear",
        help="Remove everything from the store",
    )
    clear_parser.add_argument(
        "--yes", "-y",
        action="store_true",
        help="Skip confirmation prompt",
    )
    clear_parser.set_defaults(func=cmd_clear)

    return parser


def _add_selection_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--book",
        type=str,
        help="Only words looked up in this book ID",
    )
    parser.add_argument(
        "--from",
        dest="start",
        type=_date_bound,
        help="Latest lookup on or after this date (YYYY-MM-DD or ISO 8601)",
    )
    parser.add_argument(
        "--to",
        dest="end",
        type=_date_bound,
        help="Latest lookup on or before this date (YYYY-MM-DD or ISO 8601)",
    )
    parser.add_argument(
        "--limit",
        type=int,
        help="Maximum number of words",
    )


def _date_bound(value: str) -> str:
    try:
        parse_date_bound(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"invalid date: {value!r}") from e
    return value


def _configure_logging(verbosity: int, default_level: str) -> None:
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.getLevelName(default_level)
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def _confirm(prompt: str) -> bool:
    response = input(f"\n{prompt} [y/N] ")
    return response.lower() in ("y", "yes")


def _review_words(store: VocabStore, args: argparse.Namespace) -> List[WordWithContext]:
    if args.book:
        words = store.get_words_by_book(args.book)
    else:
        words = store.get_all_words_with_context()
    return select_for_review(words, args.start, args.end, args.limit)


def cmd_import(args: argparse.Namespace, store: VocabStore, config: VocabConfig) -> int:
    """Handle import command."""
    print(f"\nImporting {args.file}...")
    summary = import_file(store, args.file)

    print("\nImported:")
    print(f"  Books:   {summary.books}")
    print(f"  Words:   {summary.words}")
    print(f"  Lookups: {summary.lookups}")
    return 0


def cmd_stats(args: argparse.Namespace, store: VocabStore, config: VocabConfig) -> int:
    """Handle stats command."""
    print(f"\nStore: {store.db_path}")
    for collection in Collection:
        print(f"  {collection.value.capitalize() + ':':<9} {store.count(collection)}")
    return 0


def cmd_books(args: argparse.Namespace, store: VocabStore, config: VocabConfig) -> int:
    """Handle books command."""
    books: List[Book] = store.get_all(Collection.BOOKS)  # type: ignore[assignment]
    if not books:
        print("No books imported.")
        return 0

    print(f"\n{'ID':<40} {'Title':<40} {'Authors'}")
    print("-" * 100)
    for book in sorted(books, key=lambda b: b.title.lower()):
        title = (book.title[:37] + "...") if len(book.title) > 40 else book.title
        print(f"{book.id:<40} {title:<40} {book.authors or ''}")
    return 0


def cmd_words(args: argparse.Namespace, store: VocabStore, config: VocabConfig) -> int:
    """Handle words command."""
    words = _review_words(store, args)
    if not words:
        print("No words found.")
        return 0

    print(f"\n{'Word':<24} {'Lookups':<8} {'Latest usage'}")
    print("-" * 100)
    for word in words:
        latest = latest_lookup_of(word)
        usage = (latest.usage or "") if latest else ""
        if len(usage) > 66:
            usage = usage[:63] + "..."
        print(f"{word.word:<24} {word.lookup_count:<8} {usage}")
    print(f"\n{len(words)} word(s)")
    return 0


def cmd_export(args: argparse.Namespace, store: VocabStore, config: VocabConfig) -> int:
    """Handle export command."""
    words = _review_words(store, args)
    destination = args.output or Path(config.export_filename)
    path = write_tsv(words, destination, tag=config.emphasis_tag)
    print(f"\nExported {len(words)} word(s) to {path}")
    return 0


def cmd_edit(args: argparse.Namespace, store: VocabStore, config: VocabConfig) -> int:
    """Handle edit command."""
    lookup = edit_usage(store, args.lookup_id, args.usage)
    if lookup is None:
        print(f"Lookup {args.lookup_id} not found.")
        return 1
    print(f"Updated lookup {lookup.id}.")
    return 0


def cmd_delete_context(
    args: argparse.Namespace, store: VocabStore, config: VocabConfig
) -> int:
    """Handle delete-context command."""
    result = delete_context(store, args.lookup_id)
    if result is ContextDeletion.NOT_FOUND:
        print(f"Lookup {args.lookup_id} not found.")
        return 1
    if result is ContextDeletion.WORD:
        print(f"Deleted lookup {args.lookup_id} and its word (no contexts left).")
    else:
        print(f"Deleted lookup {args.lookup_id}.")
    return 0


def cmd_delete_word(
    args: argparse.Namespace, store: VocabStore, config: VocabConfig
) -> int:
    """Handle delete-word command."""
    word = store.get_word_with_context(args.word_id)
    if word is None:
        print(f"Word {args.word_id} not found.")
        return 1

    if not args.yes and not _confirm(
        f"Delete {word.word!r} and its {word.lookup_count} lookup(s)?"
    ):
        print("Aborted.")
        return 1

    delete_word(store, word.id)
    print(f"Deleted {word.word!r}.")
    return 0


def cmd_clear(args: argparse.Namespace, store: VocabStore, config: VocabConfig) -> int:
    """Handle clear command."""
    if not args.yes and not _confirm(f"Remove everything from {store.db_path}?"):
        print("Aborted.")
        return 1
    store.clear_all()
    print("Store cleared.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
