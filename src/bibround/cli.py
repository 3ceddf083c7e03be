"""Command-line interface for bibround."""

import argparse
import logging
import sys
from pathlib import Path

from .authors import all_authors
from .config import WorkspaceConfig
from .edit import apply_edits, delete_variable, set_variable
from .exceptions import BibroundError
from .export import write_export
from .library import format_file, load_document, load_edits, save_document
from .resolver import resolve
from .sort import SORT_MODES, sort_library
from .validate import validate_file


def setup_logging(verbosity: int = 0) -> None:
    """Configure logging for the CLI application.

    Args:
        verbosity: Logging verbosity level (0=WARNING, 1=INFO, 2+=DEBUG)
    """
    level = {0: logging.WARNING, 1: logging.INFO}.get(min(verbosity, 2), logging.DEBUG)
    logging.basicConfig(
        level=level,
        format="%(levelname)s %(name)s:%(lineno)d – %(message)s",
    )


def _config(args: argparse.Namespace) -> WorkspaceConfig:
    bib_path = Path(args.bib) if args.bib else None
    return WorkspaceConfig.from_workspace(Path(args.workspace), bib_path=bib_path)


def cmd_format(args: argparse.Namespace) -> None:
    """Rewrite the library in canonical BibTeX form."""
    config = _config(args)
    logger = logging.getLogger(__name__)

    try:
        output_path = Path(args.output) if args.output else None
        changed, _ = format_file(
            config.bib_path, output_path, dry_run=args.dry_run or args.check
        )

        if args.check:
            if changed:
                logger.error(f"✗ {config.bib_path.name} is not formatted")
                sys.exit(1)
            logger.info(f"✓ {config.bib_path.name} is already formatted")
            sys.exit(0)

        if args.dry_run:
            logger.info(f"Dry run completed: {'changes' if changed else 'no changes'} pending")
        else:
            logger.info(f"✓ Formatted {output_path or config.bib_path}")
        sys.exit(0)

    except (FileNotFoundError, ValueError, BibroundError) as e:
        logger.error(f"Format error: {e}")
        sys.exit(1)


def cmd_check(args: argparse.Namespace) -> None:
    """Run validation checks on the library."""
    config = _config(args)
    logger = logging.getLogger(__name__)

    try:
        if validate_file(config.bib_path):
            logger.info("✓ All validation checks passed")
            sys.exit(0)
        logger.error("✗ Validation checks failed")
        sys.exit(1)

    except (FileNotFoundError, ValueError, BibroundError) as e:
        logger.error(f"Validation error: {e}")
        sys.exit(1)


def cmd_export(args: argparse.Namespace) -> None:
    """Export resolved entries as JSON."""
    config = _config(args)
    output_path = Path(args.output) if args.output else config.export_path
    logger = logging.getLogger(__name__)

    try:
        document = load_document(config.bib_path)
        count = write_export(document, output_path)
        logger.info(f"✓ Exported {count} entries")
        logger.info(f"✓ Saved to: {output_path}")
        sys.exit(0)

    except (FileNotFoundError, ValueError, BibroundError) as e:
        logger.error(f"Export error: {e}")
        sys.exit(1)


def cmd_sort(args: argparse.Namespace) -> None:
    """Sort library entries."""
    config = _config(args)
    logger = logging.getLogger(__name__)

    try:
        sort_library(config.bib_path, by=args.mode)
        logger.info("✓ Sort operation completed successfully")

    except (FileNotFoundError, ValueError, BibroundError) as e:
        logger.error(f"Sort error: {e}")
        sys.exit(1)


def cmd_authors(args: argparse.Namespace) -> None:
    """Print every distinct author, one per line."""
    config = _config(args)
    logger = logging.getLogger(__name__)

    try:
        document = resolve(load_document(config.bib_path))
        for name in all_authors(document):
            print(name)

    except (FileNotFoundError, ValueError, BibroundError) as e:
        logger.error(f"Authors error: {e}")
        sys.exit(1)


def cmd_edit(args: argparse.Namespace) -> None:
    """Apply a JSON edit batch to the library."""
    config = _config(args)
    edits_path = Path(args.edits) if args.edits else config.edits_path
    logger = logging.getLogger(__name__)

    try:
        document = load_document(config.bib_path)
        changes = apply_edits(document, load_edits(edits_path))

        if args.dry_run:
            logger.info(f"✓ Dry run completed: {len(changes)} potential changes")
            if changes:
                logger.info("Changes that would be made:")
                for change in changes[:10]:
                    logger.info(f"  {change}")
                if len(changes) > 10:
                    logger.info(f"  ... and {len(changes) - 10} more changes")
        else:
            save_document(resolve(document), config.bib_path)
            logger.info(f"✓ Edit completed: {len(changes)} changes applied")
        sys.exit(0)

    except (FileNotFoundError, ValueError, BibroundError) as e:
        logger.error(f"Edit error: {e}")
        sys.exit(1)


def cmd_set_var(args: argparse.Namespace) -> None:
    """Define or replace a string variable."""
    config = _config(args)
    logger = logging.getLogger(__name__)

    try:
        document = load_document(config.bib_path)
        set_variable(document, args.key, args.value)
        save_document(resolve(document), config.bib_path)
        logger.info(f"✓ Set @string {args.key.lower()}")

    except (FileNotFoundError, ValueError, BibroundError) as e:
        logger.error(f"Variable error: {e}")
        sys.exit(1)


def cmd_del_var(args: argparse.Namespace) -> None:
    """Delete a string variable."""
    config = _config(args)
    logger = logging.getLogger(__name__)

    try:
        document = load_document(config.bib_path)
        delete_variable(document, args.key)
        save_document(resolve(document), config.bib_path)
        logger.info(f"✓ Deleted @string {args.key.lower()}")

    except (FileNotFoundError, ValueError, BibroundError) as e:
        logger.error(f"Variable error: {e}")
        sys.exit(1)


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="bxr",
        description="Parse, resolve and rewrite BibTeX files: format, check, export, edit.",
    )

    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (use -v for INFO, -vv for DEBUG)",
    )

    parser.add_argument(
        "--workspace",
        type=str,
        default=".",
        help="Path to the workspace directory (default: current directory)",
    )

    parser.add_argument(
        "--bib",
        type=str,
        help="Bibliography file to operate on (default: <workspace>/bib/library.bib)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # format subcommand
    format_parser = subparsers.add_parser(
        "format", help="Rewrite the library in canonical BibTeX form"
    )
    format_parser.add_argument(
        "--check",
        action="store_true",
        help="Exit with status 1 if the file is not already formatted; write nothing",
    )
    format_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Report whether the file would change without writing it",
    )
    format_parser.add_argument(
        "-o", "--output", type=str, help="Write the result here instead of in place"
    )
    format_parser.set_defaults(func=cmd_format)

    # check subcommand
    check_parser = subparsers.add_parser(
        "check", help="Report malformed blocks, duplicate keys and dangling references"
    )
    check_parser.set_defaults(func=cmd_check)

    # export subcommand
    export_parser = subparsers.add_parser("export", help="Export resolved entries as JSON")
    export_parser.add_argument(
        "-o",
        "--output",
        type=str,
        help="Output file path (default: bib/generated/resolved.json)",
    )
    export_parser.set_defaults(func=cmd_export)

    # sort subcommand
    sort_parser = subparsers.add_parser("sort", help="Sort library entries")
    sort_parser.add_argument(
        "mode",
        nargs="?",
        default="key",
        choices=list(SORT_MODES),
        help="Sort mode: 'key' sorts by citekey alphabetically (default), "
        + "'author' by author, 'year' newest first, 'type' by entry type",
    )
    sort_parser.set_defaults(func=cmd_sort)

    # authors subcommand
    authors_parser = subparsers.add_parser("authors", help="List all distinct authors")
    authors_parser.set_defaults(func=cmd_authors)

    # edit subcommand
    edit_parser = subparsers.add_parser("edit", help="Apply a JSON batch of field edits")
    edit_parser.add_argument(
        "edits",
        nargs="?",
        help="Path to the edits file (default: data/edits.json)",
    )
    edit_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what changes would be made without actually making them",
    )
    edit_parser.set_defaults(func=cmd_edit)

    # set-var subcommand
    set_var_parser = subparsers.add_parser("set-var", help="Define or replace a @string variable")
    set_var_parser.add_argument("key", help="Variable name")
    set_var_parser.add_argument("value", help="Variable value")
    set_var_parser.set_defaults(func=cmd_set_var)

    # del-var subcommand
    del_var_parser = subparsers.add_parser("del-var", help="Delete a @string variable")
    del_var_parser.add_argument("key", help="Variable name")
    del_var_parser.set_defaults(func=cmd_del_var)

    return parser


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the bxr CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    # Setup logging based on verbosity
    setup_logging(args.verbose)

    # Handle case where no subcommand is provided
    if not hasattr(args, "func"):
        parser.print_help()
        sys.exit(1)

    # Execute the subcommand
    args.func(args)


if __name__ == "__main__":
    main()
