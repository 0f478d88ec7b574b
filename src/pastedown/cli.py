#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/pastedown/cli.py
"""Command-line interface for pastedown.

Reads clipboard-style HTML from a file or stdin and writes Markdown to
stdout or a file. A one-line summary is printed to stderr.

Examples
--------
Convert a saved fragment::

    $ pastedown fragment.html

Pipe HTML through and drop images::

    $ xclip -o -t text/html | pastedown --no-images

Persist images next to the output::

    $ pastedown page.html -o note.md --convert-images --resource-dir ./notes

"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from rich.console import Console

from pastedown import __version__
from pastedown.api import convert_clipboard
from pastedown.exceptions import PastedownError
from pastedown.options import PassContext, PasteOptions
from pastedown.resources import DirectoryResourceStore

logger = logging.getLogger(__name__)

EXIT_SUCCESS = 0
EXIT_ERROR = 1
EXIT_VALIDATION_ERROR = 3
EXIT_FILE_ERROR = 4


def create_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="pastedown",
        description="Convert clipboard HTML into clean Markdown.",
    )
    parser.add_argument("input", nargs="?", help="HTML file to convert (default: read stdin)")
    parser.add_argument("-o", "--out", dest="output", help="Write Markdown to this file instead of stdout")
    parser.add_argument("--plain-text", help="Plain-text alternative used if HTML conversion fails")
    parser.add_argument("--no-images", action="store_true", help="Drop images and image-only links")
    parser.add_argument(
        "--convert-images",
        action="store_true",
        help="Decode or download images and store them as local resources",
    )
    parser.add_argument(
        "--resource-dir",
        help="Data directory for converted images (resources go to <dir>/resources)",
    )
    parser.add_argument(
        "--no-normalize-quotes",
        action="store_true",
        help="Keep smart quotes instead of converting them to ASCII",
    )
    parser.add_argument("--tight-lists", action="store_true", help="Remove blank lines between list items")
    parser.add_argument(
        "--google-docs",
        action="store_true",
        help="Treat the input as Google Docs clipboard content",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging verbosity (default: WARNING)",
    )
    parser.add_argument("--log-file", help="Also write log records to this file")
    parser.add_argument("--trace", action="store_true", help="Verbose logging with timestamps and logger names")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def _read_input(path: str | None) -> str:
    if path is None or path == "-":
        return sys.stdin.read()
    return Path(path).read_text(encoding="utf-8")


_TRANSPORT_LOGGERS = ("httpx", "httpcore")


def _configure_logging(parsed_args: argparse.Namespace) -> logging.Logger:
    """Route pastedown log records to stderr and, optionally, a log file.

    Only the ``pastedown`` logger tree is configured; the root logger is
    left to whoever embeds the package. With ``--trace`` the level drops
    to DEBUG, records carry timestamps and logger names, and the httpx
    transport loggers share the same handlers so image downloads can be
    followed request by request.

    Parameters
    ----------
    parsed_args : argparse.Namespace
        Parsed command line; ``log_level``, ``log_file`` and ``trace`` are read

    Returns
    -------
    logging.Logger
        The configured ``pastedown`` logger

    """
    level = logging.DEBUG if parsed_args.trace else getattr(logging, parsed_args.log_level)
    if parsed_args.trace:
        formatter = logging.Formatter("[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s", "%H:%M:%S")
    else:
        formatter = logging.Formatter("pastedown: %(levelname)s: %(message)s")

    package_logger = logging.getLogger("pastedown")
    transport_loggers = [logging.getLogger(name) for name in _TRANSPORT_LOGGERS]
    for target in [package_logger, *transport_loggers]:
        for handler in list(target.handlers):
            target.removeHandler(handler)
            handler.close()

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    log_file_error = None
    if parsed_args.log_file:
        try:
            handlers.append(logging.FileHandler(parsed_args.log_file, mode="a", encoding="utf-8"))
        except OSError as e:
            log_file_error = e

    for handler in handlers:
        handler.setFormatter(formatter)
        package_logger.addHandler(handler)
    package_logger.setLevel(level)

    for transport_logger in transport_loggers:
        if parsed_args.trace:
            for handler in handlers:
                transport_logger.addHandler(handler)
            transport_logger.setLevel(logging.DEBUG)
        else:
            transport_logger.setLevel(max(level, logging.WARNING))

    if log_file_error is not None:
        package_logger.warning(f"Could not open log file {parsed_args.log_file}: {log_file_error}")
    elif parsed_args.log_file:
        package_logger.debug(f"Logging to file: {parsed_args.log_file}")
    return package_logger


def _build_options(parsed_args: argparse.Namespace) -> PasteOptions:
    return PasteOptions(
        include_images=not parsed_args.no_images,
        convert_images_to_resources=parsed_args.convert_images,
        normalize_quotes=not parsed_args.no_normalize_quotes,
        force_tight_lists=parsed_args.tight_lists,
    )


def main(args: list[str] | None = None) -> int:
    """Execute the command-line entry point."""
    parser = create_parser()
    parsed_args = parser.parse_args(args)

    _configure_logging(parsed_args)
    console = Console(stderr=True)

    if parsed_args.convert_images and not parsed_args.resource_dir:
        console.print("[red]Error:[/red] --convert-images requires --resource-dir")
        return EXIT_VALIDATION_ERROR

    try:
        html = _read_input(parsed_args.input)
    except OSError as e:
        console.print(f"[red]Error reading input:[/red] {e}")
        return EXIT_FILE_ERROR

    store = None
    if parsed_args.resource_dir:
        resource_dir = Path(parsed_args.resource_dir)
        try:
            resource_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            console.print(f"[red]Error creating resource directory:[/red] {e}")
            return EXIT_FILE_ERROR
        store = DirectoryResourceStore(resource_dir)

    context = PassContext(is_google_docs=True) if parsed_args.google_docs else None

    try:
        outcome = convert_clipboard(
            html,
            parsed_args.plain_text or "",
            _build_options(parsed_args),
            context,
            resource_store=store,
        )
    except PastedownError as e:
        logger.error(f"Conversion failed: {e}")
        console.print(f"[red]Error:[/red] {e}")
        return EXIT_ERROR

    markdown = outcome.markdown
    if markdown and not markdown.endswith("\n"):
        markdown += "\n"

    if parsed_args.output:
        try:
            Path(parsed_args.output).write_text(markdown, encoding="utf-8")
        except OSError as e:
            console.print(f"[red]Error writing output:[/red] {e}")
            return EXIT_FILE_ERROR
    else:
        sys.stdout.write(markdown)

    style = "green" if outcome.success else "yellow"
    console.print(f"[{style}]{outcome.message}[/{style}]")
    for warning in outcome.warnings:
        console.print(f"[yellow]warning:[/yellow] {warning}")

    return EXIT_SUCCESS if outcome.success else EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
