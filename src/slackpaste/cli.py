"""Command-line entry point for slackpaste.

Reads HTML copied from the Slack web client (a saved clipboard dump or a
saved page) and writes a clean HTML transcript, or the extracted messages as
JSON.

Usage:
    slackpaste thread.html -o transcript.html --author-links
    cat thread.html | slackpaste --emoji --json
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape

from slackpaste import __version__, _setup_logging
from slackpaste.config import ExtractConfig, get_settings
from slackpaste.slack import ExtractSlack

logger = logging.getLogger(__name__)

console = Console(stderr=True)


def _build_parser() -> argparse.ArgumentParser:
    """Build argparse parser for the slackpaste command."""
    parser = argparse.ArgumentParser(
        prog="slackpaste",
        description="Convert HTML copied from Slack into a clean transcript.",
    )
    parser.add_argument(
        "input",
        nargs="?",
        default="-",
        help="HTML file to read (default: stdin)",
    )
    parser.add_argument(
        "-o", "--output", default=None, help="Write to this file (default: stdout)"
    )
    parser.add_argument(
        "--emoji",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Keep custom emoji images (default: EXTRACT__INCLUDE_EMOJI)",
    )
    parser.add_argument(
        "--author-links",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Link author names to their workspace profile "
        "(default: EXTRACT__AUTHOR_LINKS)",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Emit the extracted messages as JSON instead of HTML",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )
    return parser


def _read_input(source: str) -> str:
    if source == "-":
        return sys.stdin.read()
    return Path(source).read_text(encoding="utf-8")


def _write_output(text: str, destination: str | None) -> None:
    if destination is None:
        sys.stdout.write(text)
        if not text.endswith("\n"):
            sys.stdout.write("\n")
        return
    Path(destination).write_text(text, encoding="utf-8")


def _resolve_options(args: argparse.Namespace) -> ExtractConfig:
    """Merge command-line flags over the configured extraction defaults."""
    defaults = get_settings().extract
    return ExtractConfig(
        include_emoji=defaults.include_emoji if args.emoji is None else args.emoji,
        author_links=(
            defaults.author_links if args.author_links is None else args.author_links
        ),
    )


def convert(raw_html: str, options: ExtractConfig, *, as_json: bool = False) -> str:
    """Run the Slack extractor over *raw_html* and format the result."""
    settings = get_settings()
    parser = ExtractSlack(options, render_config=settings.render)
    messages = parser.parse(raw_html)
    logger.info("Extracted %d messages", len(messages))
    if as_json:
        return json.dumps([m.to_dict() for m in messages], indent=2)
    return str(parser.render_html())


def main(argv: list[str] | None = None) -> None:
    """Entry point for the ``slackpaste`` command."""
    args = _build_parser().parse_args(argv)
    try:
        settings = get_settings()
    except ValidationError as exc:
        console.print(f"[red]Error:[/] invalid configuration\n{escape(str(exc))}")
        sys.exit(1)
    _setup_logging(settings.app.log_dir, settings.app.log_level)

    try:
        raw_html = _read_input(args.input)
    except OSError as exc:
        console.print(f"[red]Error:[/] cannot read {args.input}: {exc.strerror}")
        sys.exit(1)

    try:
        result = convert(raw_html, _resolve_options(args), as_json=args.json)
    except Exception as exc:
        logger.exception("Error processing HTML")
        console.print(f"[red]Error processing HTML:[/] {escape(str(exc))}")
        sys.exit(1)

    _write_output(result, args.output)
    if args.output is not None:
        console.print(f"[green]Wrote[/] {args.output}")


if __name__ == "__main__":
    main()
