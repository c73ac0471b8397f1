"""CLI entry point: python -m readerly {extract,readerable,verify} ..."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from readerly.config import ReadabilityOptions, load_options
from readerly.errors import ReadabilityError

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="readerly",
        description="Extract the main article and its metadata from an HTML document.",
    )
    parser.add_argument("--log-level", default="WARNING",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                        metavar="{DEBUG,INFO,WARNING,ERROR}",
                        help="Logging level (default: WARNING)")
    sub = parser.add_subparsers(dest="command", required=True)

    extract = sub.add_parser("extract", help="Extract the article of an HTML file as JSON")
    extract.add_argument("file", metavar="FILE", help="HTML file to read ('-' for stdin)")
    extract.add_argument("--base-uri", default=None, metavar="URI",
                         help="URL of the document, used to make links absolute")
    extract.add_argument("--config", default=None, metavar="YAML",
                         help="YAML options file")
    extract.add_argument("--profile", default=None, metavar="NAME",
                         help="Profile of the options file to apply")
    extract.add_argument("--char-threshold", type=int, default=None, metavar="N",
                         help="Minimum article length in characters (default: 500)")
    extract.add_argument("--keep-classes", action="store_true", default=None,
                         help="Keep class attributes in the content")
    extract.add_argument("--disable-json-ld", action="store_true", default=None,
                         help="Ignore JSON-LD metadata")
    extract.add_argument("--text", action="store_true", default=False,
                         help="Print the plain text instead of JSON")

    readerable = sub.add_parser("readerable", help="Print whether a file probably holds an article")
    readerable.add_argument("file", metavar="FILE", help="HTML file to read ('-' for stdin)")

    verify = sub.add_parser("verify", help="Check extraction against golden fixture cases")
    verify.add_argument("directory", metavar="DIR", help="Directory of fixture cases")
    verify.add_argument("--name", default=None, metavar="CASE", help="Only run this case")
    return parser


def _read_input(path: str) -> bytes:
    if path == "-":
        return sys.stdin.buffer.read()
    return Path(path).read_bytes()


def _options_from_args(args: argparse.Namespace) -> ReadabilityOptions:
    options = load_options(args.config, args.profile) if args.config else ReadabilityOptions()
    return options.merged(
        char_threshold=args.char_threshold,
        keep_classes=args.keep_classes,
        disable_json_ld=args.disable_json_ld,
    )


def _cmd_extract(args: argparse.Namespace) -> int:
    from readerly.parser import parse

    article = parse(_read_input(args.file), base_uri=args.base_uri, options=_options_from_args(args))
    if article is None:
        print("No article found.", file=sys.stderr)
        return 1
    if args.text:
        print(article.text_content or "")
    else:
        print(json.dumps(article.to_dict(), ensure_ascii=False, indent=2))
    return 0


def _cmd_readerable(args: argparse.Namespace) -> int:
    from readerly.extractors.readerable import is_probably_readerable

    print("true" if is_probably_readerable(_read_input(args.file)) else "false")
    return 0


def _cmd_verify(args: argparse.Namespace) -> int:
    from rich import box
    from rich.console import Console
    from rich.table import Table

    from readerly.testcases import discover_cases, verify_case

    console = Console()
    cases = discover_cases(args.directory, args.name)
    if not cases:
        console.print(f"[yellow]No fixture cases found in {args.directory}[/yellow]")
        return 1

    results = [verify_case(case) for case in cases]
    failed = [r for r in results if not r.passed]

    tbl = Table(title="Fixture cases", box=box.SIMPLE_HEAVY, show_lines=False)
    tbl.add_column("Case", style="cyan", no_wrap=True)
    tbl.add_column("Result", justify="center")
    tbl.add_column("Problems", style="dim")
    for result in results:
        tbl.add_row(
            result.name,
            "[green]pass[/green]" if result.passed else "[red]FAIL[/red]",
            "\n".join(result.problems),
        )
    console.print(tbl)
    console.print(
        f"[bold]{len(results) - len(failed)}[/bold] passed, "
        f"[bold red]{len(failed)}[/bold red] failed",
    )
    return 1 if failed else 0


_COMMANDS = {
    "extract": _cmd_extract,
    "readerable": _cmd_readerable,
    "verify": _cmd_verify,
}


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        return _COMMANDS[args.command](args)
    except (OSError, ReadabilityError) as exc:
        logger.error("%s", exc)
        print(f"Error: {exc}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
