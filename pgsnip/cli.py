"""Command line interface: ``pgsnip list|show|run|check``."""

import argparse
import logging
import os
import sys
from typing import Dict, List

from pgsnip.__version__ import __version__
from pgsnip.backend import create_connection_pool
from pgsnip.backend.errors import BackendError
from pgsnip.catalog import Catalog, CatalogError, Snippet, load_catalog
from pgsnip.checks import run_checks
from pgsnip.errors import RunnerError, UnsupportedServerVersionError
from pgsnip.rendering import RawQuoter
from pgsnip.rendering.errors import RenderingError
from pgsnip.runner import SnippetResult, SnippetRunner, render_sql

from rich.console import Console
from rich.markup import escape
from rich.prompt import Confirm
from rich.table import Table

URL_ENV = "PGSNIP_DB_URL"
DOCUMENT_HELP = "Read snippets from this markdown file"
EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2

logger = logging.getLogger("pgsnip")


def placeholder_value(text: str):
    """Parse a ``NAME=VALUE`` command line argument.

    :param text: the raw argument
    :returns: a ``(NAME, VALUE)`` tuple with the name upper-cased
    """
    name, sep, value = text.partition("=")
    if not sep or not name.strip():
        raise argparse.ArgumentTypeError(f"expected NAME=VALUE, got '{text}'")
    return name.strip().upper(), value


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for every sub-command."""
    parser = argparse.ArgumentParser(prog="pgsnip", description="PostgreSQL administration snippets")
    parser.add_argument("--version", action="version", version=f"pgsnip {__version__}")
    parser.add_argument("--verbose", "-v", action="store_true", help="Log debug output to stderr")
    parser.add_argument("--document", type=str, default=None, help=DOCUMENT_HELP)
    # Also accepted after the sub-command, where it only overrides the global value when given
    document = argparse.ArgumentParser(add_help=False)
    document.add_argument("--document", type=str, default=argparse.SUPPRESS, help=DOCUMENT_HELP)
    commands = parser.add_subparsers(dest="command", required=True)

    list_cmd = commands.add_parser("list", parents=[document], help="List snippets")
    list_cmd.add_argument("--search", "-s", type=str, default=None, help="Only snippets matching every word")
    list_cmd.add_argument("--json", action="store_true", dest="json_out", help="JSON output")

    show_cmd = commands.add_parser("show", parents=[document], help="Print the text of a snippet")
    show_cmd.add_argument("snippet", help="Position, slug, title or unambiguous slug prefix")
    show_cmd.add_argument("--set", type=placeholder_value, action="append", default=[], metavar="NAME=VALUE")
    show_cmd.add_argument("--raw", action="store_true", help="Substitute values without quoting them")

    run_cmd = commands.add_parser("run", parents=[document], help="Run a SQL snippet")
    run_cmd.add_argument("snippet", help="Position, slug, title or unambiguous slug prefix")
    run_cmd.add_argument("--url", type=str, default=None, help=f"Connection URL, defaults to ${URL_ENV}")
    run_cmd.add_argument("--set", type=placeholder_value, action="append", default=[], metavar="NAME=VALUE")
    run_cmd.add_argument("--dry-run", action="store_true", help="Print the SQL instead of running it")
    run_cmd.add_argument("--yes", "-y", action="store_true", help="Run snippets that change server state")
    run_cmd.add_argument("--skip-version-check", action="store_true", help="Run on servers older than supported")
    run_cmd.add_argument("--json", action="store_true", dest="json_out", help="JSON output")

    commands.add_parser(
        "check", parents=[document], help="Check the table of contents, null guards and syntax of every snippet"
    )
    return parser


def _flags(snippet: Snippet) -> List[str]:
    flags = []
    if not snippet.is_runnable:
        flags.append("shell")
    elif snippet.is_mutating:
        flags.append("mutating")
    if snippet.is_dynamic:
        flags.append("dynamic")
    return flags


def _describe(snippet: Snippet) -> Dict:
    return {
        "position": snippet.position,
        "slug": snippet.slug,
        "title": snippet.title,
        "language": snippet.language,
        "min_version": snippet.version_label or None,
        "placeholders": list(snippet.placeholders),
        "flags": _flags(snippet),
    }


def cmd_list(args, catalog: Catalog, console: Console) -> int:
    """List or search snippets."""
    snippets = catalog.search(args.search) if args.search else catalog.list()
    if args.json_out:
        console.print_json(data=[_describe(s) for s in snippets])
        return EXIT_OK
    table = Table(title=catalog.document.title)
    for column in ("#", "Slug", "Title", "Lang", "Min", "Placeholders", "Flags"):
        table.add_column(column)
    for snippet in snippets:
        info = _describe(snippet)
        table.add_row(
            str(info["position"]),
            info["slug"],
            escape(info["title"]),
            info["language"],
            info["min_version"] or "",
            escape(", ".join(info["placeholders"])),
            ", ".join(info["flags"]),
        )
    console.print(table)
    return EXIT_OK


def cmd_show(args, catalog: Catalog, console: Console) -> int:
    """Print a snippet, substituting the placeholders given."""
    snippet = catalog.get(args.snippet)
    values = dict(args.set)
    text = snippet.body
    if values:
        text = snippet.render(values, RawQuoter() if args.raw else None, partial=True)
    console.out(text, end="", highlight=False)
    return EXIT_OK


def _print_result(result: SnippetResult, console: Console, json_out: bool):
    if json_out:
        payload = {
            "snippet": result.snippet.slug,
            "sql": result.sql,
            "columns": result.column_names,
            "rows": result.as_dicts(),
            "rowcount": result.rowcount,
            "status": result.status,
        }
        console.print_json(data=payload, default=str)
        return
    if not result.columns:
        console.print(escape(result.status or "OK"))
        return
    table = Table(caption=f"{len(result.rows)} row(s)")
    for name in result.column_names:
        table.add_column(escape(name))
    for row in result.rows:
        table.add_row(*[escape("null" if value is None else str(value)) for value in row])
    console.print(table)


def _confirmed(snippet: Snippet, args) -> bool:
    if args.yes or not snippet.is_mutating:
        return True
    if sys.stdin.isatty():
        return Confirm.ask(f"'{escape(snippet.title)}' changes server state. Run it?", default=False)
    return False


def cmd_run(args, catalog: Catalog, console: Console) -> int:
    """Render a snippet and run it against the server."""
    snippet = catalog.get(args.snippet)
    values = dict(args.set)
    if args.dry_run:
        console.out(render_sql(snippet, values), end="", highlight=False)
        return EXIT_OK
    url = args.url or os.environ.get(URL_ENV)
    if not url:
        raise RunnerError(f"No connection URL, pass --url or set ${URL_ENV}")
    if not _confirmed(snippet, args):
        raise RunnerError(f"'{snippet.title}' changes server state, pass --yes to run it")
    pool = create_connection_pool(url)
    try:
        runner = SnippetRunner(pool)
        result = runner.run(snippet, values, check_version=not args.skip_version_check)
    finally:
        pool.dispose()
    _print_result(result, console, args.json_out)
    return EXIT_OK


def cmd_check(args, catalog: Catalog, console: Console) -> int:
    """Run the static checks over the document."""
    failures = run_checks(catalog.document)
    for failure in failures:
        console.print(escape(str(failure)))
    if failures:
        console.print(f"{len(failures)} problem(s) in {len(catalog)} snippet(s)")
        return EXIT_FAILURE
    console.print(f"{len(catalog)} snippet(s) OK")
    return EXIT_OK


COMMANDS = {"list": cmd_list, "show": cmd_show, "run": cmd_run, "check": cmd_check}


def main(argv: List[str] = None) -> int:
    """Entry point of the ``pgsnip`` command.

    :param argv: the arguments, defaults to ``sys.argv[1:]``
    :returns: the process exit code
    """
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    console = Console()
    err_console = Console(stderr=True)
    try:
        catalog = load_catalog(args.document)
        return COMMANDS[args.command](args, catalog, console)
    except UnsupportedServerVersionError as exc:
        err_console.print(f"[bold red]error:[/] {escape(str(exc))}")
        return EXIT_FAILURE
    except (CatalogError, RenderingError, RunnerError, BackendError, OSError) as exc:
        err_console.print(f"[bold red]error:[/] {escape(str(exc))}")
        return EXIT_USAGE
    except Exception as exc:
        # Driver errors (permissions, missing relations, lock timeouts) surface as reported by the server
        logger.debug("Snippet failed", exc_info=True)
        err_console.print(f"[bold red]{escape(type(exc).__name__)}:[/] {escape(str(exc).strip())}")
        return EXIT_FAILURE


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
