"""Static checks over the catalog document.

Nothing here talks to a server. The checks cover what can be verified from the text alone:

    * the table of contents lists exactly the snippet headings, in the same order, with working anchors,
    * every anonymous block that executes dynamically built SQL skips the ``EXECUTE`` when the command
      is null (an aggregate over zero rows),
    * every snippet is lexically well formed: quotes, comments and dollar quotes are closed, parentheses
      balance, SQL ends with a semicolon and shell commands split into words.
"""

import logging
import re
import shlex
from dataclasses import dataclass
from typing import List, Optional, Tuple

from pgsnip.catalog import Document, Snippet
from pgsnip.catalog.snippet import SHELL, SQL, slugify
from pgsnip.rendering.errors import TemplateError
from pgsnip.rendering.quoting import DOLLAR_TAG

DO_KEYWORD = re.compile(r"\bDO\s*$", re.IGNORECASE)

logger = logging.getLogger(__name__)


@dataclass
class CheckFailure:
    """A problem found by one of the checks."""

    check: str
    message: str
    snippet: Optional[str] = None

    def __str__(self) -> str:  # noqa: D105
        where = f" [{self.snippet}]" if self.snippet else ""
        return f"{self.check}{where}: {self.message}"


def _find_closing_quote(text: str, quote: str, start: int) -> int:
    end = start
    while True:
        end = text.find(quote, end)
        if end == -1 or not text.startswith(quote * 2, end):
            return end
        end += 2


def scan_sql(text: str, nested: bool = False) -> Tuple[List[str], str]:
    """Lex SQL just far enough to find unbalanced constructs.

    String constants, quoted identifiers and dollar quoted bodies are replaced by a single ``x`` and comments
    are dropped. The body of a ``DO`` block is scanned as well.

    :param text: the SQL text
    :param nested: the text is the body of a procedural block
    :returns: the problems found and the remaining code
    """
    problems = []
    code = []
    depth = 0
    i = 0
    while i < len(text):
        ch = text[i]
        if text.startswith("--", i):
            end = text.find("\n", i)
            i = len(text) if end == -1 else end
            continue
        if text.startswith("/*", i):
            end = text.find("*/", i + 2)
            if end == -1:
                problems.append("unterminated block comment")
                break
            code.append(" ")
            i = end + 2
            continue
        if ch in ("'", '"'):
            end = _find_closing_quote(text, ch, i + 1)
            if end == -1:
                kind = "string constant" if ch == "'" else "quoted identifier"
                problems.append(f"unterminated {kind} starting with {text[i:i + 20]!r}")
                break
            code.append("x")
            i = end + 1
            continue
        tag = DOLLAR_TAG.match(text, i) if ch == "$" else None
        if tag:
            end = text.find(tag.group(0), tag.end())
            if end == -1:
                problems.append(f"unterminated dollar quote {tag.group(0)}")
                break
            if DO_KEYWORD.search("".join(code)):
                inner, _ = scan_sql(text[tag.end() : end], nested=True)
                problems.extend(f"in {tag.group(0)} block: {p}" for p in inner)
            code.append("x")
            i = end + len(tag.group(0))
            continue
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
            if depth < 0:
                problems.append("unbalanced ')'")
                depth = 0
        code.append(ch)
        i += 1
    if depth > 0:
        problems.append(f"{depth} unclosed '('")
    remaining = "".join(code).strip()
    if not nested and not problems:
        if not remaining:
            problems.append("no statement")
        elif not remaining.endswith(";"):
            problems.append("last statement is not terminated with ';'")
    return problems, remaining


def check_table_of_contents(document: Document) -> List[CheckFailure]:
    """Compare the table of contents with the snippet headings.

    :param document: the parsed document
    :returns: failures, empty when both list the same titles in the same order
    """
    name = "table-of-contents"
    if not document.toc:
        return [CheckFailure(name, "the document has no table of contents")]
    failures = []
    headings = document.headings
    for index, entry in enumerate(document.toc):
        if entry.number != index + 1:
            message = f"entry '{entry.title}' is numbered {entry.number}, expected {index + 1}"
            failures.append(CheckFailure(name, message))
        if entry.anchor != slugify(entry.title):
            failures.append(CheckFailure(name, f"entry '{entry.title}' links to #{entry.anchor}"))
        if index >= len(headings):
            failures.append(CheckFailure(name, f"entry '{entry.title}' has no matching section"))
        elif headings[index] != entry.title:
            message = f"entry {index + 1} is '{entry.title}' but section is '{headings[index]}'"
            failures.append(CheckFailure(name, message))
    for heading in headings[len(document.toc) :]:
        failures.append(CheckFailure(name, "section is missing from the table of contents", heading))
    seen = {}
    for snippet in document.snippets:
        if snippet.slug in seen:
            failures.append(CheckFailure(name, f"anchor #{snippet.slug} is used by two sections", snippet.title))
        seen[snippet.slug] = snippet
    return failures


def check_null_guards(document: Document) -> List[CheckFailure]:
    """Make sure dynamic SQL is only executed when it is not null.

    :param document: the parsed document
    :returns: one failure per unguarded dynamic snippet
    """
    failures = []
    for snippet in document.snippets:
        if snippet.is_dynamic and not snippet.has_null_guard:
            variables = ", ".join(snippet.dynamic_variables)
            message = f"EXECUTE of {variables} is not guarded by IF ... IS NOT NULL"
            failures.append(CheckFailure("null-guard", message, snippet.title))
    return failures


def _syntax_problems(snippet: Snippet) -> List[str]:
    if not snippet.body.strip():
        return ["empty code block"]
    problems = []
    try:
        snippet.template
    except TemplateError as exc:
        problems.append(str(exc))
    if snippet.language == SQL:
        found, _ = scan_sql(snippet.body)
        problems.extend(found)
    elif snippet.language == SHELL:
        try:
            words = shlex.split(snippet.body, comments=True)
        except ValueError as exc:
            problems.append(f"shell command does not split into words: {exc}")
        else:
            if not words:
                problems.append("no command")
    return problems


def check_syntax(document: Document) -> List[CheckFailure]:
    """Lexically check every snippet.

    :param document: the parsed document
    :returns: one failure per problem found
    """
    failures = []
    for snippet in document.snippets:
        for problem in _syntax_problems(snippet):
            failures.append(CheckFailure("syntax", problem, snippet.title))
    return failures


CHECKS = (check_table_of_contents, check_null_guards, check_syntax)


def run_checks(document: Document) -> List[CheckFailure]:
    """Run every check.

    :param document: the parsed document
    :returns: all failures, empty when the document is sound
    """
    failures = []
    for check in CHECKS:
        found = check(document)
        logger.debug(f"{check.__name__}: {len(found)} failure(s)")
        failures.extend(found)
    return failures
