"""The Snippet type and the facts that can be read off its text."""

import re
from dataclasses import dataclass, field
from typing import Optional, Tuple

from pgsnip.rendering import Quoter, Template, get_quoter

SQL = "sql"
SHELL = "sh"
LANGUAGES = (SQL, SHELL)

PROCEDURAL_BLOCK = re.compile(r"\bDO\s+\$(\w*)\$", re.IGNORECASE)
DYNAMIC_EXECUTE = re.compile(r"\bEXECUTE\s+([a-z_][a-z0-9_]*)\s*;", re.IGNORECASE)
NULL_GUARD = r"\bIF\s+{var}\s+IS\s+NOT\s+NULL\s+THEN\b"
# Block IFs and their END IFs, string constants and comments are matched only to be skipped.
# IF [NOT] EXISTS followed by a name belongs to a DDL statement and opens no block.
IF_BLOCK_TOKEN = re.compile(
    r"--[^\n]*|/\*.*?\*/|'(?:[^']|'')*'"
    r"|(?P<end>\bEND\s+IF\b)"
    r"|(?P<open>\bIF\b(?!\s+(?:NOT\s+)?EXISTS\s+[\w\"]))",
    re.IGNORECASE | re.DOTALL,
)
MUTATING = re.compile(
    r"\b(?:DROP|ALTER|CREATE|REINDEX|GRANT|REVOKE|TRUNCATE|DELETE|INSERT|UPDATE|VACUUM|CLUSTER)\b"
    r"|\bpg_(?:cancel|terminate)_backend\s*\("
    r"|\bsetval\s*\(",
    re.IGNORECASE,
)
SLUG_DROP = re.compile(r"[^\w\- ]")


def slugify(title: str) -> str:
    """Return the anchor a markdown renderer generates for a heading.

    :param title: the heading text
    :returns: lower-case title with punctuation dropped and spaces turned into hyphens
    """
    return SLUG_DROP.sub("", title.strip().lower()).replace(" ", "-")


@dataclass
class Snippet:
    """One named, self-contained SQL or shell example from the catalog."""

    title: str
    language: str
    body: str
    description: str = ""
    min_version: Optional[Tuple[int, int]] = None
    position: int = 0
    line: int = 0
    slug: str = field(default="")

    def __post_init__(self):
        if not self.slug:
            self.slug = slugify(self.title)
        self._template = None

    @property
    def template(self) -> Template:
        """Return the parsed placeholder template of the body."""
        if self._template is None:
            self._template = Template(self.body)
        return self._template

    @property
    def placeholders(self) -> Tuple[str, ...]:
        """Return the distinct placeholder names of the body, in order of first appearance."""
        return self.template.placeholders

    @property
    def is_runnable(self) -> bool:
        """Whether the snippet is SQL that can be sent to the server."""
        return self.language == SQL

    @property
    def is_procedural(self) -> bool:
        """Whether the body contains an anonymous ``DO $$ ... $$`` block."""
        return self.language == SQL and PROCEDURAL_BLOCK.search(self.body) is not None

    @property
    def dynamic_variables(self) -> Tuple[str, ...]:
        """Return the variables a procedural block passes to ``EXECUTE``."""
        if not self.is_procedural:
            return ()
        return tuple(dict.fromkeys(m.group(1) for m in DYNAMIC_EXECUTE.finditer(self.body)))

    @property
    def is_dynamic(self) -> bool:
        """Whether the snippet builds SQL text at run time and executes it."""
        return bool(self.dynamic_variables)

    def _block_end(self, start: int) -> int:
        """Return the offset of the ``END IF`` closing the block IF whose condition ends at start."""
        depth = 1
        for token in IF_BLOCK_TOKEN.finditer(self.body, start):
            if token.group("open"):
                depth += 1
            elif token.group("end"):
                depth -= 1
                if depth == 0:
                    return token.start()
        return len(self.body)

    @property
    def has_null_guard(self) -> bool:
        """Whether every dynamic ``EXECUTE var`` sits inside an ``IF var IS NOT NULL THEN ... END IF`` block.

        Aggregating zero rows yields a null command, executing it would fail.
        """
        for execute in DYNAMIC_EXECUTE.finditer(self.body):
            guard = re.compile(NULL_GUARD.format(var=re.escape(execute.group(1))), re.IGNORECASE)
            if not any(g.end() <= execute.start() < self._block_end(g.end()) for g in guard.finditer(self.body)):
                return False
        return True

    @property
    def is_mutating(self) -> bool:
        """Whether running the snippet changes server state (DDL, DCL, killed backends, sequence values ...)."""
        if self.language != SQL:
            return True
        return self.is_procedural or MUTATING.search(self.body) is not None

    @property
    def version_label(self) -> str:
        """Return the minimum server version as text, empty when the snippet runs everywhere."""
        if not self.min_version:
            return ""
        major, minor = self.min_version
        return f"{major}+" if major >= 10 and not minor else f"{major}.{minor}+"

    def render(self, values: dict = None, quoter: Quoter = None, partial: bool = False) -> str:
        """Render the body with placeholder values, quoted for the snippet's language.

        :param values: placeholder values keyed by upper-case name
        :param quoter: overrides the quoter picked from the language
        :param partial: leave placeholders without a value as written
        :returns: the rendered text
        """
        quoter = quoter or get_quoter(self.language)
        return self.template.render(values, quoter, partial=partial)
