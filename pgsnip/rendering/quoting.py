"""Provides quoting strategies that turn placeholder values into safe SQL or shell text."""

import re
import shlex
from abc import ABC, abstractmethod

from pgsnip.rendering.errors import InvalidPlaceholderValueError, UnsupportedLanguageError

DOLLAR_TAG = re.compile(r"\$([A-Za-z_][A-Za-z0-9_]*)?\$")
SIMPLE_IDENTIFIER = re.compile(r"^[a-z_][a-z0-9_$]*$")
# Unquoted use of these as identifiers is a syntax error, quote_ident() quotes them too
# fmt: off
RESERVED_WORDS = frozenset(
    [
        "all", "analyse", "analyze", "and", "any", "array", "as", "asc", "asymmetric", "both", "case", "cast",
        "check", "collate", "column", "constraint", "create", "current_catalog", "current_date", "current_role",
        "current_time", "current_timestamp", "current_user", "default", "deferrable", "desc", "distinct", "do",
        "else", "end", "except", "false", "fetch", "for", "foreign", "from", "grant", "group", "having", "in",
        "initially", "intersect", "into", "lateral", "leading", "limit", "localtime", "localtimestamp", "not",
        "null", "offset", "on", "only", "or", "order", "placing", "primary", "references", "returning", "select",
        "session_user", "some", "symmetric", "table", "then", "to", "trailing", "true", "union", "unique", "user",
        "using", "variadic", "when", "where", "window", "with",
    ]
)
# fmt: on


class Quoter(ABC):
    """Abstract base for turning a placeholder value into text spliced into a snippet."""

    GUARDS_DOLLAR_QUOTES = True

    @abstractmethod
    def identifier(self, value) -> str:
        """Return the value as a name (role, table, pid, host ...).

        :param value: the raw placeholder value
        :returns: text safe to splice where the bracket placeholder was
        """
        pass  # pragma: no cover

    @abstractmethod
    def literal(self, value) -> str:
        """Return the value as a quoted string constant.

        :param value: the raw placeholder value
        :returns: text safe to splice where the quoted placeholder (quotes included) was
        """
        pass  # pragma: no cover

    def quote(self, value, is_literal: bool, dollar_tag: str = None) -> str:
        """Quote a value for the placeholder it replaces.

        :param value: the raw placeholder value
        :param is_literal: quote as a string constant rather than a name
        :param dollar_tag: the tag (``$$``, ``$body$`` ...) of the dollar quoted body holding the placeholder
        :returns: the quoted text
        :raises InvalidPlaceholderValueError: if the quoted text would end the enclosing dollar quoted body
        """
        quoted = self.literal(value) if is_literal else self.identifier(value)
        if dollar_tag is not None and self.GUARDS_DOLLAR_QUOTES:
            found = DOLLAR_TAG.search(quoted)
            if found:
                raise InvalidPlaceholderValueError(
                    f"Value {str(value)!r} contains {found.group(0)} and would break the {dollar_tag} quoted block"
                )
        return quoted

    @staticmethod
    def _as_text(value) -> str:
        text = str(value)
        if text == "":
            raise InvalidPlaceholderValueError("Placeholder values must not be empty")
        if "\x00" in text:
            raise InvalidPlaceholderValueError("Placeholder values must not contain NUL characters")
        return text


class SQLQuoter(Quoter):
    """Quotes values the way PostgreSQL's quote_ident() and quote_literal() do."""

    def identifier(self, value) -> str:  # noqa: D102
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        text = self._as_text(value)
        if text.isdigit():
            return text
        if SIMPLE_IDENTIFIER.match(text) and text not in RESERVED_WORDS:
            return text
        return '"' + text.replace('"', '""') + '"'

    def literal(self, value) -> str:  # noqa: D102
        text = self._as_text(value).replace("'", "''")
        if "\\" in text:
            return "E'" + text.replace("\\", "\\\\") + "'"
        return "'" + text + "'"


class ShellQuoter(Quoter):
    """Quotes values as single POSIX shell words."""

    # $$ is the shell's process id, there are no dollar quoted bodies to break
    GUARDS_DOLLAR_QUOTES = False

    def identifier(self, value) -> str:  # noqa: D102
        return shlex.quote(self._as_text(value))

    def literal(self, value) -> str:  # noqa: D102
        return shlex.quote(self._as_text(value))


class RawQuoter(Quoter):
    """Splices values verbatim, keeping the quotes written around literal placeholders."""

    GUARDS_DOLLAR_QUOTES = False

    def identifier(self, value) -> str:  # noqa: D102
        return self._as_text(value)

    def literal(self, value) -> str:  # noqa: D102
        return "'" + self._as_text(value) + "'"


QUOTERS = {"sql": SQLQuoter, "sh": ShellQuoter}


def get_quoter(language: str) -> Quoter:
    """Find the quoter for a snippet language.

    :param language: the info string of the snippet's code fence, ``sql`` or ``sh``
    :returns: a new quoter instance
    :raises UnsupportedLanguageError: if the language has no quoter
    """
    try:
        return QUOTERS[language]()
    except KeyError:
        raise UnsupportedLanguageError(f"No quoter for snippet language '{language}'") from None
