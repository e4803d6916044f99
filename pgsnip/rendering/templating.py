"""Implements the placeholder grammar of snippet text and its rendering."""

import re
from typing import Dict, List, Tuple

from pgsnip.rendering.errors import MissingPlaceholderError, TemplateError, UnknownPlaceholderError
from pgsnip.rendering.quoting import DOLLAR_TAG, Quoter, SQLQuoter

from pyparsing import Combine, OneOrMore, Suppress, Word, srange

# Skipped while looking for dollar quotes, a '$$' in a comment or string constant opens nothing
SKIPPED_OR_TAG = re.compile(r"--[^\n]*|/\*.*?\*/|'(?:[^']|'')*'|" + DOLLAR_TAG.pattern, re.DOTALL)


def dollar_quoted_spans(text: str) -> List[Tuple[int, int, str]]:
    """Find the dollar quoted bodies of SQL text.

    :param text: the SQL text
    :returns: start and end offset of every body, with the tag that encloses it
    """
    spans = []
    pos = 0
    while True:
        found = SKIPPED_OR_TAG.search(text, pos)
        if not found:
            return spans
        pos = found.end()
        tag = found.group(0)
        if not tag.startswith("$"):
            continue
        end = text.find(tag, pos)
        if end == -1:
            spans.append((pos, len(text), tag))
            return spans
        spans.append((pos, end, tag))
        pos = end + len(tag)


class TemplatePlaceholder:
    """Represents one manual edit point found in snippet text."""

    def __init__(self, name: str, is_literal: bool, source: str, dollar_tag: str = None):
        """Construct a template placeholder.

        :param name: the upper-case name of the placeholder, without brackets or quotes
        :param is_literal: is this a quoted string placeholder (``'NAME'``) rather than a bracket one (``[NAME]``)
        :param source: the placeholder exactly as written in the snippet
        :param dollar_tag: the tag of the dollar quoted body the placeholder sits in, if any
        """
        self.name = name
        self.is_literal = is_literal
        self.source = source
        self.dollar_tag = dollar_tag

    def __repr__(self) -> str:  # noqa: D105
        return f"TemplatePlaceholder({self.source})"


class Template:
    """Implements templating over the upper-case edit points operators replace by hand.

    Two forms are recognised:

        * ``[NAME]`` stands for a name or number (role, table, pid, host ...) and is replaced unquoted, or
          quoted as an identifier when it has to be.
        * ``'NAME_WITH_UNDERSCORE'`` stands for a string constant and is replaced together with its quotes.
          At least one underscore is required so that ordinary constants such as ``'S'`` or ``'CONNECT'``
          are left alone.
    """

    # fmt: off
    OPEN_IDENT   = Suppress("[")                                                     # noqa: E221
    CLOSE_IDENT  = Suppress("]")                                                     # noqa: E221
    QUOTE        = Suppress("'")                                                     # noqa: E221
    NAME_START   = srange("[A-Z]")                                                   # noqa: E221
    NAME_BODY    = srange("[A-Z0-9]")                                                # noqa: E221
    IDENT_NAME   = Word(NAME_START, NAME_BODY + "_")                                 # noqa: E221
    LITERAL_NAME = Combine(Word(NAME_START, NAME_BODY) + OneOrMore("_" + Word(NAME_BODY)))  # noqa: E221
    IDENT_REF    = Combine(OPEN_IDENT + IDENT_NAME + CLOSE_IDENT)("identifier")     # noqa: E221
    LITERAL_REF  = Combine(QUOTE + LITERAL_NAME + QUOTE)("literal")                  # noqa: E221
    GRAMMAR      = (IDENT_REF | LITERAL_REF).parse_with_tabs()                       # noqa: E221
    # fmt: on

    def __init__(self, text: str):
        """Construct a template from snippet text.

        :param text: the snippet text as written in the catalog
        :raises TemplateError: if one name is used both as a bracket and as a quoted placeholder
        """
        self._text = text
        self._parsed_template = []
        self._arguments = []
        kinds = {}
        spans = dollar_quoted_spans(text)
        last = 0
        for tokens, start, end in self.GRAMMAR.scan_string(text):
            is_literal = "literal" in tokens
            name = tokens["literal"] if is_literal else tokens["identifier"]
            if kinds.setdefault(name, is_literal) != is_literal:
                raise TemplateError(f"Placeholder '{name}' is used both as [{name}] and '{name}'")
            tag = next((t for s, e, t in spans if s <= start and end <= e), None)
            if start > last:
                self._parsed_template.append(text[last:start])
            self._parsed_template.append(TemplatePlaceholder(name, is_literal, text[start:end], tag))
            self._arguments.append(name)
            last = end
        if last < len(text):
            self._parsed_template.append(text[last:])
        self._arguments = tuple(self._arguments)

    @property
    def arguments(self) -> Tuple[str, ...]:
        """Return the placeholder names in order of appearance, repeats included."""
        return self._arguments

    @property
    def placeholders(self) -> Tuple[str, ...]:
        """Return the distinct placeholder names in order of first appearance."""
        return tuple(dict.fromkeys(self._arguments))

    @property
    def literal_placeholders(self) -> Tuple[str, ...]:
        """Return the distinct names of the quoted string placeholders."""
        names = [f.name for f in self._parsed_template if isinstance(f, TemplatePlaceholder) and f.is_literal]
        return tuple(dict.fromkeys(names))

    def __str__(self) -> str:
        """Return the template text as written."""
        return self._text

    def _check_values(self, values: Dict[str, object], partial: bool):
        unknown = [name for name in values if name not in self._arguments]
        if unknown:
            raise UnknownPlaceholderError(unknown)
        missing: List[str] = [name for name in self.placeholders if name not in values]
        if missing and not partial:
            raise MissingPlaceholderError(missing)

    def render(self, values: Dict[str, object] = None, quoter: Quoter = None, partial: bool = False) -> str:
        """Render the template by replacing its placeholders.

        :param values: placeholder values keyed by upper-case name
        :param quoter: the quoting strategy, defaults to SQL quoting
        :param partial: leave placeholders without a value as written instead of raising

        :returns: the rendered text
        :raises MissingPlaceholderError: if a placeholder has no value and partial is not set
        :raises UnknownPlaceholderError: if a value is given for a name the template does not contain
        :raises InvalidPlaceholderValueError: if a value would end the dollar quoted body it is placed in
        """
        values = values or {}
        quoter = quoter or SQLQuoter()
        self._check_values(values, partial)
        rendered = ""
        cache = {}
        for frag in self._parsed_template:
            if isinstance(frag, TemplatePlaceholder):
                if frag.name not in values:
                    frag = frag.source
                else:
                    key = (frag.name, frag.dollar_tag)
                    if key not in cache:
                        cache[key] = quoter.quote(values[frag.name], frag.is_literal, frag.dollar_tag)
                    frag = cache[key]
            rendered += frag
        return rendered
