"""Splits the markdown catalog into its table of contents and its snippets."""

import logging
import re
from dataclasses import dataclass, field
from typing import List, Optional

from pgsnip.catalog.errors import DocumentFormatError
from pgsnip.catalog.snippet import LANGUAGES, Snippet

HEADING = re.compile(r"^(?P<level>#{1,6})\s+(?P<text>.*?)\s*#*\s*$")
FENCE_OPEN = re.compile(r"^```(?P<info>[\w+-]*)\s*$")
FENCE_CLOSE = re.compile(r"^```\s*$")
TOC_HEADING = "table of contents"
TOC_ENTRY = re.compile(r"^\s*(?P<number>\d+)[.)]\s+\[(?P<title>[^\]]+)\]\(#(?P<anchor>[^)\s]+)\)\s*$")
VERSION_LINE = re.compile(r"^\*PostgreSQL\s+(?P<major>\d+)(?:\.(?P<minor>\d+))?\+\*$")

logger = logging.getLogger(__name__)


@dataclass
class TocEntry:
    """One line of the table of contents."""

    number: int
    title: str
    anchor: str
    line: int = 0


@dataclass
class Document:
    """A parsed catalog: its title, its table of contents and its snippets in document order."""

    title: str
    toc: List[TocEntry] = field(default_factory=list)
    snippets: List[Snippet] = field(default_factory=list)
    source: Optional[str] = None

    @property
    def headings(self) -> List[str]:
        """Return the snippet headings in document order."""
        return [s.title for s in self.snippets]


class _Section:
    def __init__(self, title: str, line: int):
        self.title = title
        self.line = line
        self.text = []
        self.blocks = []
        self.min_version = None


def _close_section(section: _Section, position: int, source: str) -> Snippet:
    if not section.blocks:
        raise DocumentFormatError(f"Snippet '{section.title}' has no code block", source, section.line)
    if len(section.blocks) > 1:
        raise DocumentFormatError(f"Snippet '{section.title}' has more than one code block", source, section.line)
    language, body, line = section.blocks[0]
    if language not in LANGUAGES:
        raise DocumentFormatError(f"Unsupported code block language '{language}'", source, line)
    # Paragraph breaks survive, runs of blank lines do not
    description = re.sub(r"\n{3,}", "\n\n", "\n".join(section.text)).strip()
    return Snippet(
        title=section.title,
        language=language,
        body=body,
        description=description,
        min_version=section.min_version,
        position=position,
        line=section.line,
    )


def parse_document(text: str, source: str = None) -> Document:
    """Parse catalog markdown.

    The expected layout is a level one title, a level two ``Table of contents`` heading followed by an
    ordered list of ``[Title](#anchor)`` links, then one level two heading per snippet. A snippet section
    holds an optional ``*PostgreSQL X.Y+*`` line, a free text description and exactly one fenced code
    block tagged ``sql`` or ``sh``.

    :param text: the markdown text
    :param source: a name for the text used in error messages, typically its path
    :returns: the parsed document
    :raises DocumentFormatError: if a section cannot be turned into a snippet
    """
    title = ""
    toc = []
    snippets = []
    in_toc = False
    section = None
    fence = None
    for number, line in enumerate(text.splitlines(), start=1):
        if fence is not None:
            if FENCE_CLOSE.match(line):
                info, start, body = fence
                if section is None:
                    raise DocumentFormatError("Code block outside of a snippet section", source, start)
                section.blocks.append((info, "\n".join(body) + "\n", start))
                fence = None
            else:
                fence[2].append(line)
            continue
        opened = FENCE_OPEN.match(line)
        if opened:
            fence = (opened.group("info"), number, [])
            continue
        heading = HEADING.match(line)
        if heading and len(heading.group("level")) == 1 and not title:
            title = heading.group("text")
            continue
        if heading and len(heading.group("level")) == 2:
            if section is not None:
                snippets.append(_close_section(section, len(snippets) + 1, source))
                section = None
            in_toc = heading.group("text").lower() == TOC_HEADING
            if not in_toc:
                section = _Section(heading.group("text"), number)
            continue
        if in_toc:
            entry = TOC_ENTRY.match(line)
            if entry:
                toc.append(TocEntry(int(entry.group("number")), entry.group("title"), entry.group("anchor"), number))
            elif line.strip():
                raise DocumentFormatError(f"Unexpected line in table of contents: {line.strip()}", source, number)
            continue
        if section is None:
            continue
        version = VERSION_LINE.match(line.strip())
        if version and section.min_version is None and not section.blocks:
            section.min_version = (int(version.group("major")), int(version.group("minor") or 0))
            continue
        if not section.blocks:
            section.text.append(line)
    if fence is not None:
        raise DocumentFormatError("Unterminated code block", source, fence[1])
    if section is not None:
        snippets.append(_close_section(section, len(snippets) + 1, source))
    if not title:
        raise DocumentFormatError("Document has no title", source, 1)
    logger.debug(f"Parsed {len(snippets)} snippet(s) and {len(toc)} table of contents entries from {source}")
    return Document(title=title, toc=toc, snippets=snippets, source=source)
