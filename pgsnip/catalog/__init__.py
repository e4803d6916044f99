"""The snippet catalog: the bundled markdown document and lookups over its snippets."""

import logging
import os
from importlib import resources
from typing import Iterator, List, Union

from pgsnip.catalog.document import Document, TocEntry, parse_document
from pgsnip.catalog.errors import AmbiguousSnippetError, CatalogError, DocumentFormatError, SnippetNotFoundError
from pgsnip.catalog.snippet import Snippet, slugify

DOCUMENT_ENV = "PGSNIP_DOCUMENT"
BUNDLED_DOCUMENT = "snippets.md"


def load_document(path: str = None) -> Document:
    """Load and parse a catalog document.

    :param path: a markdown file to read, defaults to ``$PGSNIP_DOCUMENT`` and then to the bundled catalog
    :returns: the parsed document
    :raises DocumentFormatError, OSError
    """
    path = path or os.environ.get(DOCUMENT_ENV)
    if path:
        with open(path, "r", encoding="utf-8") as fh:
            return parse_document(fh.read(), source=path)
    text = resources.files(__name__).joinpath(BUNDLED_DOCUMENT).read_text(encoding="utf-8")
    return parse_document(text, source=BUNDLED_DOCUMENT)


class Catalog:
    """Lookups over the snippets of a document."""

    def __init__(self, document: Document):
        """Construct a catalog.

        :param document: the parsed document backing the catalog
        """
        self.logger = logging.getLogger(__name__)
        self._document = document

    @property
    def document(self) -> Document:
        """Return the document backing the catalog."""
        return self._document

    def __iter__(self) -> Iterator[Snippet]:  # noqa: D105
        return iter(self._document.snippets)

    def __len__(self) -> int:  # noqa: D105
        return len(self._document.snippets)

    def titles(self) -> List[str]:
        """Return every snippet title in document order."""
        return [s.title for s in self]

    def list(self) -> List[Snippet]:
        """Return every snippet in document order."""
        return list(self._document.snippets)

    def search(self, term: str) -> List[Snippet]:
        """Find the snippets whose title, slug or description contain every word of the term.

        :param term: whitespace separated words, matched case-insensitively
        :returns: matching snippets in document order
        """
        words = term.lower().split()
        found = []
        for snippet in self:
            haystack = " ".join([snippet.title, snippet.slug, snippet.description]).lower()
            if all(word in haystack for word in words):
                found.append(snippet)
        self.logger.debug(f"Search for '{term}' matched {len(found)} snippet(s)")
        return found

    def get(self, key: Union[str, int]) -> Snippet:
        """Find exactly one snippet.

        The key is tried, in order, as a 1-based position, a slug, a title (case-insensitive) and an
        unambiguous slug prefix.

        :param key: the lookup key
        :returns: the matching snippet
        :raises SnippetNotFoundError, AmbiguousSnippetError
        """
        text = str(key).strip()
        if text.isdigit():
            position = int(text)
            if 1 <= position <= len(self):
                return self._document.snippets[position - 1]
            raise SnippetNotFoundError(f"No snippet at position {position}, the catalog has {len(self)}")
        slug = slugify(text)
        for snippet in self:
            if snippet.slug == text or snippet.title.lower() == text.lower():
                return snippet
        candidates = [s for s in self if s.slug.startswith(slug)] if slug else []
        if len(candidates) == 1:
            return candidates[0]
        if candidates:
            raise AmbiguousSnippetError(text, [s.slug for s in candidates])
        raise SnippetNotFoundError(f"No snippet named '{text}'")


def load_catalog(path: str = None) -> Catalog:
    """Load a document and wrap it in a catalog.

    :param path: see :func:`load_document`
    :returns: the catalog
    """
    return Catalog(load_document(path))


__all__ = [
    "AmbiguousSnippetError",
    "Catalog",
    "CatalogError",
    "Document",
    "DocumentFormatError",
    "Snippet",
    "SnippetNotFoundError",
    "TocEntry",
    "load_catalog",
    "load_document",
    "parse_document",
]
