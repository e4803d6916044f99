"""Defines common errors raised while loading and searching the snippet catalog."""


class CatalogError(Exception):
    """Base exception for catalog problems."""

    pass


class DocumentFormatError(CatalogError):
    """Raised when the catalog document cannot be split into snippets."""

    def __init__(self, message: str, source: str = None, line: int = None):  # noqa: D107
        self.source = source
        self.line = line
        where = f"{source or '<document>'}:{line}: " if line is not None else ""
        super().__init__(f"{where}{message}")


class SnippetNotFoundError(CatalogError):
    """Raised when no snippet matches a lookup key."""

    pass


class AmbiguousSnippetError(CatalogError):
    """Raised when a lookup key is a prefix of more than one snippet slug."""

    def __init__(self, key: str, candidates):  # noqa: D107
        self.key = key
        self.candidates = tuple(candidates)
        super().__init__(f"'{key}' matches several snippets: {', '.join(self.candidates)}")
