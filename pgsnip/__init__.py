"""A catalog of PostgreSQL administration snippets with tooling to list, render and run them."""

from pgsnip.__version__ import __version__

__all__ = ["__version__"]
