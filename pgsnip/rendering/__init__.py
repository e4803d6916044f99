"""Functionality related to replacing the manual edit points of snippets with operator supplied values."""

from pgsnip.rendering.quoting import Quoter, RawQuoter, ShellQuoter, SQLQuoter, get_quoter
from pgsnip.rendering.templating import Template, TemplatePlaceholder

__all__ = [
    "Quoter",
    "RawQuoter",
    "SQLQuoter",
    "ShellQuoter",
    "Template",
    "TemplatePlaceholder",
    "errors",
    "get_quoter",
]
