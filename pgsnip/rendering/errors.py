"""Defines common errors raised while rendering snippet placeholders."""


class RenderingError(Exception):
    """Base exception for errors when rendering a snippet template."""

    pass


class MissingPlaceholderError(RenderingError):
    """Raised when a template is rendered without a value for one or more of its placeholders."""

    def __init__(self, names):  # noqa: D107
        self.names = tuple(names)
        super().__init__(f"No value given for placeholder(s): {', '.join(self.names)}")


class UnknownPlaceholderError(RenderingError):
    """Raised when a value is given for a placeholder the template does not contain."""

    def __init__(self, names):  # noqa: D107
        self.names = tuple(names)
        super().__init__(f"Template has no placeholder(s): {', '.join(self.names)}")


class InvalidPlaceholderValueError(RenderingError):
    """Raised when a placeholder value cannot be quoted safely."""

    pass


class UnsupportedLanguageError(RenderingError):
    """Raised when no quoter exists for a snippet language."""

    pass


class TemplateError(RenderingError):
    """Raised when the placeholders of a snippet contradict each other."""

    pass
