from __future__ import annotations


class BloggerError(Exception):
    """Base class for every error raised while publishing."""


class SourceUnreadable(BloggerError):
    pass


class MalformedHeader(BloggerError):
    pass


class DateParseError(BloggerError):
    def __init__(self, value: str) -> None:
        super().__init__(f'Could not parse date "{value}"')
        self.value = value


class RenderFailure(BloggerError):
    pass


class TemplateError(RenderFailure):
    pass


class WriteFailure(BloggerError):
    pass


class StartupFatal(BloggerError):
    """Raised before any source file is processed; aborts the whole run."""
