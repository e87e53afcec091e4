from typing import Optional


class StitchError(Exception):
    """Base class for every error raised by pystitch."""

    pass


class ParseFailure(StitchError):
    """Raised when markup is not well-formed."""

    def __init__(self, message: str, markup: str = "", line: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.markup = markup
        self.line = line

    def __str__(self) -> str:
        if self.line is not None:
            return f"{self.message} (line {self.line})"
        return self.message


class FragmentParseError(ParseFailure):
    """Raised when the fragment returned by a renderer cannot be parsed."""

    def __init__(self, tag_name: str, fragment: str, line: Optional[int] = None):
        super().__init__(
            f"Renderer for <{tag_name}> returned unparseable markup",
            markup=fragment,
            line=line,
        )
        self.tag_name = tag_name
        self.fragment = fragment


class RenderFailure(StitchError):
    """Raised when a registered renderer fails."""

    def __init__(self, tag_name: str, original: BaseException):
        super().__init__(f"Renderer for <{tag_name}> failed: {original!r}")
        self.tag_name = tag_name
        self.original = original


class RegistryError(StitchError):
    """Raised on invalid renderer registry construction."""

    pass


class CompositionError(StitchError):
    """Raised when a composed tree breaks a structural invariant."""

    pass


class ConfigError(StitchError):
    """Raised on invalid configuration."""

    pass
