"""uricore.errors
Exceptions raised while building or parsing URIs
"""

from typing import Self


class UriError(ValueError):
    """Raised when a URI component is given a value it cannot hold."""


class UriParseError(UriError):
    """A parse failure at a specific character offset of the input."""

    reason: str = "parse failed"

    def __init__(self: Self, position: int, text: str | None = None) -> None:
        self.position: int = position
        self.text: str | None = text
        super().__init__(f"{self.reason} at position {position}")

    def with_text(self: Self, text: str) -> Self:
        """Returns a copy of this error that remembers the input it was raised on."""
        return self.__class__(self.position, text)


class UnexpectedCharacter(UriParseError):
    reason = "unexpected character"


class UnterminatedBracket(UriParseError):
    reason = "unterminated '['"


class InvalidPercentEscape(UriParseError):
    reason = "invalid percent escape"
