"""uricore.parser
A single left-to-right scanner for RFC 3986 URI-references.

    URI-reference = [ scheme ":" ] [ "//" authority ] path [ "?" query ] [ "#" fragment ]
    authority     = [ userinfo "@" ] host [ ":" port ]

Each stage is entered on lookahead and never gives characters back to an earlier stage.
Every component is percent-decoded on its own, so an escaped delimiter stays data.
"""

from typing import Callable, Self, TypeVar

from .codec import (
    ALPHA,
    DIGIT,
    FRAGMENT_SAFE,
    HOST_SAFE,
    IP_LITERAL_CHARS,
    PATH_SEGMENT_SAFE,
    QUERY_SAFE,
    SCHEME_CHARS,
    USER_INFO_SAFE,
    check_escapes,
    decode,
)
from .components import (
    MAX_PORT,
    Authority,
    Host,
    Path,
    PathBuilder,
    Query,
    QueryParam,
    UriComponents,
    UserInfo,
    is_ipv4_address,
)
from .errors import InvalidPercentEscape, UnexpectedCharacter, UnterminatedBracket, UriParseError
from .get_logger import get_logger

logger = get_logger("parser")

T = TypeVar("T")

# Characters each stage accepts besides the ones it splits on. "%" starts an escape everywhere.
_USER_INFO_CHARS: frozenset[str] = USER_INFO_SAFE | frozenset("%:")
_HOST_CHARS: frozenset[str] = HOST_SAFE | frozenset("%")
_PATH_CHARS: frozenset[str] = PATH_SEGMENT_SAFE | frozenset("%")
_QUERY_CHARS: frozenset[str] = QUERY_SAFE | frozenset("%=")
_FRAGMENT_CHARS: frozenset[str] = FRAGMENT_SAFE | frozenset("%")

# A query also holds the "&" and "=" it is split on.
_QUERY_PART_CHARS: frozenset[str] = _QUERY_CHARS | frozenset("&")

# The authority runs until one of these, or the end of input.
_AUTHORITY_END: frozenset[str] = frozenset("/?#")


class UriParser:
    """Parses one input string. Instances are single-use; call parse() or one of the part parsers once."""

    def __init__(self: Self, text: str) -> None:
        if not isinstance(text, str):
            raise TypeError("URI text must be a string")
        self._text: str = text
        self._index: int = 0

    def parse(self: Self) -> UriComponents:
        """Parses the whole input as a URI-reference."""
        try:
            scheme: str | None = self._parse_scheme()
            authority: Authority | None = None
            if self._text.startswith("//", self._index):
                self._index += 2
                authority = self._parse_authority()
            path: Path = self._parse_path()
            query: Query = Query()
            if self._peek() == "?":
                self._index += 1
                query = self._parse_query()
            fragment: str | None = None
            if self._peek() == "#":
                self._index += 1
                fragment = self._parse_fragment()
            self._expect_end()
        except UriParseError as error:
            logger.debug("failed to parse %r: %s", self._text, error)
            raise
        return UriComponents(scheme, authority, path, query, fragment)

    def parse_authority(self: Self) -> Authority:
        """Parses the whole input as an authority, without the leading "//"."""
        return self._parse_part(self._parse_authority)

    def parse_path(self: Self) -> Path:
        return self._parse_part(self._parse_path)

    def parse_query(self: Self) -> Query:
        """Parses the whole input as a query, without the leading "?"."""
        return self._parse_part(self._parse_query)

    def parse_fragment(self: Self) -> str:
        """Parses the whole input as a fragment, without the leading "#"."""
        return self._parse_part(self._parse_fragment)

    def _parse_part(self: Self, stage: Callable[[], T]) -> T:
        try:
            result: T = stage()
            self._expect_end()
        except UriParseError as error:
            logger.debug("failed to parse part %r: %s", self._text, error)
            raise
        return result

    def _peek(self: Self) -> str:
        """The character at the cursor, or "" at the end of input."""
        return self._text[self._index : self._index + 1]

    def _expect_end(self: Self) -> None:
        if self._index < len(self._text):
            raise UnexpectedCharacter(self._index, self._text)

    def _find_end(self: Self, start: int, terminators: frozenset[str]) -> int:
        """The index of the first terminator at or after start, or the end of input."""
        end: int = start
        while end < len(self._text) and self._text[end] not in terminators:
            end += 1
        return end

    def _check_chars(self: Self, start: int, end: int, allowed: frozenset[str]) -> None:
        for i in range(start, end):
            if self._text[i] not in allowed:
                raise UnexpectedCharacter(i, self._text)

    def _decode(self: Self, start: int, end: int) -> str:
        try:
            return decode(self._text[start:end], offset=start)
        except InvalidPercentEscape as error:
            raise error.with_text(self._text) from None

    def _parse_scheme(self: Self) -> str | None:
        """scheme ":" if the input opens with one; the cursor is left alone otherwise."""
        text: str = self._text
        if self._peek() not in ALPHA:
            return None
        end: int = self._index + 1
        while end < len(text) and text[end] in SCHEME_CHARS:
            end += 1
        if text[end : end + 1] != ":":
            return None
        scheme: str = text[self._index : end].lower()
        self._index = end + 1
        return scheme

    def _parse_authority(self: Self) -> Authority:
        start: int = self._index
        end: int = self._find_end(start, _AUTHORITY_END)

        user_info: UserInfo | None = None
        at: int = self._text.find("@", start, end)
        if at >= 0:
            user_info = self._parse_user_info(start, at)
            self._index = at + 1

        host: Host = self._parse_host(end)

        port: int | None = None
        if self._index < end and self._text[self._index] == ":":
            self._index += 1
            port = self._parse_port(end)

        if self._index < end:
            raise UnexpectedCharacter(self._index, self._text)
        return Authority(user_info, host, port)

    def _parse_user_info(self: Self, start: int, end: int) -> UserInfo:
        """userinfo, split once on the first ":" into username and password."""
        self._check_chars(start, end, _USER_INFO_CHARS)
        colon: int = self._text.find(":", start, end)
        if colon < 0:
            return UserInfo(self._decode(start, end))
        return UserInfo(self._decode(start, colon), self._decode(colon + 1, end))

    def _parse_host(self: Self, end: int) -> Host:
        text: str = self._text
        start: int = self._index
        if self._peek() == "[":
            close: int = text.find("]", start + 1, end)
            if close < 0:
                raise UnterminatedBracket(start, text)
            self._check_chars(start + 1, close, IP_LITERAL_CHARS)
            try:
                check_escapes(text[start + 1 : close], offset=start + 1)
            except InvalidPercentEscape as error:
                raise error.with_text(text) from None
            self._index = close + 1
            return Host.from_ipv6(text[start + 1 : close])

        host_end: int = start
        while host_end < end and text[host_end] != ":":
            if text[host_end] not in _HOST_CHARS:
                raise UnexpectedCharacter(host_end, text)
            host_end += 1
        self._index = host_end
        raw: str = text[start:host_end]
        if is_ipv4_address(raw):
            return Host.from_ipv4(raw)
        return Host.from_name(self._decode(start, host_end))

    def _parse_port(self: Self, end: int) -> int:
        """port = *DIGIT; no digits at all is port 0."""
        port: int = 0
        while self._index < end:
            c: str = self._text[self._index]
            if c not in DIGIT:
                raise UnexpectedCharacter(self._index, self._text)
            port = port * 10 + int(c)
            if port > MAX_PORT:
                raise UnexpectedCharacter(self._index, self._text)
            self._index += 1
        return port

    def _parse_path(self: Self) -> Path:
        """Everything up to "?", "#" or the end. Separators become SLASH tokens; segments are decoded."""
        text: str = self._text
        builder: PathBuilder = PathBuilder()
        segment_start: int = self._index
        while self._index < len(text):
            c: str = text[self._index]
            if c == "?" or c == "#":
                break
            if c == "/":
                builder.add_segment(self._decode(segment_start, self._index))
                builder.add_slash()
                segment_start = self._index + 1
            elif c not in _PATH_CHARS:
                raise UnexpectedCharacter(self._index, text)
            self._index += 1
        builder.add_segment(self._decode(segment_start, self._index))
        return builder.build()

    def _parse_query(self: Self) -> Query:
        """Parameters split on "&", each split once on its first "=". A part without "=" is bare."""
        text: str = self._text
        start: int = self._index
        end: int = self._find_end(start, frozenset("#"))
        self._check_chars(start, end, _QUERY_PART_CHARS)

        params: list[QueryParam] = []
        part_start: int = start
        while True:
            part_end: int = text.find("&", part_start, end)
            if part_end < 0:
                part_end = end
            equals: int = text.find("=", part_start, part_end)
            if equals < 0:
                params.append((None, self._decode(part_start, part_end)))
            else:
                params.append((self._decode(part_start, equals), self._decode(equals + 1, part_end)))
            if part_end == end:
                break
            part_start = part_end + 1

        self._index = end
        return Query(tuple(params))

    def _parse_fragment(self: Self) -> str:
        start: int = self._index
        end: int = len(self._text)
        self._check_chars(start, end, _FRAGMENT_CHARS)
        self._index = end
        return self._decode(start, end)


def parse(text: str) -> UriComponents:
    return UriParser(text).parse()


def parse_authority(part: str) -> Authority:
    return UriParser(part).parse_authority()


def parse_path(part: str) -> Path:
    return UriParser(part).parse_path()


def parse_query(part: str) -> Query:
    return UriParser(part).parse_query()


def parse_fragment(part: str) -> str:
    return UriParser(part).parse_fragment()
