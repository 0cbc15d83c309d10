"""uricore.components
The immutable values a Uri is assembled from.
Every constructor here validates its input; the parser and the Uri mutators both build components through them.
"""

import dataclasses
import enum
import re

from collections.abc import Mapping
from typing import Iterable, Iterator, NamedTuple, Self

from .codec import ALPHA, IP_LITERAL_CHARS, SCHEME_CHARS, check_escapes
from .errors import UriError

# port = *DIGIT, held as an unsigned 32-bit integer
MAX_PORT: int = 0xFFFFFFFF

# IPv4address = dec-octet "." dec-octet "." dec-octet "." dec-octet
# (each dec-octet is 1-3 digits; the 0-255 range is checked after matching)
_IPV4_PAT: re.Pattern[str] = re.compile(r"\A([0-9]{1,3})\.([0-9]{1,3})\.([0-9]{1,3})\.([0-9]{1,3})\Z")

# Synthesized keys for bare query parameters in the mapping view: $0, $1, ...
_POSITIONAL_KEY_PAT: re.Pattern[str] = re.compile(r"\A\$[0-9]+\Z")


def is_ipv4_address(text: str) -> bool:
    """True iff text is four dot-separated groups of 1-3 digits, each at most 255."""
    m: re.Match[str] | None = _IPV4_PAT.match(text)
    return m is not None and all(int(octet, base=10) <= 255 for octet in m.groups())


def scheme_name(name: str) -> str:
    """Validates a scheme name and returns it lower-cased."""
    if not isinstance(name, str):
        raise TypeError("scheme name must be a string")
    if len(name) == 0 or name[0] not in ALPHA or any(c not in SCHEME_CHARS for c in name):
        raise UriError(f"Invalid scheme: {name!r}")
    return name.lower()


def _require_str(value: object, what: str) -> None:
    if not isinstance(value, str):
        raise TypeError(f"{what} must be a string")


class HostKind(enum.Enum):
    NAME = "name"
    IPV4 = "ipv4"
    IPV6 = "ipv6"


@dataclasses.dataclass(frozen=True)
class Host:
    """A host as it appears in an authority.
    NAME addresses are held percent-decoded; IPV4 and IPV6 literals are held exactly as written, IPV6 without its brackets.
    """

    kind: HostKind
    address: str

    def __post_init__(self: Self) -> None:
        _require_str(self.address, "host address")
        if self.kind is HostKind.IPV4 and not is_ipv4_address(self.address):
            raise UriError(f"Invalid IPv4 address: {self.address!r}")
        if self.kind is HostKind.IPV6:
            if any(c not in IP_LITERAL_CHARS for c in self.address):
                raise UriError(f"Invalid IPv6 address: {self.address!r}")
            check_escapes(self.address)

    @classmethod
    def from_name(cls, address: str) -> Self:
        return cls(HostKind.NAME, address)

    @classmethod
    def from_ipv4(cls, address: str) -> Self:
        return cls(HostKind.IPV4, address)

    @classmethod
    def from_ipv6(cls, address: str) -> Self:
        return cls(HostKind.IPV6, address)

    @property
    def is_name(self: Self) -> bool:
        return self.kind is HostKind.NAME

    @property
    def is_ipv4(self: Self) -> bool:
        return self.kind is HostKind.IPV4

    @property
    def is_ipv6(self: Self) -> bool:
        return self.kind is HostKind.IPV6


EMPTY_HOST: Host = Host.from_name("")


@dataclasses.dataclass(frozen=True)
class UserInfo:
    username: str = ""
    password: str | None = None

    def __post_init__(self: Self) -> None:
        _require_str(self.username, "username")
        if self.password is not None:
            _require_str(self.password, "password")


@dataclasses.dataclass(frozen=True)
class Authority:
    """userinfo@host:port
    A missing host is the empty host name, which is also what "//" parses to.
    """

    user_info: UserInfo | None = None
    host: Host = EMPTY_HOST
    port: int | None = None

    def __post_init__(self: Self) -> None:
        if self.user_info is not None and not isinstance(self.user_info, UserInfo):
            raise TypeError("user_info must be a UserInfo")
        if not isinstance(self.host, Host):
            raise TypeError("host must be a Host")
        if self.port is not None:
            # bool is an int, but True is not a port.
            if not isinstance(self.port, int) or isinstance(self.port, bool):
                raise TypeError("port must be an integer")
            if not 0 <= self.port <= MAX_PORT:
                raise UriError(f"Port out of range: {self.port}")

    @property
    def username(self: Self) -> str | None:
        return self.user_info.username if self.user_info is not None else None

    @property
    def password(self: Self) -> str | None:
        return self.user_info.password if self.user_info is not None else None

    @property
    def is_empty(self: Self) -> bool:
        return self.user_info is None and self.host == EMPTY_HOST and self.port is None

    def with_user_info(self: Self, user_info: UserInfo | None) -> Self:
        return dataclasses.replace(self, user_info=user_info)

    def with_host(self: Self, host: Host | None) -> Self:
        return dataclasses.replace(self, host=host if host is not None else EMPTY_HOST)

    def with_port(self: Self, port: int | None) -> Self:
        return dataclasses.replace(self, port=port)


class _Slash:
    """The separator token of a Path. There is exactly one."""

    __slots__ = ()

    _instance: "_Slash | None" = None

    def __new__(cls) -> "_Slash":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self: Self) -> str:
        return "SLASH"

    def __reduce__(self: Self) -> str:
        return "SLASH"


SLASH: _Slash = _Slash()

PathToken = str | _Slash


@dataclasses.dataclass(frozen=True)
class Path:
    """An ordered run of SLASH tokens and decoded segments.
    "/one/two" is (SLASH, "one", SLASH, "two"); "one/" is ("one", SLASH).
    Segments are never empty and never adjacent; use Path.of or PathBuilder rather than building tokens by hand.
    """

    tokens: tuple[PathToken, ...] = ()

    def __post_init__(self: Self) -> None:
        object.__setattr__(self, "tokens", tuple(self.tokens))
        previous: PathToken | None = None
        for token in self.tokens:
            if token is not SLASH:
                if not isinstance(token, str):
                    raise TypeError(f"path token must be a string or SLASH, not {type(token).__name__}")
                if len(token) == 0:
                    raise UriError("empty path segment")
                if isinstance(previous, str):
                    raise UriError("adjacent path segments")
            previous = token

    @classmethod
    def of(cls, *components: "str | Path") -> Self:
        """Builds a path from strings and paths. The string "/" is a separator; any other string is a segment.
        Consecutive segments are joined with a separator.
        """
        builder: PathBuilder = PathBuilder()
        for component in components:
            builder.add(component)
        return builder.build()

    def __len__(self: Self) -> int:
        return len(self.tokens)

    def __iter__(self: Self) -> Iterator[PathToken]:
        return iter(self.tokens)

    @property
    def is_empty(self: Self) -> bool:
        return len(self.tokens) == 0

    @property
    def is_absolute(self: Self) -> bool:
        return len(self.tokens) > 0 and self.tokens[0] is SLASH

    @property
    def is_relative(self: Self) -> bool:
        return not self.is_absolute

    @property
    def segments(self: Self) -> tuple[str, ...]:
        return tuple(token for token in self.tokens if isinstance(token, str))

    @property
    def name(self: Self) -> str:
        """The last segment, or "" when the path is empty or ends with a separator."""
        if len(self.tokens) > 0 and isinstance(self.tokens[-1], str):
            return self.tokens[-1]
        return ""

    def with_name(self: Self, name: str) -> Self:
        return PathBuilder().add_path(self.base()).add_segment(name).build()

    def base(self: Self) -> Self:
        """This path without its last segment. "/a/b" becomes "/a/"; "/a/" is unchanged."""
        if len(self.tokens) > 0 and isinstance(self.tokens[-1], str):
            return self.__class__(self.tokens[:-1])
        return self

    def parent(self: Self) -> Self:
        """The directory above this one. "/a/b" and "/a/b/" both become "/a/"; "/" becomes empty."""
        tokens: tuple[PathToken, ...] = self.tokens
        if len(tokens) > 0 and tokens[-1] is SLASH:
            tokens = tokens[:-1]
        if len(tokens) > 0:
            tokens = tokens[:-1]
        return self.__class__(tokens)

    def appended(self: Self, *components: "str | Path") -> Self:
        if len(components) == 0:
            return self
        builder: PathBuilder = PathBuilder().add_path(self)
        for component in components:
            builder.add(component)
        return builder.build()

    def appended_slash(self: Self) -> Self:
        return PathBuilder().add_path(self).add_slash().build()

    def appended_segment(self: Self, segment: str) -> Self:
        return PathBuilder().add_path(self).add_segment(segment).build()

    def prepended(self: Self, *components: "str | Path") -> Self:
        if len(components) == 0:
            return self
        builder: PathBuilder = PathBuilder()
        for component in components:
            builder.add(component)
        return builder.add_path(self).build()

    def prepended_slash(self: Self) -> Self:
        return self.__class__((SLASH, *self.tokens))

    def prepended_segment(self: Self, segment: str) -> Self:
        return PathBuilder().add_segment(segment).add_path(self).build()

    def is_subpath_of(self: Self, other: "Path") -> bool:
        """True iff other is a token-wise prefix of this path."""
        return self.tokens[: len(other.tokens)] == other.tokens

    def to_list(self: Self) -> list[str]:
        """The tokens as plain strings, separators written as "/"."""
        return ["/" if token is SLASH else token for token in self.tokens]


class PathBuilder:
    """Accumulates path tokens, inserting a separator between consecutive segments."""

    def __init__(self: Self) -> None:
        self._tokens: list[PathToken] = []

    def add_slash(self: Self) -> Self:
        self._tokens.append(SLASH)
        return self

    def add_segment(self: Self, segment: str) -> Self:
        _require_str(segment, "path segment")
        if len(segment) == 0:
            return self
        if len(self._tokens) > 0 and self._tokens[-1] is not SLASH:
            self._tokens.append(SLASH)
        self._tokens.append(segment)
        return self

    def add_path(self: Self, path: Path) -> Self:
        for token in path.tokens:
            if token is SLASH:
                self.add_slash()
            else:
                self.add_segment(token)
        return self

    def add(self: Self, component: str | Path) -> Self:
        if isinstance(component, Path):
            return self.add_path(component)
        if component == "/":
            return self.add_slash()
        return self.add_segment(component)

    def build(self: Self) -> Path:
        return Path(tuple(self._tokens))


EMPTY_PATH: Path = Path()

QueryParam = tuple[str | None, str]


@dataclasses.dataclass(frozen=True)
class Query:
    """Ordered (key, value) parameters. A key of None marks a bare parameter, one written without "=".
    Duplicate keys are kept, in order.
    """

    params: tuple[QueryParam, ...] = ()

    def __post_init__(self: Self) -> None:
        object.__setattr__(self, "params", tuple(self.params))
        for param in self.params:
            if not isinstance(param, tuple) or len(param) != 2:
                raise TypeError("query parameters must be (key, value) pairs")
            key, value = param
            if key is not None:
                _require_str(key, "query key")
            _require_str(value, "query value")

    @classmethod
    def of(cls, params: "Iterable[QueryParam] | Mapping[str, str]") -> Self:
        if isinstance(params, Mapping):
            return cls.from_mapping(params)
        return cls(tuple((key, value) for key, value in params))

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, str]) -> Self:
        """Keys of the form $0, $1, ... become bare parameters, in the mapping's order."""
        return cls(
            tuple((None if _POSITIONAL_KEY_PAT.match(key) else key, value) for key, value in mapping.items())
        )

    def to_mapping(self: Self) -> dict[str, str]:
        """A dict view of the parameters.
        Bare parameters get the key $i for their index i, or the next free $n when a real key already uses that name.
        When a key repeats, its first value wins.
        """
        taken: set[str] = {key for key, _ in self.params if key is not None}
        result: dict[str, str] = {}
        for i, (key, value) in enumerate(self.params):
            if key is None:
                n: int = i
                while f"${n}" in taken or f"${n}" in result:
                    n += 1
                result[f"${n}"] = value
            elif key not in result:
                result[key] = value
        return result

    @property
    def has_positional_keys(self: Self) -> bool:
        """True iff a real key looks like $0, $1, ..., which the mapping view would read back as bare."""
        return any(key is not None and _POSITIONAL_KEY_PAT.match(key) for key, _ in self.params)

    def __len__(self: Self) -> int:
        return len(self.params)

    def __iter__(self: Self) -> Iterator[QueryParam]:
        return iter(self.params)

    @property
    def is_empty(self: Self) -> bool:
        return len(self.params) == 0

    def get(self: Self, key: str, default: str | None = None) -> str | None:
        """The value of the first parameter named key."""
        for k, value in self.params:
            if k == key:
                return value
        return default

    def keys(self: Self) -> list[str | None]:
        return [key for key, _ in self.params]

    def values(self: Self) -> list[str]:
        return [value for _, value in self.params]

    def updated(self: Self, key: str, value: str) -> Self:
        """Replaces the value of every parameter named key, appending one if there is none."""
        params: list[QueryParam] = []
        updated: bool = False
        for k, v in self.params:
            if k == key:
                params.append((key, value))
                updated = True
            else:
                params.append((k, v))
        if not updated:
            params.append((key, value))
        return self.__class__(tuple(params))

    def removed(self: Self, key: str) -> Self:
        params: tuple[QueryParam, ...] = tuple((k, v) for k, v in self.params if k != key)
        if len(params) == len(self.params):
            return self
        return self.__class__(params)

    def appended(self: Self, key: str | None, value: str) -> Self:
        return self.__class__((*self.params, (key, value)))

    def prepended(self: Self, key: str | None, value: str) -> Self:
        return self.__class__(((key, value), *self.params))


EMPTY_QUERY: Query = Query()


class UriComponents(NamedTuple):
    """What the parser produces and the serializer consumes."""

    scheme: str | None = None
    authority: Authority | None = None
    path: Path = EMPTY_PATH
    query: Query = EMPTY_QUERY
    fragment: str | None = None
