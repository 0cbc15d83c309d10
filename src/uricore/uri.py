"""uricore.uri
The Uri value: five components, compared structurally, serialized once on demand.
"""

import dataclasses
import functools

from collections.abc import Mapping
from typing import Any, Iterable, Self

from . import parser
from .components import (
    EMPTY_PATH,
    EMPTY_QUERY,
    Authority,
    Host,
    HostKind,
    Path,
    Query,
    QueryParam,
    UriComponents,
    UserInfo,
    is_ipv4_address,
    scheme_name,
)
from .serializer import render_host, serialize

AnyQuery = Query | Iterable[QueryParam] | Mapping[str, str]


def _to_query(query: AnyQuery | None) -> Query:
    if query is None:
        return EMPTY_QUERY
    if isinstance(query, Query):
        return query
    return Query.of(query)


def _to_host(address: str) -> Host:
    """Classifies a host as written in a URI: "[...]" is IPv6, a dotted quad is IPv4, anything else is a name."""
    if address.startswith("[") and address.endswith("]"):
        return Host.from_ipv6(address[1:-1])
    if is_ipv4_address(address):
        return Host.from_ipv4(address)
    return Host.from_name(address)


@functools.total_ordering
@dataclasses.dataclass(frozen=True)
class Uri:
    """An immutable URI-reference.
    Equality and hashing cover every component. Ordering compares the canonical strings.
    Use Uri.parse or the from_* constructors; every with_* method returns a new Uri.
    """

    scheme: str | None = None
    authority: Authority | None = None
    path: Path = EMPTY_PATH
    query: Query = EMPTY_QUERY
    fragment: str | None = None

    def __post_init__(self: Self) -> None:
        if self.scheme is not None:
            object.__setattr__(self, "scheme", scheme_name(self.scheme))
        if self.authority is not None and not isinstance(self.authority, Authority):
            raise TypeError("authority must be an Authority")
        if not isinstance(self.path, Path):
            raise TypeError("path must be a Path")
        if not isinstance(self.query, Query):
            raise TypeError("query must be a Query")
        if self.fragment is not None and not isinstance(self.fragment, str):
            raise TypeError("fragment must be a string")

    # Construction

    @classmethod
    def parse(cls, text: str) -> Self:
        """Parses an RFC 3986 URI-reference. Raises UriParseError on malformed input."""
        return cls.from_components(parser.parse(text))

    @classmethod
    def empty(cls) -> Self:
        return cls()

    @classmethod
    def from_components(cls, components: UriComponents) -> Self:
        return cls(*components)

    @classmethod
    def coerce(cls, value: "Uri | str | Mapping[str, Any] | None") -> Self:
        """Accepts a Uri, a string to parse, a mapping for from_dict, or None for the empty Uri."""
        if value is None:
            return cls.empty()
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            return cls.parse(value)
        if isinstance(value, Mapping):
            return cls.from_dict(value)
        raise TypeError(f"cannot make a Uri from {type(value).__name__}")

    @classmethod
    def from_scheme_name(cls, name: str) -> Self:
        return cls(scheme=name)

    @classmethod
    def from_authority(cls, authority: Authority) -> Self:
        return cls(authority=authority)

    @classmethod
    def from_username(cls, username: str, password: str | None = None) -> Self:
        return cls(authority=Authority(user_info=UserInfo(username, password)))

    @classmethod
    def from_host_name(cls, address: str) -> Self:
        return cls(authority=Authority(host=Host.from_name(address)))

    @classmethod
    def from_host_ipv4(cls, address: str) -> Self:
        return cls(authority=Authority(host=Host.from_ipv4(address)))

    @classmethod
    def from_host_ipv6(cls, address: str) -> Self:
        return cls(authority=Authority(host=Host.from_ipv6(address)))

    @classmethod
    def from_port_number(cls, port: int) -> Self:
        return cls(authority=Authority(port=port))

    @classmethod
    def from_path(cls, *components: str | Path) -> Self:
        """Uri.from_path("/", "one", "/", "two") is "/one/two"; see Path.of."""
        return cls(path=Path.of(*components))

    @classmethod
    def from_query(cls, query: AnyQuery) -> Self:
        """Takes (key, value) pairs, with None keys for bare parameters, or a mapping using $0, $1, ... for them."""
        return cls(query=_to_query(query))

    @classmethod
    def from_fragment_identifier(cls, identifier: str) -> Self:
        return cls(fragment=identifier)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Self:
        """The inverse of to_dict."""
        authority: Authority | None = None
        if any(key in data for key in ("username", "password", "host", "port")):
            user_info: UserInfo | None = None
            if "username" in data or "password" in data:
                user_info = UserInfo(data.get("username") or "", data.get("password"))
            host: Host = _to_host(data["host"]) if data.get("host") is not None else Host.from_name("")
            authority = Authority(user_info, host, data.get("port"))

        raw_path: Any = data.get("path", ())
        path: Path = parser.parse_path(raw_path) if isinstance(raw_path, str) else Path.of(*raw_path)
        return cls(data.get("scheme"), authority, path, _to_query(data.get("query")), data.get("fragment"))

    # Accessors

    @property
    def components(self: Self) -> UriComponents:
        return UriComponents(self.scheme, self.authority, self.path, self.query, self.fragment)

    @property
    def is_empty(self: Self) -> bool:
        return (
            self.scheme is None
            and self.authority is None
            and self.path.is_empty
            and self.query.is_empty
            and self.fragment is None
        )

    @property
    def user_info(self: Self) -> UserInfo | None:
        return self.authority.user_info if self.authority is not None else None

    @property
    def username(self: Self) -> str | None:
        return self.authority.username if self.authority is not None else None

    @property
    def password(self: Self) -> str | None:
        return self.authority.password if self.authority is not None else None

    @property
    def host(self: Self) -> Host | None:
        return self.authority.host if self.authority is not None else None

    @property
    def host_address(self: Self) -> str | None:
        return self.authority.host.address if self.authority is not None else None

    @property
    def port(self: Self) -> int | None:
        return self.authority.port if self.authority is not None else None

    @property
    def path_name(self: Self) -> str:
        return self.path.name

    # Mutators

    def _with_authority_field(self: Self, **changes: Any) -> Self:
        authority: Authority = self.authority if self.authority is not None else Authority()
        return self.with_authority(dataclasses.replace(authority, **changes))

    def with_scheme(self: Self, name: str | None) -> Self:
        return dataclasses.replace(self, scheme=name)

    def with_authority(self: Self, authority: Authority | None) -> Self:
        return dataclasses.replace(self, authority=authority)

    def with_authority_part(self: Self, part: str) -> Self:
        return self.with_authority(parser.parse_authority(part))

    def with_user_info(self: Self, user_info: UserInfo | None) -> Self:
        return self._with_authority_field(user_info=user_info)

    def with_username(self: Self, username: str, password: str | None = None) -> Self:
        return self.with_user_info(UserInfo(username, password))

    def with_password(self: Self, password: str | None) -> Self:
        """Keeps the current username, or uses "" when there is none."""
        return self.with_user_info(UserInfo(self.username or "", password))

    def with_host(self: Self, host: Host | None) -> Self:
        return self._with_authority_field(host=host if host is not None else Host.from_name(""))

    def with_host_name(self: Self, address: str) -> Self:
        return self.with_host(Host.from_name(address))

    def with_host_ipv4(self: Self, address: str) -> Self:
        return self.with_host(Host.from_ipv4(address))

    def with_host_ipv6(self: Self, address: str) -> Self:
        return self.with_host(Host.from_ipv6(address))

    def with_port_number(self: Self, port: int | None) -> Self:
        return self._with_authority_field(port=port)

    def with_path(self: Self, *components: str | Path) -> Self:
        return dataclasses.replace(self, path=Path.of(*components))

    def with_path_part(self: Self, part: str) -> Self:
        return dataclasses.replace(self, path=parser.parse_path(part))

    def with_path_name(self: Self, name: str) -> Self:
        return dataclasses.replace(self, path=self.path.with_name(name))

    def with_query(self: Self, query: AnyQuery | None) -> Self:
        return dataclasses.replace(self, query=_to_query(query))

    def with_query_part(self: Self, part: str) -> Self:
        return dataclasses.replace(self, query=parser.parse_query(part))

    def with_fragment_identifier(self: Self, identifier: str | None) -> Self:
        return dataclasses.replace(self, fragment=identifier)

    def with_fragment_part(self: Self, part: str) -> Self:
        return dataclasses.replace(self, fragment=parser.parse_fragment(part))

    def appended_path(self: Self, *components: str | Path) -> Self:
        return dataclasses.replace(self, path=self.path.appended(*components))

    def appended_slash(self: Self) -> Self:
        return dataclasses.replace(self, path=self.path.appended_slash())

    def appended_segment(self: Self, segment: str) -> Self:
        return dataclasses.replace(self, path=self.path.appended_segment(segment))

    def prepended_path(self: Self, *components: str | Path) -> Self:
        return dataclasses.replace(self, path=self.path.prepended(*components))

    def prepended_slash(self: Self) -> Self:
        return dataclasses.replace(self, path=self.path.prepended_slash())

    def prepended_segment(self: Self, segment: str) -> Self:
        return dataclasses.replace(self, path=self.path.prepended_segment(segment))

    def updated_query(self: Self, key: str, value: str) -> Self:
        return dataclasses.replace(self, query=self.query.updated(key, value))

    def removed_query(self: Self, key: str) -> Self:
        return dataclasses.replace(self, query=self.query.removed(key))

    def appended_query(self: Self, key: str | None, value: str) -> Self:
        return dataclasses.replace(self, query=self.query.appended(key, value))

    def prepended_query(self: Self, key: str | None, value: str) -> Self:
        return dataclasses.replace(self, query=self.query.prepended(key, value))

    def parent(self: Self) -> Self:
        """Scheme and authority with the parent path; query and fragment are dropped."""
        return self.__class__(self.scheme, self.authority, self.path.parent())

    def base(self: Self) -> Self:
        """Scheme and authority with the base path; query and fragment are dropped."""
        return self.__class__(self.scheme, self.authority, self.path.base())

    def endpoint(self: Self) -> Self:
        """Just the scheme and authority."""
        if self.path.is_empty and self.query.is_empty and self.fragment is None:
            return self
        return self.__class__(self.scheme, self.authority)

    # Conversion

    def to_dict(self: Self) -> dict[str, Any]:
        """Plain data: only present components appear, except path, which is always a list.
        The query is a mapping, or a list of [key, value] pairs when a real key is named like $0.
        """
        result: dict[str, Any] = {}
        if self.scheme is not None:
            result["scheme"] = self.scheme
        if self.authority is not None:
            if self.authority.user_info is not None:
                result["username"] = self.authority.user_info.username
                if self.authority.user_info.password is not None:
                    result["password"] = self.authority.user_info.password
            host: Host = self.authority.host
            result["host"] = render_host(host) if host.kind is not HostKind.NAME else host.address
            if self.authority.port is not None:
                result["port"] = self.authority.port
        result["path"] = self.path.to_list()
        if self.query.has_positional_keys:
            result["query"] = [[key, value] for key, value in self.query.params]
        elif not self.query.is_empty:
            result["query"] = self.query.to_mapping()
        if self.fragment is not None:
            result["fragment"] = self.fragment
        return result

    @functools.cached_property
    def _string(self: Self) -> str:
        return serialize(self.components)

    def __str__(self: Self) -> str:
        return self._string

    def __repr__(self: Self) -> str:
        if self.is_empty:
            return "Uri.empty()"
        return f"Uri.parse({self._string!r})"

    def __lt__(self: Self, other: object) -> bool:
        if not isinstance(other, Uri):
            return NotImplemented
        return self._string < other._string
