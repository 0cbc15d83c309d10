"""uricore.serializer
Renders components back into a canonical URI string.
Delimiters are written only for components that are present, and each decoded string is re-encoded with its own safe set.
"""

from .codec import PATH_SEGMENT_SAFE, encode, encode_fragment, encode_host, encode_path_segment, encode_query, encode_user_info
from .components import SLASH, Authority, Host, HostKind, Path, Query, UriComponents, UserInfo

# A relative path's first segment must not read as a scheme.
_FIRST_SEGMENT_SAFE: frozenset[str] = PATH_SEGMENT_SAFE - frozenset(":")


def render_user_info(user_info: UserInfo) -> str:
    if user_info.password is None:
        return encode_user_info(user_info.username)
    return f"{encode_user_info(user_info.username)}:{encode_user_info(user_info.password)}"


def render_host(host: Host) -> str:
    if host.kind is HostKind.IPV6:
        return f"[{host.address}]"
    if host.kind is HostKind.IPV4:
        return host.address
    return encode_host(host.address)


def render_authority(authority: Authority) -> str:
    """userinfo@host:port, without the leading "//"."""
    result: str = ""
    if authority.user_info is not None:
        result += f"{render_user_info(authority.user_info)}@"
    result += render_host(authority.host)
    if authority.port is not None:
        result += f":{authority.port}"
    return result


def render_path(path: Path, colon_safe: bool = True) -> str:
    """With colon_safe False, a ":" in a leading relative segment is escaped."""
    result: list[str] = []
    for i, token in enumerate(path.tokens):
        if token is SLASH:
            result.append("/")
        elif i == 0 and not colon_safe:
            result.append(encode(token, _FIRST_SEGMENT_SAFE.__contains__))
        else:
            result.append(encode_path_segment(token))
    return "".join(result)


def render_query(query: Query) -> str:
    """Parameters joined by "&"; bare parameters are written without "=". No leading "?"."""
    return "&".join(
        encode_query(value) if key is None else f"{encode_query(key)}={encode_query(value)}"
        for key, value in query.params
    )


def render_fragment(fragment: str) -> str:
    return encode_fragment(fragment)


def serialize(components: UriComponents) -> str:
    """Direct translation of RFC 3986 section 5.3"""
    result: str = ""
    if components.scheme is not None:
        result += f"{components.scheme}:"
    if components.authority is not None:
        result += f"//{render_authority(components.authority)}"
    if components.authority is not None and not components.path.is_empty and components.path.is_relative:
        # A path after an authority must start with a separator.
        result += "/"
    result += render_path(components.path, colon_safe=components.scheme is not None or components.authority is not None)
    if not components.query.is_empty:
        result += f"?{render_query(components.query)}"
    if components.fragment is not None:
        result += f"#{render_fragment(components.fragment)}"
    return result
