"""uricore.codec
Percent-encoding and decoding, one safe set per URI component
"""

import string

from typing import Callable

from .errors import InvalidPercentEscape

# Each of these ABNF rules is from RFC 3986 or 5234.

# ALPHA = %x41-5A / %x61-7A
ALPHA: frozenset[str] = frozenset(string.ascii_letters)

# DIGIT = %x30-39
DIGIT: frozenset[str] = frozenset(string.digits)

# HEXDIG = DIGIT / "A" / "B" / "C" / "D" / "E" / "F"
# (lowercase accepted, as RFC 3986 section 2.1 asks)
HEXDIG: frozenset[str] = frozenset(string.hexdigits)

# unreserved = ALPHA / DIGIT / "-" / "." / "_" / "~"
UNRESERVED: frozenset[str] = ALPHA | DIGIT | frozenset("-._~")

# sub-delims = "!" / "$" / "&" / "'" / "(" / ")" / "*" / "+" / "," / ";" / "="
SUB_DELIMS: frozenset[str] = frozenset("!$&'()*+,;=")

# scheme = ALPHA *( ALPHA / DIGIT / "+" / "-" / "." )
SCHEME_CHARS: frozenset[str] = ALPHA | DIGIT | frozenset("+-.")

# ":" and "@" are structural inside the authority, so neither is safe here.
USER_INFO_SAFE: frozenset[str] = UNRESERVED | SUB_DELIMS

# reg-name = *( unreserved / pct-encoded / sub-delims )
HOST_SAFE: frozenset[str] = UNRESERVED | SUB_DELIMS

# pchar = unreserved / pct-encoded / sub-delims / ":" / "@"
PATH_SEGMENT_SAFE: frozenset[str] = UNRESERVED | SUB_DELIMS | frozenset(":@")

# "&" and "=" split the query into parameters.
QUERY_SAFE: frozenset[str] = UNRESERVED | frozenset("!$()*+,/:;?@'")

# fragment = *( pchar / "/" / "?" )
FRAGMENT_SAFE: frozenset[str] = UNRESERVED | SUB_DELIMS | frozenset("/:;?@=")

# IP-literal = "[" ( IPv6address / IPvFuture ) "]", kept verbatim (zone IDs may carry "%25")
IP_LITERAL_CHARS: frozenset[str] = UNRESERVED | SUB_DELIMS | frozenset(":%")

_REPLACEMENT_OCTETS: bytes = "\ufffd".encode("utf-8")


def check_escapes(raw: str, offset: int = 0) -> None:
    """Raises InvalidPercentEscape for the first "%" in raw not followed by two hex digits."""
    i: int = raw.find("%")
    while i >= 0:
        if raw[i + 1 : i + 2] not in HEXDIG or raw[i + 2 : i + 3] not in HEXDIG:
            raise InvalidPercentEscape(offset + i)
        i = raw.find("%", i + 3)


def decode(raw: str, offset: int = 0) -> str:
    """Replaces every %XX escape in raw with the octet it stands for.
    The octets are collected and decoded as UTF-8 in one go, so multi-octet characters may be split across escapes.
    Octet sequences that are not valid UTF-8 decode to U+FFFD.
    offset is added to the position reported by InvalidPercentEscape.
    """
    if "%" not in raw:
        return raw

    buffer: bytearray = bytearray()
    i: int = 0
    n: int = len(raw)
    while i < n:
        c: str = raw[i]
        if c == "%":
            # Slicing past the end yields "", which is never a HEXDIG.
            if raw[i + 1 : i + 2] in HEXDIG and raw[i + 2 : i + 3] in HEXDIG:
                buffer.append(int(raw[i + 1 : i + 3], base=16))
                i += 3
                continue
            raise InvalidPercentEscape(offset + i)
        buffer.extend(_octets(c))
        i += 1
    return buffer.decode("utf-8", errors="replace")


def _octets(c: str) -> bytes:
    try:
        return c.encode("utf-8")
    except UnicodeEncodeError:
        # Lone surrogates have no UTF-8 form.
        return _REPLACEMENT_OCTETS


def encode(decoded: str, is_safe: Callable[[str], bool]) -> str:
    """Copies safe characters through and writes everything else as uppercase %XX octets."""
    result: list[str] = []
    for c in decoded:
        if is_safe(c):
            result.append(c)
        else:
            result.extend(f"%{octet:02X}" for octet in _octets(c))
    return "".join(result)


def encode_user_info(decoded: str) -> str:
    return encode(decoded, USER_INFO_SAFE.__contains__)


def encode_host(decoded: str) -> str:
    return encode(decoded, HOST_SAFE.__contains__)


def encode_path_segment(decoded: str) -> str:
    return encode(decoded, PATH_SEGMENT_SAFE.__contains__)


def encode_query(decoded: str) -> str:
    return encode(decoded, QUERY_SAFE.__contains__)


def encode_fragment(decoded: str) -> str:
    return encode(decoded, FRAGMENT_SAFE.__contains__)
