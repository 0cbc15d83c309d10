"""Tests for the URI scanner."""

import logging

import pytest

from uricore import Uri
from uricore.components import SLASH, Authority, Host, PathBuilder, Query, UserInfo
from uricore.errors import InvalidPercentEscape, UnexpectedCharacter, UnterminatedBracket, UriParseError
from uricore.parser import UriParser, parse, parse_authority, parse_fragment, parse_path, parse_query


def test_parse_empty():
    assert Uri.parse("") == Uri.empty()
    assert Uri.parse("").is_empty


def test_parse_scheme():
    assert Uri.parse("scheme:") == Uri.from_scheme_name("scheme")


def test_parse_scheme_is_case_folded():
    assert Uri.parse("AZaz09+-.:") == Uri.from_scheme_name("azaz09+-.")


def test_scheme_must_start_with_a_letter():
    """Without a valid scheme the colon belongs to the path."""
    uri = Uri.parse("1abc:def")
    assert uri.scheme is None
    assert uri.path.segments == ("1abc:def",)


def test_scheme_stops_at_other_characters():
    uri = Uri.parse("a_b:c")
    assert uri.scheme is None
    assert uri == Uri.from_path("a_b:c")


def test_scheme_with_rootless_path():
    assert Uri.parse("mailto:x@y") == Uri.from_scheme_name("mailto").with_path("x@y")


def test_parse_empty_authority():
    """"//" has an authority even though every part of it is empty."""
    uri = Uri.parse("//")
    assert uri == Uri.from_host_name("")
    assert uri.authority == Authority()
    assert uri != Uri.parse("")


def test_parse_host_name():
    assert Uri.parse("//domain") == Uri.from_host_name("domain")


def test_host_name_keeps_case():
    uri = Uri.parse("HTTP://Example.COM")
    assert uri.scheme == "http"
    assert uri.host == Host.from_name("Example.COM")


def test_host_name_is_percent_decoded():
    """An escaped slash in the host is data, not a path separator."""
    uri = Uri.parse("//%2f%2f")
    assert uri == Uri.from_host_name("//")
    assert uri.path.is_empty


def test_parse_ipv4_host():
    assert Uri.parse("//127.0.0.1") == Uri.from_host_ipv4("127.0.0.1")


@pytest.mark.parametrize("text", ["//256.0.0.1", "//1.2.3", "//1.2.3.4.5", "//1.2.3.4a"])
def test_near_ipv4_hosts_are_names(text):
    assert Uri.parse(text).host.is_name


def test_parse_ipv6_host():
    assert Uri.parse("//[::1]") == Uri.from_host_ipv6("::1")
    assert Uri.parse("//[::1]:8080") == Uri.from_host_ipv6("::1").with_port_number(8080)


def test_ipv6_literal_is_not_decoded():
    assert Uri.parse("//[fe80::1%25eth0]").host == Host.from_ipv6("fe80::1%25eth0")


def test_parse_port():
    assert Uri.parse("//domain:80") == Uri.from_host_name("domain").with_port_number(80)


def test_empty_port_is_zero():
    """A colon with no digits is port 0, which differs from no port."""
    assert Uri.parse("//:") == Uri.from_host_name("").with_port_number(0)
    assert Uri.parse("//h:").port == 0
    assert Uri.parse("//h").port is None


def test_port_upper_bound():
    assert Uri.parse("//h:4294967295").port == 4294967295
    with pytest.raises(UnexpectedCharacter) as excinfo:
        Uri.parse("//h:4294967296")
    assert excinfo.value.position == 13


def test_parse_user_info():
    assert Uri.parse("//user:pass@domain") == Uri.from_username("user", "pass").with_host_name("domain")


def test_user_info_without_host():
    uri = Uri.parse("//user@")
    assert uri.username == "user"
    assert uri.password is None
    assert uri.host == Host.from_name("")
    assert uri == Uri.from_username("user")


def test_user_info_splits_on_first_colon():
    uri = Uri.parse("//u%3Ax:p:w@h")
    assert uri.user_info == UserInfo("u:x", "p:w")


def test_empty_password_differs_from_no_password():
    assert Uri.parse("//u:@h").password == ""
    assert Uri.parse("//u@h").password is None


def test_parse_absolute_path():
    assert Uri.parse("/one/two/") == Uri.from_path("/", "one", "/", "two", "/")
    assert Uri.parse("/one/two").path.tokens == (SLASH, "one", SLASH, "two")


def test_parse_relative_path():
    assert Uri.parse("one/two") == Uri.from_path("one", "/", "two")
    assert Uri.parse("one/").path.tokens == ("one", SLASH)


def test_empty_segments_leave_adjacent_slashes():
    assert Uri.parse("/a//b").path.tokens == (SLASH, "a", SLASH, SLASH, "b")


def test_escaped_slash_is_a_segment():
    uri = Uri.parse("/%2f")
    assert uri.path == PathBuilder().add_slash().add_segment("/").build()


def test_path_after_authority():
    uri = Uri.parse("//h/a")
    assert uri.host_address == "h"
    assert uri.path.tokens == (SLASH, "a")


def test_parse_query():
    assert Uri.parse("?k1=v1&k2=v2") == Uri.from_query([("k1", "v1"), ("k2", "v2")])


def test_parse_bare_query_parts():
    expected = Uri.from_query([(None, "a"), ("a", "b"), (None, "b")])
    assert Uri.parse("?a&a=b&b") == expected
    assert Uri.parse("?a&a=b&b") == Uri.from_query({"$0": "a", "a": "b", "$1": "b"})


@pytest.mark.parametrize(
    ("text", "params"),
    [
        ("?", ((None, ""),)),
        ("?&", ((None, ""), (None, ""))),
        ("?&a", ((None, ""), (None, "a"))),
        ("?=", (("", ""),)),
        ("?a=b=c", (("a", "b=c"),)),
        ("?a%26b=c%3Dd", (("a&b", "c=d"),)),
        ("?x=/?:@", (("x", "/?:@"),)),
        ("?$0=x", (("$0", "x"),)),
    ],
)
def test_query_edge_cases(text, params):
    assert Uri.parse(text).query == Query(params)


def test_parse_fragment():
    assert Uri.parse("#frag") == Uri.from_fragment_identifier("frag")
    assert Uri.parse("#a%20b?c").fragment == "a b?c"


def test_empty_fragment_differs_from_no_fragment():
    assert Uri.parse("#").fragment == ""
    assert Uri.parse("").fragment is None


def test_parse_full_uri():
    expected = (
        Uri.from_scheme_name("scheme")
        .with_host_name("domain")
        .with_port_number(80)
        .with_path("/", "path")
        .with_query([(None, "query")])
        .with_fragment_identifier("fragment")
    )
    assert Uri.parse("scheme://domain:80/path?query#fragment") == expected


def test_parse_returns_components():
    components = parse("s://h/p?q#f")
    assert components.scheme == "s"
    assert components.authority == Authority(host=Host.from_name("h"))
    assert components.path.segments == ("p",)
    assert components.query == Query(((None, "q"),))
    assert components.fragment == "f"


@pytest.mark.parametrize(
    ("text", "error", "position"),
    [
        ("a b", UnexpectedCharacter, 1),
        ("sch^eme:", UnexpectedCharacter, 3),
        ("//[::1", UnterminatedBracket, 2),
        ("//u@[::1/x", UnterminatedBracket, 4),
        ("//[::1]x", UnexpectedCharacter, 7),
        ("//a@b@c", UnexpectedCharacter, 5),
        ("//a[b", UnexpectedCharacter, 3),
        ("//host:8x", UnexpectedCharacter, 8),
        ("//u[@h", UnexpectedCharacter, 3),
        ("/a[b]", UnexpectedCharacter, 2),
        ("?a#b#c", UnexpectedCharacter, 4),
        ("?a b", UnexpectedCharacter, 2),
        ("/a%zz", InvalidPercentEscape, 2),
        ("//h%2", InvalidPercentEscape, 3),
        ("//u%@h", InvalidPercentEscape, 3),
        ("?k=%", InvalidPercentEscape, 3),
        ("#%g0", InvalidPercentEscape, 1),
        ("/é", UnexpectedCharacter, 1),
        ("//[::1%zz]", InvalidPercentEscape, 6),
        ("//[fe80::1%2]", InvalidPercentEscape, 10),
        ("//[::1 ]", UnexpectedCharacter, 6),
    ],
)
def test_parse_errors(text, error, position):
    with pytest.raises(error) as excinfo:
        Uri.parse(text)
    assert excinfo.value.position == position
    assert excinfo.value.text == text
    assert f"position {position}" in str(excinfo.value)


def test_parse_error_is_a_value_error():
    with pytest.raises(ValueError):
        Uri.parse("a b")
    assert issubclass(UnterminatedBracket, UriParseError)


def test_parse_rejects_non_strings():
    with pytest.raises(TypeError, match="must be a string"):
        Uri.parse(None)  # type: ignore
    with pytest.raises(TypeError):
        UriParser(b"//h")  # type: ignore


def test_parse_authority_part():
    assert parse_authority("u:p@h:1") == Authority(UserInfo("u", "p"), Host.from_name("h"), 1)
    assert parse_authority("") == Authority()
    with pytest.raises(UnexpectedCharacter) as excinfo:
        parse_authority("h/p")
    assert excinfo.value.position == 1


def test_parse_path_part():
    assert parse_path("/x%2Fy").tokens == (SLASH, "x/y")
    with pytest.raises(UnexpectedCharacter) as excinfo:
        parse_path("a?b")
    assert excinfo.value.position == 1


def test_parse_query_part():
    assert parse_query("a=b&c") == Query((("a", "b"), (None, "c")))
    with pytest.raises(UnexpectedCharacter):
        parse_query("a#b")


def test_parse_fragment_part():
    assert parse_fragment("a%20b") == "a b"
    assert parse_fragment("") == ""
    with pytest.raises(UnexpectedCharacter):
        parse_fragment("a#b")


def test_parse_failure_is_logged(caplog):
    with caplog.at_level(logging.DEBUG, logger="uricore.parser"):
        with pytest.raises(UnexpectedCharacter):
            Uri.parse("a b")
    assert "failed to parse 'a b'" in caplog.text


def test_part_parse_failure_is_logged(caplog):
    with caplog.at_level(logging.DEBUG, logger="uricore.parser"):
        with pytest.raises(UnexpectedCharacter):
            parse_path("a?b")
    assert "failed to parse part 'a?b'" in caplog.text
