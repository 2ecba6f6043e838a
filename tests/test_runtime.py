from __future__ import annotations

import pytest

from inkscan import (
    Binding, Cursor, Policy, Remainder, Rule, ScanErrorKind, SpaceSkip, scan, scanner_for,
    exact_width, max_width, min_width, regex, re_str, scan_a, hex, octal, space, word,
)


def test_width_scanners_compose():
    rule = Rule([
        Binding("a", exact_width(3, int)),
        Binding("b", max_width(2, hex())),
        Binding("c", min_width(2, octal())),
        Remainder("rest"),
    ])
    r = scan("0123456789", rule)
    assert r
    assert r.value == {"a": 12, "b": 0x34, "c": 0o567, "rest": "89"}


def test_exact_width_not_long_enough():
    r = exact_width(5, int)(Cursor.start("123"))
    assert not r
    assert r.kind is ScanErrorKind.SCANNER_FAILURE
    assert "not long enough" in r.msg


def test_exact_width_must_consume_everything():
    r = exact_width(4, int)(Cursor.start("12ab"))
    assert not r
    assert "did not consume enough" in r.msg
    r = exact_width(2)(Cursor.start("12ab"))
    assert r
    assert r.value == "12"
    assert r.cursor.pos == 2


def test_exact_width_restores_the_bound():
    r = exact_width(2, int)(Cursor.start("12345"))
    assert r.cursor.end == 5
    assert r.cursor.remaining() == "345"


def test_width_is_counted_after_skipped_space():
    rule = Rule(["Thompson", Binding("j", exact_width(2, int)), Binding("k", int)])
    assert scan("Thompson 56789", rule).value == {"j": 56, "k": 789}
    r = max_width(2)(Cursor.start("  abcd"))
    assert r.value == "ab"
    assert r.pos == (2, 4)
    r = min_width(3, word())(Cursor.start("   abc"))
    assert r.value == "abc"


def test_max_width_truncates():
    r = max_width(3, space())(Cursor.start("  \t \n x", Policy(space=SpaceSkip.EXACT_SPACE)))
    assert r
    assert r.value == "  \t"
    assert r.cursor.pos == 3
    r = max_width(2, int)(Cursor.start("12345"))
    assert r.value == 12
    assert r.cursor.remaining() == "345"


def test_min_width():
    r = min_width(3, word())(Cursor.start("ab cd"))
    assert not r
    assert "too short" in r.msg
    r = min_width(3, word())(Cursor.start("ab"))
    assert not r
    assert "more characters" in r.msg
    r = min_width(3, word())(Cursor.start("abcd"))
    assert r.value == "abcd"


def test_negative_width():
    with pytest.raises(ValueError):
        exact_width(-1)


def test_regex_whole_match():
    rule = Rule([Binding("n", regex(r"[0-9]{3}[0-9a-fA-F]{0,2}[0-7]{2,}")), Remainder("rest")])
    r = scan("0123456789", rule)
    assert r.value == {"n": "01234567", "rest": "89"}


def test_regex_named_group():
    r = regex(r"v(?P<scan>\d+)\.", int)(Cursor.start("  v12. x"))
    assert r
    assert r.value == 12
    assert r.start == 3
    assert r.cursor.pos == 6


def test_regex_first_group():
    r = regex(r"<(\w+)>")(Cursor.start("<tag>rest"))
    assert r.value == "tag"
    assert r.cursor.remaining() == "rest"


def test_regex_failures():
    r = regex(r"\d+")(Cursor.start("abc"))
    assert not r
    assert r.kind is ScanErrorKind.SCANNER_FAILURE
    r = regex(r"\w+", int)(Cursor.start("12ab"))
    assert not r
    r = regex(r"a(b)?")(Cursor.start("ac"))
    assert not r


def test_re_str_and_scan_a():
    assert re_str(r"\w+")(Cursor.start("ab cd")).value == "ab"
    assert scan_a(int) is scanner_for(int)
    assert scan_a(list[int])(Cursor.start("[1, 2]")).value == [1, 2]
