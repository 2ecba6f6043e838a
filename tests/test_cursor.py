from __future__ import annotations

import pytest

from inkscan import Comparison, Cursor, Policy, ScanErrorKind, SpaceSkip, WordSlice


EXACT_SPACE = Policy(space=SpaceSkip.EXACT_SPACE)
FUZZY_SPACE = Policy(space=SpaceSkip.FUZZY_SPACE)
IGNORE_CASE = Policy(comparison=Comparison.IGNORE_CASE)
NORMALIZED = Policy(comparison=Comparison.NORMALIZED)


def test_advance_and_remaining_are_pure():
    cur = Cursor.start("hello world")
    a = cur.advance_to(6)
    b = cur.advance_to(6)
    assert a.remaining() == "world"
    assert b.remaining() == "world"
    assert a == b
    assert cur.pos == 0
    assert cur.remaining() == "hello world"


def test_advance_is_validated():
    cur = Cursor.start("abc").advance_to(2)
    with pytest.raises(ValueError):
        cur.advance_to(1)
    with pytest.raises(ValueError):
        cur.advance_to(4)


def test_invalid_cursor_range():
    with pytest.raises(ValueError):
        Cursor("abc", 4)
    with pytest.raises(ValueError):
        Cursor("abc", 2, end=1)


def test_skip_space():
    assert Cursor.start("  \t x").skip_space().pos == 4
    assert Cursor.start("  x", EXACT_SPACE).skip_space().pos == 0
    assert Cursor.start(" \n x", Policy(space=SpaceSkip.IGNORE_NON_LINE)).skip_space().pos == 1
    assert Cursor.start("\n\n x", Policy(space=SpaceSkip.NEWLINE)).skip_space().pos == 2
    assert Cursor.start(" \t\nx", Policy(space=SpaceSkip.HOR_SPACE)).skip_space().pos == 2


def test_remaining_does_not_skip():
    cur = Cursor.start("a   b").advance_to(1)
    assert cur.remaining() == "   b"


def test_literal_is_a_prefix_match():
    cur = Cursor.start("  hello world")
    after = cur.literal("hello")
    assert after is not None
    assert after.pos == 7
    assert after.remaining() == " world"
    assert cur.literal("world") is None
    assert cur.peek_literal("hel")
    assert not cur.peek_literal("help")


def test_match_literal_failure():
    r = Cursor.start("abc").match_literal("abd")
    assert not r
    assert r.kind is ScanErrorKind.LITERAL_MISMATCH
    assert r.pos == 0
    assert "'abd'" in r.msg


def test_match_literal_failure_position_is_at_mismatching_run():
    r = Cursor.start("ab ce").match_literal("ab cd")
    assert not r
    assert r.pos == 3


def test_literal_spaces_ignore_space():
    assert Cursor.start("a   b").literal("a b").pos == 5
    assert Cursor.start("ab").literal("a b").pos == 2


def test_literal_spaces_exact_space():
    assert Cursor.start("a b", EXACT_SPACE).literal("a b").pos == 3
    assert Cursor.start("a  b", EXACT_SPACE).literal("a b") is None
    assert Cursor.start(" a", EXACT_SPACE).literal("a") is None


def test_literal_spaces_fuzzy_space():
    assert Cursor.start("a \t\n b", FUZZY_SPACE).literal("a b").pos == 6
    assert Cursor.start("a b", FUZZY_SPACE).literal("a \n b").pos == 3
    assert Cursor.start("ab", FUZZY_SPACE).literal("a b") is None
    assert Cursor.start("  a", FUZZY_SPACE).literal("a").pos == 3


def test_literal_line_breaks_ignore_non_line():
    policy = Policy(space=SpaceSkip.IGNORE_NON_LINE)
    assert Cursor.start("a \nb", policy).literal("a\nb").pos == 4
    assert Cursor.start("ab", policy).literal("a\nb") is None


def test_literal_ignore_case():
    assert Cursor.start("yes", IGNORE_CASE).literal("YES").pos == 3
    assert Cursor.start("yes").literal("YES") is None
    assert Cursor.start("STRASSE!", IGNORE_CASE).literal("straße").pos == 7


def test_literal_normalized():
    assert Cursor.start("e\u0301t\u00e9", NORMALIZED).literal("\u00e9t\u00e9").pos == 4
    assert Cursor.start("\u00e9", NORMALIZED).literal("e\u0301").pos == 1
    assert Cursor.start("\u00e9").literal("e\u0301") is None


def test_literal_does_not_split_combining_sequences():
    assert Cursor.start("e\u0301", NORMALIZED).literal("e") is None
    assert Cursor.start("e\u0301").literal("e").pos == 1


def test_literal_ignore_case_normalized():
    policy = Policy(comparison=Comparison.IGNORE_CASE_NORMALIZED)
    assert Cursor.start("E\u0301TE\u0301", policy).literal("\u00e9t\u00e9").pos == 5


def test_slice_word():
    r = Cursor.start("  foo-bar").slice_word()
    assert r is not None
    word, after = r
    assert word == "foo"
    assert after.pos == 5
    assert Cursor.start("   ").slice_word() is None


def test_slice_word_policies():
    word, _ = Cursor.start("foo-bar baz", Policy(word=WordSlice.NON_SPACE)).slice_word()
    assert word == "foo-bar"
    word, _ = Cursor.start("-bar", Policy(word=WordSlice.WORDISH)).slice_word()
    assert word == "-"
    assert Cursor.start("-bar", Policy(word=WordSlice.WORD)).slice_word() is None


def test_slice_word_custom():
    policy = Policy(word=lambda src, pos, end: min(pos + 2, end))
    word, after = Cursor.start("abcdef", policy).slice_word()
    assert word == "ab"
    assert after.pos == 2


def test_bounded_view():
    cur = Cursor.start("abcdef").advance_to(1).bounded(3)
    assert cur.remaining() == "bcd"
    assert cur.end == 4
    assert cur.literal("bcde") is None
    assert cur.unbounded().remaining() == "bcdef"
    assert cur.bounded(10).end == 4


def test_at_end():
    assert Cursor.start("x  ").advance_to(1).at_end()
    assert not Cursor.start("x  ", EXACT_SPACE).advance_to(1).at_end()
    assert Cursor.start("").at_end()


def test_take_and_peek():
    cur = Cursor.start("abc")
    assert cur.peek(2) == "ab"
    assert cur.peek(4) is None
    text, after = cur.take(2)
    assert text == "ab"
    assert after.pos == 2
    assert after.take(2) is None


def test_fail_and_scanned():
    cur = Cursor.start("abc").advance_to(1)
    failure = cur.fail(expected="a digit")
    assert not failure
    assert failure.pos == 1
    assert failure.kind is ScanErrorKind.SCANNER_FAILURE
    assert failure.msg == "Expected a digit, found 'bc'."
    scanned = cur.advance_to(3).scanned("bc", 1)
    assert scanned
    assert scanned.pos == (1, 3)
    assert scanned.value == "bc"
    assert scanned.cursor.pos == 3


def test_with_policy():
    cur = Cursor.start("  YES").with_policy(IGNORE_CASE)
    assert cur.policy is IGNORE_CASE
    assert cur.literal("yes").pos == 5


def test_cursor_at_end_is_truthy():
    cur = Cursor.start("ab").advance_to(2)
    assert cur
    assert cur.width() == 0
    assert Cursor.start("")
    assert Cursor.start("abc").advance_to(1).width() == 2
    assert Cursor.start("abcdef").bounded(2).width() == 2
