from __future__ import annotations

import pytest

from inkscan import Comparison, DEFAULT_POLICY, Policy, SpaceSkip, WordSlice


def test_default_policy():
    assert DEFAULT_POLICY.comparison is Comparison.EXACT
    assert DEFAULT_POLICY.space is SpaceSkip.IGNORE_SPACE
    assert DEFAULT_POLICY.word is WordSlice.WORDISH


def test_replace_keeps_other_fields():
    policy = DEFAULT_POLICY.replace(space=SpaceSkip.EXACT_SPACE)
    assert policy.space is SpaceSkip.EXACT_SPACE
    assert policy.comparison is Comparison.EXACT
    assert DEFAULT_POLICY.space is SpaceSkip.IGNORE_SPACE


def test_policy_is_hashable_and_comparable():
    assert Policy() == DEFAULT_POLICY
    assert hash(Policy()) == hash(DEFAULT_POLICY)
    assert Policy(comparison=Comparison.IGNORE_CASE) != DEFAULT_POLICY


def test_from_names():
    policy = Policy.from_names(comparison="Ignore-Case", space="fuzzy_space", word="non_space")
    assert policy.comparison is Comparison.IGNORE_CASE
    assert policy.space is SpaceSkip.FUZZY_SPACE
    assert policy.word is WordSlice.NON_SPACE


def test_from_names_accepts_members_and_callables():
    def two(src: str, pos: int, end: int) -> int:
        return min(pos + 2, end)

    policy = Policy.from_names(comparison=Comparison.NORMALIZED, word=two)
    assert policy.comparison is Comparison.NORMALIZED
    assert policy.word is two


def test_from_names_rejects_unknown_options():
    with pytest.raises(ValueError):
        Policy.from_names(space="sometimes")


def test_comparison_keys():
    assert not Comparison.EXACT.compare("a", "A")
    assert Comparison.IGNORE_CASE.compare("Straße", "STRASSE")
    assert Comparison.NORMALIZED.compare("\u00e9", "e\u0301")
    assert not Comparison.NORMALIZED.compare("\u00e9", "E\u0301")
    assert Comparison.IGNORE_CASE_NORMALIZED.compare("\u00c9", "e\u0301")


def test_space_skip_classes():
    assert SpaceSkip.IGNORE_SPACE.skippable("\n")
    assert SpaceSkip.FUZZY_SPACE.skippable("\t")
    assert not SpaceSkip.EXACT_SPACE.skippable(" ")
    assert SpaceSkip.IGNORE_NON_LINE.skippable("\t")
    assert not SpaceSkip.IGNORE_NON_LINE.skippable("\n")
    assert SpaceSkip.HOR_SPACE.skippable("\u3000")
    assert not SpaceSkip.HOR_SPACE.skippable("\r")
    assert SpaceSkip.NEWLINE.skippable("\u2028")
    assert not SpaceSkip.NEWLINE.skippable(" ")


def test_word_slices():
    assert WordSlice.WORDISH("foo-bar", 0, 7) == 3
    assert WordSlice.WORDISH("-bar", 0, 4) == 1
    assert WordSlice.NON_SPACE("foo-bar baz", 0, 11) == 7
    assert WordSlice.WORD("-bar", 0, 4) == 0
    assert WordSlice.WORD("foobar", 0, 3) == 3
