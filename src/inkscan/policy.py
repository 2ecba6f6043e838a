"""
Matching policies.

A `Policy` bundles the three independent axes that control how a `Cursor` reads its input:
- `Comparison`: how literal text is compared against the input.
- `SpaceSkip`: which whitespace is skipped before literals and values.
- `WordSlice`: what counts as a "word" for word-based scanners.

```
policy = Policy(comparison=Comparison.IGNORE_CASE, space=SpaceSkip.EXACT_SPACE)
policy = DEFAULT_POLICY.replace(word=WordSlice.NON_SPACE)
policy = Policy.from_names(comparison="ignore_case", space="fuzzy_space")
```
"""

from __future__ import annotations
from typing import Any, Callable, Final, Self, TypeAlias

from dataclasses import dataclass
import dataclasses
import enum
import re
import unicodedata

import inkscan.const as const


class Comparison(enum.Enum):
    EXACT = "exact"
    """Code point identical."""
    IGNORE_CASE = "ignore_case"
    """Equal after Unicode case folding."""
    NORMALIZED = "normalized"
    """Canonically equivalent. (NFC)"""
    IGNORE_CASE_NORMALIZED = "ignore_case_normalized"
    """Canonical caseless match."""

    def key(self, text: str) -> str:
        """The form two strings are reduced to before being compared."""
        match self:
            case Comparison.EXACT:
                return text
            case Comparison.IGNORE_CASE:
                return text.casefold()
            case Comparison.NORMALIZED:
                return unicodedata.normalize("NFC", text)
            case Comparison.IGNORE_CASE_NORMALIZED:
                return unicodedata.normalize("NFD", unicodedata.normalize("NFD", text).casefold())

    def compare(self, a: str, b: str) -> bool:
        return self.key(a) == self.key(b)


class SpaceSkip(enum.Enum):
    EXACT_SPACE = "exact_space"
    """Nothing is skipped. Whitespace in literals must match exactly."""
    IGNORE_SPACE = "ignore_space"
    """All whitespace is skipped."""
    FUZZY_SPACE = "fuzzy_space"
    """Leading whitespace is skipped. A whitespace run in a literal matches any (non-empty) whitespace run."""
    IGNORE_NON_LINE = "ignore_non_line"
    """All whitespace except line terminators is skipped."""
    HOR_SPACE = "hor_space"
    """Only horizontal whitespace (spaces, tabs) is skipped."""
    NEWLINE = "newline"
    """Only line terminators are skipped."""

    def skippable(self, char: str) -> bool:
        """Whether `char` is skipped before literals and values."""
        match self:
            case SpaceSkip.EXACT_SPACE:
                return False
            case SpaceSkip.IGNORE_SPACE | SpaceSkip.FUZZY_SPACE:
                return char.isspace()
            case SpaceSkip.IGNORE_NON_LINE:
                return char.isspace() and char not in const.LINE_TERMINATORS
            case SpaceSkip.HOR_SPACE:
                return char in const.HORIZONTAL_SPACES
            case SpaceSkip.NEWLINE:
                return char in const.LINE_TERMINATORS


WordSliceFn: TypeAlias = Callable[[str, int, int], int]
"""
A custom word slicing rule.

Called with `(src, pos, end)`, returns the end position of the word starting at `pos`. Returning `pos` means there's no word.
"""

class WordSlice(enum.Enum):
    WORDISH = "wordish"
    """A run of word characters, or a single non-whitespace character."""
    NON_SPACE = "non_space"
    """A run of non-whitespace characters."""
    WORD = "word"
    """A run of word characters."""

    @property
    def pattern(self) -> re.Pattern[str]:
        match self:
            case WordSlice.WORDISH:
                return const.WORDISH_RE
            case WordSlice.NON_SPACE:
                return const.NON_SPACE_RE
            case WordSlice.WORD:
                return const.WORD_RE

    def __call__(self, src: str, pos: int, end: int) -> int:
        m = self.pattern.match(src, pos, end)
        return pos if m is None else m.end()


def _member(enum_type: type[enum.Enum], name: Any) -> Any:
    if isinstance(name, enum_type):
        return name
    if isinstance(name, str):
        normalized = name.strip().lower().replace("-", "_")
        for member in enum_type:
            if member.value == normalized:
                return member
    raise ValueError(f"Unknown {enum_type.__name__} option: {name!r}")


@dataclass(frozen=True)
class Policy:
    """
    Immutable matching configuration. Selected once per scan and shared by all the cursors of that scan.
    """
    comparison: Comparison = Comparison.EXACT
    space: SpaceSkip = SpaceSkip.IGNORE_SPACE
    word: WordSlice | WordSliceFn = WordSlice.WORDISH

    def replace(self, **changes: Any) -> Self:
        """Creates a copy of this policy with the given fields changed."""
        return dataclasses.replace(self, **changes)

    @classmethod
    def from_names(
        cls,
        *,
        comparison: Comparison | str = Comparison.EXACT,
        space: SpaceSkip | str = SpaceSkip.IGNORE_SPACE,
        word: WordSlice | WordSliceFn | str = WordSlice.WORDISH,
    ) -> Self:
        """
        Builds a policy from option names. (Case insensitive, `-` and `_` are interchangeable.)

        Useful when the policy comes from a command line flag or a config file.
        """
        return cls(
            comparison=_member(Comparison, comparison),
            space=_member(SpaceSkip, space),
            word=word if callable(word) else _member(WordSlice, word),
        )

DEFAULT_POLICY: Final[Policy] = Policy()
