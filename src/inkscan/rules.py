"""
The rule matching engine.

A rule is a sequence of terms, matched left to right. A rule set tries its rules in order, each from the start of the input, and the first rule that fully matches wins.

```
rules = RuleSet([
    Rule(["move", Binding("x", int), ",", Binding("y", int)], action=lambda x, y: ("move", x, y)),
    Rule(["say", Remainder("text")], action=lambda text: ("say", text.strip())),
])
if r := rules.scan("move 3, 4"):
    print(r.value) # ("move", 3, 4)
else:
    raise r.error()
```

Plain strings can be used in place of `Literal` terms.
"""

from __future__ import annotations
from typing import Any, Callable, Final, Generic, Iterable, Sequence, TypeVar

import logging

from inkscan.main import (
    Cursor, Scanned, ScanFailure, ScanErrorKind, resolve_scanner, CONVERSION_ERRORS,
)

from inkscan.policy import Policy

logger = logging.getLogger(__name__)

_T = TypeVar("_T")

DISCARD: Final = "_"
"""Binding name that discards the value."""


class Term:
    """Base class of the terms of a rule."""
    def match(self, cur: Cursor, bindings: dict[str, Any]) -> Cursor | ScanFailure:
        """
        Matches the term at `cur`, storing its bound values in `bindings`.

        Returns the cursor after the term, or a `ScanFailure`.
        """
        raise NotImplementedError

    def names(self) -> list[str]:
        """The names this term binds when it succeeds."""
        return []

TermLike = Term | str

def convert_term(term: TermLike) -> Term:
    """Converts strings into `Literal`s."""
    if isinstance(term, str):
        return Literal(term)
    if isinstance(term, Term):
        return term
    raise TypeError(f"Expected a term or a string, got {term!r}.")

def convert_terms(terms: TermLike | Iterable[TermLike]) -> list[Term]:
    """Converts a term, or an iterable of terms, into a list of terms."""
    if isinstance(terms, (str, Term)):
        return [convert_term(terms)]
    return [convert_term(t) for t in terms]

def match_terms(terms: Sequence[Term], cur: Cursor, bindings: dict[str, Any]) -> Cursor | ScanFailure:
    """Matches the terms left to right. Stops at the first failure."""
    for term in terms:
        r = term.match(cur, bindings)
        if isinstance(r, ScanFailure):
            return r
        cur = r
    return cur


class Literal(Term):
    """Literal text, matched according to the policy of the cursor."""
    def __init__(self, text: str) -> None:
        self.text: Final[str] = text

    def match(self, cur: Cursor, bindings: dict[str, Any]) -> Cursor | ScanFailure:
        return cur.match_literal(self.text)

    def __repr__(self) -> str:
        return f"Literal({self.text!r})"

class Binding(Term):
    """
    Scans a value and binds it to a name.

    `scanner`: A scanner, or a type with a static scanner.
    `name`: `None` or `"_"` discards the value.
    """
    def __init__(self, name: str | None, scanner: Any) -> None:
        self.name: Final[str | None] = name
        self.scanner: Final = resolve_scanner(scanner)

    @property
    def binds(self) -> bool:
        return self.name is not None and self.name != DISCARD

    def match(self, cur: Cursor, bindings: dict[str, Any]) -> Cursor | ScanFailure:
        r = self.scanner(cur)
        if isinstance(r, ScanFailure):
            return r
        if self.binds:
            bindings[self.name] = r.value
        return r.cursor

    def names(self) -> list[str]:
        return [self.name] if self.binds else []

    def __repr__(self) -> str:
        return f"Binding({self.name!r}, {self.scanner!r})"

class Anchor(Term):
    """Binds the current cursor without consuming anything."""
    def __init__(self, name: str) -> None:
        self.name: Final[str] = name

    def match(self, cur: Cursor, bindings: dict[str, Any]) -> Cursor | ScanFailure:
        bindings[self.name] = cur
        return cur

    def names(self) -> list[str]:
        return [self.name]

    def __repr__(self) -> str:
        return f"Anchor({self.name!r})"

class End(Term):
    """Matches the end of the input. Trailing skippable whitespace is allowed."""
    def match(self, cur: Cursor, bindings: dict[str, Any]) -> Cursor | ScanFailure:
        cur = cur.skip_space()
        if not cur.is_eof():
            return cur.fail(kind=ScanErrorKind.EXPECTED_END, expected="end of input")
        return cur

    def __repr__(self) -> str:
        return "End()"

class Remainder(Term):
    """
    Binds all of the remaining input, possibly empty. No whitespace is skipped.

    Always succeeds. Must be the last term of a rule.
    """
    def __init__(self, name: str | None) -> None:
        self.name: Final[str | None] = name

    def match(self, cur: Cursor, bindings: dict[str, Any]) -> Cursor | ScanFailure:
        if self.name is not None and self.name != DISCARD:
            bindings[self.name] = cur.remaining()
        return cur.advance_to(cur.end)

    def names(self) -> list[str]:
        return [] if self.name is None or self.name == DISCARD else [self.name]

    def __repr__(self) -> str:
        return f"Remainder({self.name!r})"


def strict_set(values: Iterable[_T]) -> set[_T]:
    """Collects into a set. Fails on duplicates."""
    values = list(values)
    result = set(values)
    if len(result) != len(values):
        raise ValueError("duplicate values in set")
    return result

def strict_dict(pairs: Iterable[tuple[Any, Any]]) -> dict[Any, Any]:
    """Collects key-value pairs into a dict. Fails on duplicate keys."""
    result: dict[Any, Any] = {}
    for key, value in pairs:
        if key in result:
            raise ValueError(f"duplicate key {key!r}")
        result[key] = value
    return result

class Repetition(Term):
    """
    Repeats the inner terms, optionally separated by the separator terms.

    The values bound inside the group are collected per name into lists, which are converted using `collect`.

    `min`: Fails if the inner terms matched fewer times than this.
    `max`: Stops after this many repetitions. (`None` for no limit.)
    `collect`: Converts the list of values of each name. (`list`, `set`, `dict`, `strict_set`...)

    ```
    # "nums: 1, 2, 3" -> {"nums": [1, 2, 3]}
    Rule(["nums:", Repetition(Binding("nums", int), separator=",", min=1)])
    ```
    """
    def __init__(
        self,
        terms: TermLike | Iterable[TermLike],
        separator: TermLike | Iterable[TermLike] = (),
        min: int = 0,
        max: int | None = None,
        collect: Callable[[list[Any]], Any] = list,
    ) -> None:
        if min < 0:
            raise ValueError("The minimum repetition count can't be negative.")
        if max is not None and max < min:
            raise ValueError(f"The maximum repetition count ({max}) is less than the minimum ({min}).")
        self.terms: Final[list[Term]] = convert_terms(terms)
        self.separator: Final[list[Term]] = convert_terms(separator)
        for term in self.terms + self.separator:
            check_no_remainder(term)
        self.min: Final[int] = min
        self.max: Final[int | None] = max
        self.collect: Final = collect

    def names(self) -> list[str]:
        return [name for term in self.terms for name in term.names()]

    def match(self, cur: Cursor, bindings: dict[str, Any]) -> Cursor | ScanFailure:
        names = self.names()
        collected: dict[str, list[Any]] = {name: [] for name in names}
        count = 0
        failure: ScanFailure | None = None
        while self.max is None or count < self.max:
            attempt = cur
            if count > 0 and self.separator:
                r = match_terms(self.separator, cur, {})
                if isinstance(r, ScanFailure):
                    failure = r
                    break
                attempt = r
            inner: dict[str, Any] = {}
            r = match_terms(self.terms, attempt, inner)
            if isinstance(r, ScanFailure):
                failure = r
                break
            for name in names:
                collected[name].append(inner[name])
            count += 1
            progressed = r.pos > cur.pos
            cur = r
            if not progressed:
                break
        if count < self.min:
            if failure is None:
                return cur.fail(f"Expected at least {self.min} repetitions, found {count}.", kind=ScanErrorKind.REPETITION_BELOW_MINIMUM)
            return ScanFailure(
                cur.src, failure.pos,
                f"Expected at least {self.min} repetitions, found {count}. ({failure.msg})",
                failure.notes,
                kind=ScanErrorKind.REPETITION_BELOW_MINIMUM,
                expected=failure.expected,
                cause=failure.cause,
            )
        for name, values in collected.items():
            try:
                bindings[name] = self.collect(values)
            except CONVERSION_ERRORS as e:
                return cur.fail(f"Couldn't collect the values of {name!r}: {e}", cause=e)
        return cur

    def __repr__(self) -> str:
        return f"Repetition({self.terms!r}, {self.separator!r}, min={self.min}, max={self.max})"

def check_no_remainder(term: Term) -> None:
    if isinstance(term, Remainder):
        raise ValueError("A remainder can't be used inside a repetition.")


class Rule:
    """
    A sequence of terms, and the action that's called with the bound values when all of them match.

    With no action, the value of the match is the dict of bindings.
    """
    def __init__(self, terms: TermLike | Iterable[TermLike], action: Callable[..., Any] | None = None, name: str | None = None) -> None:
        self.terms: Final[list[Term]] = convert_terms(terms)
        for term in self.terms[:-1]:
            if isinstance(term, Remainder):
                raise ValueError("A remainder must be the last term of a rule.")
        self.action: Final = action
        self.name: Final[str | None] = name

    def names(self) -> list[str]:
        return [name for term in self.terms for name in term.names()]

    def __repr__(self) -> str:
        return f"Rule({self.terms!r}, name={self.name!r})"

class Match(Generic[_T]):
    """
    The result of a successful scan. Truthy.

    `value`: The result of the action of the matching rule.
    `bindings`: The bound values.
    `rule`: The index of the matching rule.
    """
    def __init__(self, value: _T, bindings: dict[str, Any], rule: int, start: int, cursor: Cursor) -> None:
        self.value: Final[_T] = value
        self.bindings: Final[dict[str, Any]] = bindings
        self.rule: Final[int] = rule
        self.start: Final[int] = start
        self.cursor: Final[Cursor] = cursor

    @property
    def pos(self) -> tuple[int, int]:
        return (self.start, self.cursor.pos)

    @property
    def remaining(self) -> str:
        """The input that wasn't consumed."""
        return self.cursor.remaining()

    def __getitem__(self, name: str) -> Any:
        return self.bindings[name]

    def __bool__(self) -> bool:
        return True

    def __repr__(self) -> str:
        return f"<match rule {self.rule} {self.start}..{self.cursor.pos}> {{{self.value!r}}}"

class RuleSet:
    """
    An ordered sequence of rules. The first rule that fully matches wins.

    Can be used as a scanner.
    """
    def __init__(self, rules: Iterable[Rule | TermLike | Iterable[TermLike]]) -> None:
        self.rules: Final[list[Rule]] = [rule if isinstance(rule, Rule) else Rule(rule) for rule in rules]
        if not self.rules:
            raise ValueError("A rule set needs at least one rule.")

    def _describe(self, i: int) -> str:
        name = self.rules[i].name
        return f"{i}" if name is None else f"{i} ({name})"

    def scan_cursor(self, cur: Cursor) -> Match[Any] | ScanFailure:
        """Tries the rules in order, each starting at `cur`."""
        reasons: list[ScanFailure] = []
        for i, rule in enumerate(self.rules):
            logger.debug("Trying rule %s at position %d.", self._describe(i), cur.pos)
            bindings: dict[str, Any] = {}
            r = match_terms(rule.terms, cur, bindings)
            if not isinstance(r, ScanFailure):
                logger.debug("Rule %s matched %d..%d.", self._describe(i), cur.pos, r.pos)
                value = bindings if rule.action is None else rule.action(**bindings)
                return Match(value, bindings, i, cur.pos, r)
            logger.debug("Rule %s failed at position %d: %s", self._describe(i), r.pos, r.msg)
            reasons.append(r)
        furthest = max(reason.pos for reason in reasons)
        return ScanFailure(
            cur.src, furthest,
            f"No rule matched. (Tried {len(reasons)} rules.)",
            kind=ScanErrorKind.NO_RULE_MATCHED,
            reasons=reasons,
        )

    def scan(self, text: str, policy: Policy | None = None) -> Match[Any] | ScanFailure:
        """Scans `text` from its start."""
        return self.scan_cursor(Cursor.start(text, policy))

    def __call__(self, cur: Cursor) -> Scanned[Any] | ScanFailure:
        r = self.scan_cursor(cur)
        if isinstance(r, ScanFailure):
            return r
        # the value starts after the whitespace skipped by its first term
        return Scanned(r.value, r.cursor, min(cur.space_end(), r.cursor.pos))


RuleSetLike = RuleSet | Rule | Iterable[Rule | TermLike | Iterable[TermLike]]

def convert_rules(rules: RuleSetLike) -> RuleSet:
    if isinstance(rules, RuleSet):
        return rules
    if isinstance(rules, Rule):
        return RuleSet([rules])
    return RuleSet(rules)

def scan(text: str, rules: RuleSetLike, policy: Policy | None = None) -> Match[Any] | ScanFailure:
    """
    Scans `text` using the rules. Returns a `Match` (truthy) or a `ScanFailure` (falsy).

    `rules`: A `RuleSet`, a single `Rule`, or an iterable of rules. (A list of terms is a list of single term rules, wrap it in `Rule`.)
    `policy`: `DEFAULT_POLICY` if not given.
    """
    return convert_rules(rules).scan(text, policy)

def scan_or_raise(text: str, rules: RuleSetLike, policy: Policy | None = None) -> Match[Any]:
    """Same as `scan()`, but raises a `ScanError` on failure."""
    r = scan(text, rules, policy)
    if isinstance(r, ScanFailure):
        raise r.error()
    return r
