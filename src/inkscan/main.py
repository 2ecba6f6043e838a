"""
The implementations of the main classes.
"""

from __future__ import annotations
from typing import Any, Callable, Final, Generic, Literal, Protocol, Self, Sequence, TypeVar
from types import UnionType

import enum
import re
import typing
import unicodedata

import inkscan.const as const
from inkscan.policy import Comparison, Policy, SpaceSkip, DEFAULT_POLICY


_T = TypeVar("_T")
_U = TypeVar("_U")
_CT = TypeVar("_CT", covariant=True)



class PosNote:
    """
    Positioned note.

    For `ScanError`s and `ScanFailure`s.
    """
    def __init__(self, pos: int, msg: str | None = None) -> None:
        self.pos: int = pos
        self.msg: str | None = msg

    def __repr__(self) -> str:
        return f"PosNote({self.pos}, {self.msg!r})"

class ScanErrorKind(enum.Enum):
    LITERAL_MISMATCH = "literal mismatch"
    """Expected literal text wasn't found at the (whitespace skipped) current position."""
    SCANNER_FAILURE = "scanner failure"
    """A scanner couldn't produce a value. (No eligible slice, or the slice was rejected by the conversion.)"""
    REPETITION_BELOW_MINIMUM = "repetition below minimum"
    """A repetition didn't repeat enough times."""
    EXPECTED_END = "expected end"
    """Input remained where the end of input was expected."""
    NO_RULE_MATCHED = "no rule matched"
    """Every rule of a rule set failed."""

class ScanFailure:
    """
    When returned from a scanner, indicates that it has failed. Can be converted into a `ScanError`.

    ```
    r = scanner(cur)
    if r:
        ... # `r` is a `Scanned` or `Match` object
    else:
        ... # `r` is a `ScanFailure` object
    ```
    """

    def __init__(
        self,
        src: str,
        pos: int,
        msg: str | None = None,
        notes: Sequence[PosNote] = (),
        *,
        kind: ScanErrorKind = ScanErrorKind.SCANNER_FAILURE,
        expected: str | None = None,
        cause: BaseException | None = None,
        reasons: Sequence[ScanFailure] = (),
    ) -> None:
        """
        `src`: The string that was being scanned.
        `pos`: The position of the failure.
        `msg`: The reason for the failure. Generated from `expected` if not given.
        `notes`: Positioned notes to add to the error. Should be in reverse order. That is, the note that's last in the list will be shown above the other notes.
        `kind`: What went wrong.
        `expected`: A description of what was expected at `pos`. (`"an integer"`, `"literal ':'"`)
        `cause`: The underlying exception, if a conversion failed.
        `reasons`: The per-rule failures, for `NO_RULE_MATCHED`.
        """
        self.src: str = src
        self.pos: int = pos
        self.kind: ScanErrorKind = kind
        self.expected: str | None = expected
        self.cause: BaseException | None = cause
        self.reasons: list[ScanFailure] = list(reasons)
        self.msg: str | None = msg if msg is not None else self._default_msg()
        self.notes: list[PosNote] = list(notes)
        """Should be in reverse order. That is, the note that's last in the list will be shown above the other notes."""

    @property
    def found(self) -> str:
        """A short excerpt of the input at the failure position."""
        if self.pos >= len(self.src):
            return "end of input"
        excerpt = self.src[self.pos:self.pos+20]
        return repr(excerpt if len(self.src) - self.pos <= 20 else excerpt + "...")

    def _default_msg(self) -> str | None:
        if self.expected is None:
            return None
        msg = f"Expected {self.expected}, found {self.found}."
        if self.cause is not None and str(self.cause):
            msg += f" ({self.cause})"
        return msg

    def prepend_pos_note(self, pos: int, msg: str | None = None) -> Self:
        """Appends a note to the top of the other notes."""
        self.notes.append(PosNote(pos, msg))
        return self

    def error(self) -> ScanError:
        """Converts this to a ScanError."""
        return ScanError(self.src, self.pos, self.msg, self.notes, kind=self.kind, failure=self)

    def __bool__(self) -> Literal[False]:
        return False

    def __repr__(self) -> str:
        return f"<{self.kind.value} at {self.pos}: {self.msg}>"

class ScanError(Exception):
    """
    The exception that's raised when a caller chooses to fail loudly.

    Never raised by the scanning engine itself, see `ScanFailure.error()`.
    """

    def __init__(
        self,
        src: str,
        pos: int,
        msg: str | None = None,
        notes: Sequence[PosNote] = (),
        *,
        kind: ScanErrorKind = ScanErrorKind.SCANNER_FAILURE,
        failure: ScanFailure | None = None,
    ) -> None:
        """
        `src`: The string that was being scanned.
        `pos`: The position of the error.
        `msg`: The reason for the error.
        `notes`: Positioned notes to add to the error. Should be in reverse order. That is, the note that's last in the list will be shown above the other notes.
        """
        if msg is None:
            super().__init__()
        else:
            super().__init__(msg)
        self.src: str = src
        self.pos: int = pos
        self.kind: ScanErrorKind = kind
        self.failure: ScanFailure | None = failure
        self.append_pos_note(pos)
        for note in reversed(notes):
            self.append_existing_note(note)
        if failure is not None:
            for i, reason in enumerate(failure.reasons):
                self.append_pos_note(reason.pos, f"Rule {i}: {reason.msg}")

    def append_pos_note(self, pos: int, msg: str | None = None) -> Self:
        note: list[str] = [] if msg is None else [msg]

        pos = min(pos, len(self.src))
        # should still work with CRLF
        line = self.src.count("\n", 0, pos) + 1
        column = pos - self.src.rfind("\n", 0, pos) # magically works even when it returns -1
        note.append(f"At position {pos} (line {line}, column {column})")

        lines = self.src.splitlines()
        if len(lines) > line-1:
            line_str = lines[line-1]
            if len(line_str) >= column:
                if column <= 20:
                    note.append(f"{line_str[:40]}\n{' '*(column-1)}^")
                else:
                    note.append(f"{line_str[(column-20):(column+20)]}\n{' '*20}^")
        self.add_note("\n".join(note))
        return self

    def append_existing_note(self, note: PosNote) -> Self:
        return self.append_pos_note(note.pos, note.msg)

class Scanned(Generic[_CT]):
    """
    When returned from a scanner, indicates that it has succeeded.

    ```
    r = scanner(cur)
    if r:
        value, cur = r.value, r.cursor
    else:
        ... # failed
    ```

    When used for typing: `Scanned[ValueType]`
    """
    def __init__(self, value: _CT, cursor: Cursor, start: int) -> None:
        self.value: Final[_CT] = value
        """The scanned value."""
        self.cursor: Final[Cursor] = cursor
        """The cursor positioned right after the scanned value."""
        self.start: Final[int] = start
        """Where the scanned value begins. (After any skipped whitespace.)"""

    @property
    def pos(self) -> tuple[int, int]:
        return (self.start, self.cursor.pos)

    def map(self, fn: Callable[[_CT], _U]) -> Scanned[_U]:
        """Creates a copy of this result with `fn` applied to the value."""
        return Scanned(fn(self.value), self.cursor, self.start)

    def __bool__(self) -> Literal[True]:
        return True

    def __repr__(self) -> str:
        return f"<scanned {self.start}..{self.cursor.pos}> {{{self.value!r}}}"



class Cursor:
    """
    An immutable position in a string, along with the `Policy` used to read it.

    Every operation returns a new cursor. A cursor never copies the input, and the input must outlive it.

    ```
    cur = Cursor.start("x = 10")
    if (cur := cur.literal("x =")) is not None:
        word, cur = cur.slice_word()
    ```
    """
    def __init__(self, src: str, pos: int = 0, policy: Policy = DEFAULT_POLICY, end: int | None = None) -> None:
        if end is None:
            end = len(src)
        if not 0 <= pos <= end <= len(src):
            raise ValueError(f"Invalid cursor range {pos}..{end} for input of length {len(src)}.")
        self.src: Final[str] = src
        """The string that's being scanned."""
        self.pos: Final[int] = pos
        """The current position."""
        self.policy: Final[Policy] = policy
        """The active matching policy."""
        self.end: Final[int] = end
        """The end of the visible input. Equal to `len(src)` unless the cursor is bounded."""

    @classmethod
    def start(cls, src: str, policy: Policy | None = None) -> Self:
        """Creates a fresh cursor at the start of `src`."""
        return cls(src, 0, DEFAULT_POLICY if policy is None else policy)

    def _at(self, pos: int) -> Cursor:
        return Cursor(self.src, pos, self.policy, self.end)

    def __bool__(self) -> Literal[True]:
        return True

    def width(self) -> int:
        """The number of characters left. No whitespace is skipped."""
        return self.end - self.pos

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Cursor):
            return NotImplemented
        return (self.src, self.pos, self.end, self.policy) == (other.src, other.pos, other.end, other.policy)

    def __hash__(self) -> int:
        return hash((self.src, self.pos, self.end, self.policy))

    def __repr__(self) -> str:
        return f"<Cursor {self.pos}/{self.end} {self.remaining()[:20]!r}>"

    def is_eof(self) -> bool:
        """Whether the end of the input has been reached. No whitespace is skipped."""
        return self.pos >= self.end

    def at_end(self) -> bool:
        """Whether only skippable whitespace is left."""
        return self.space_end() >= self.end

    def remaining(self) -> str:
        """All the text from the current position on. No whitespace is skipped."""
        return self.src[self.pos:self.end]

    def advance_to(self, offset: int) -> Cursor:
        """Creates a cursor at `offset`. Cursors never move backwards."""
        if not self.pos <= offset <= self.end:
            raise ValueError(f"Cannot advance from {self.pos} to {offset} (end is {self.end}).")
        return self._at(offset)

    def bounded(self, width: int) -> Cursor:
        """Creates a cursor that can see at most `width` more characters."""
        if width < 0:
            raise ValueError("Width can't be negative.")
        return Cursor(self.src, self.pos, self.policy, min(self.end, self.pos + width))

    def unbounded(self) -> Cursor:
        """Creates a cursor at the same position that can see the rest of the input."""
        return Cursor(self.src, self.pos, self.policy)

    def with_policy(self, policy: Policy) -> Cursor:
        return Cursor(self.src, self.pos, policy, self.end)

    def peek(self, amount: int) -> str | None:
        """
        Retrieves the specified amount of characters without consuming.

        If there aren't enough characters, returns `None`.
        """
        if self.pos + amount > self.end:
            return None
        return self.src[self.pos:self.pos+amount]

    def take(self, amount: int) -> tuple[str, Cursor] | None:
        """
        Retrieves the specified amount of characters, and the cursor after them.

        If there aren't enough characters, returns `None`.
        """
        if self.pos + amount > self.end:
            return None
        return self.src[self.pos:self.pos+amount], self._at(self.pos + amount)

    def raw_literal(self, text: str) -> Cursor | None:
        """Matches `text` exactly at the current position, ignoring the policy."""
        if self.src.startswith(text, self.pos, self.end):
            return self._at(self.pos + len(text))
        return None

    def _space_end_from(self, pos: int) -> int:
        space = self.policy.space
        while pos < self.end and space.skippable(self.src[pos]):
            pos += 1
        return pos

    def space_end(self) -> int:
        """The position after any skippable whitespace."""
        return self._space_end_from(self.pos)

    def skip_space(self) -> Cursor:
        """Skips whitespace according to the `SpaceSkip` policy."""
        pos = self.space_end()
        return self if pos == self.pos else self._at(pos)

    def slice_word(self) -> tuple[str, Cursor] | None:
        """
        Skips whitespace, then slices off the next word according to the `WordSlice` policy.

        Returns the word and the cursor after it, or `None` if there is no word.
        """
        start = self.space_end()
        stop = min(self.policy.word(self.src, start, self.end), self.end)
        if stop <= start:
            return None
        return self.src[start:stop], self._at(stop)

    def regex(self, pattern: str | re.Pattern[str], flags: int | re.RegexFlag = 0) -> tuple[re.Match[str], Cursor] | None:
        """
        Attempts to match the regex at the current position. No whitespace is skipped.

        Returns the match and the cursor after it.
        """
        m = re.compile(pattern, flags).match(self.src, self.pos, self.end)
        if m is None:
            return None
        return m, self._at(m.end())

    def _space_run_end(self, pos: int, run: str) -> int | None:
        space = self.policy.space
        match space:
            case SpaceSkip.EXACT_SPACE:
                return pos + len(run) if self.src.startswith(run, pos, self.end) else None
            case SpaceSkip.FUZZY_SPACE:
                end = pos
                while end < self.end and self.src[end].isspace():
                    end += 1
                return end if end > pos else None
            case _:
                # whitespace that isn't skipped must be present
                for char in run:
                    if space.skippable(char):
                        continue
                    pos = self._space_end_from(pos)
                    if pos < self.end and self.src[pos] == char:
                        pos += 1
                    else:
                        return None
                return pos

    def _text_run_end(self, pos: int, run: str) -> int | None:
        comparison = self.policy.comparison
        if comparison is Comparison.EXACT:
            return pos + len(run) if self.src.startswith(run, pos, self.end) else None
        key = comparison.key(run)
        limit = min(self.end, pos + 4*len(run) + 4)
        for stop in range(pos + 1, limit + 1):
            # don't stop in the middle of a combining sequence
            if stop < self.end and unicodedata.combining(self.src[stop]):
                continue
            if comparison.key(self.src[pos:stop]) == key:
                return stop
        return None

    def _literal_end(self, text: str) -> tuple[bool, int]:
        pos = self.pos
        for run in const.LITERAL_RUN_RE.findall(text):
            if run[0].isspace():
                end = self._space_run_end(pos, run)
            else:
                pos = self._space_end_from(pos)
                end = self._text_run_end(pos, run)
            if end is None:
                return False, pos
            pos = end
        return True, pos

    def literal(self, text: str) -> Cursor | None:
        """
        Attempts to match the given literal text using the active policy.

        Returns the cursor after the literal, or `None` if it didn't match.
        """
        matched, pos = self._literal_end(text)
        return self._at(pos) if matched else None

    def peek_literal(self, text: str) -> bool:
        """Whether the literal text matches at the current position."""
        return self._literal_end(text)[0]

    def match_literal(self, text: str) -> Cursor | ScanFailure:
        """Same as `Cursor.literal()`, but returns a `ScanFailure` positioned at the mismatch on failure."""
        matched, pos = self._literal_end(text)
        if matched:
            return self._at(pos)
        return ScanFailure(self.src, pos, kind=ScanErrorKind.LITERAL_MISMATCH, expected=f"literal {text!r}")

    def fail(
        self,
        msg: str | None = None,
        notes: Sequence[PosNote] = (),
        *,
        kind: ScanErrorKind = ScanErrorKind.SCANNER_FAILURE,
        expected: str | None = None,
        cause: BaseException | None = None,
    ) -> ScanFailure:
        """Returns a `ScanFailure` positioned at the current position."""
        return ScanFailure(self.src, self.pos, msg, notes, kind=kind, expected=expected, cause=cause)

    def scanned(self, value: _T, start: int | None = None) -> Scanned[_T]:
        """Returns a `Scanned` result ending at the current position."""
        return Scanned(value, self, self.pos if start is None else start)


class Scanner(Protocol[_CT]):
    """
    A protocol for scanners.

    A scanner consumes a prefix of the cursor and returns the value it produced along with the advanced cursor, or a `ScanFailure`.

    Scanners should skip leading whitespace (using `Cursor.skip_space()`) unless whitespace is what they scan, and should not consume trailing whitespace.
    """
    def __call__(self, cur: Cursor) -> Scanned[_CT] | ScanFailure: ...

Matcher = re.Pattern[str] | Callable[[str, int, int], int]
"""Either a compiled regex matched at the position, or a function returning the end of the match. (The position itself for no match.)"""

CONVERSION_ERRORS: Final = (ValueError, ArithmeticError, TypeError, ScanError)

def _match_end(matcher: Matcher, cur: Cursor) -> int | None:
    if isinstance(matcher, re.Pattern):
        m = matcher.match(cur.src, cur.pos, cur.end)
        return None if m is None else m.end()
    return min(matcher(cur.src, cur.pos, cur.end), cur.end)

def parse_scanner(
    matcher: Matcher,
    convert: Callable[[str], _T],
    expected: str,
    *,
    skip_space: bool = True,
    allow_empty: bool = False,
) -> Scanner[_T]:
    """
    Scanner factory.

    Slices the input using `matcher`, then converts the slice using `convert`.

    `expected`: Description of the expected input, for failure messages. (`"an integer"`)
    `skip_space`: Whether leading whitespace should be skipped first.
    `allow_empty`: Whether an empty slice is allowed.
    """
    return slice_scanner(matcher, lambda text, policy: convert(text), expected, skip_space=skip_space, allow_empty=allow_empty)

def slice_scanner(
    matcher: Matcher,
    convert: Callable[[str, Policy], _T],
    expected: str,
    *,
    skip_space: bool = True,
    allow_empty: bool = False,
) -> Scanner[_T]:
    """Same as `parse_scanner()`, but `convert` also receives the policy of the cursor."""
    def scan(cur: Cursor) -> Scanned[_T] | ScanFailure:
        if skip_space:
            cur = cur.skip_space()
        end = _match_end(matcher, cur)
        if end is None or (end == cur.pos and not allow_empty):
            return cur.fail(expected=expected)
        try:
            value = convert(cur.src[cur.pos:end], cur.policy)
        except CONVERSION_ERRORS as e:
            return cur.fail(expected=expected, cause=e)
        return Scanned(value, cur.advance_to(end), cur.pos)
    return scan



_STATIC_SCANNERS: dict[Any, Scanner[Any]] = {}
_GENERIC_SCANNERS: dict[Any, Callable[..., Scanner[Any]]] = {}

def register(tp: Any) -> Callable[[Scanner[_T]], Scanner[_T]]:
    """
    Decorator. Registers the scanner as the static scanner for the type `tp`.

    ```
    @register(Fraction)
    def scan_fraction(cur: Cursor) -> Scanned[Fraction] | ScanFailure:
        ...
    ```
    """
    def decorator(scanner: Scanner[_T]) -> Scanner[_T]:
        _STATIC_SCANNERS[tp] = scanner
        return scanner
    return decorator

def register_generic(origin: Any) -> Callable[[Callable[..., Scanner[Any]]], Callable[..., Scanner[Any]]]:
    """
    Decorator. Registers a scanner factory for a generic type.

    The factory is called with the type arguments. (`dict[str, int]` -> `factory(str, int)`)
    """
    def decorator(factory: Callable[..., Scanner[Any]]) -> Callable[..., Scanner[Any]]:
        _GENERIC_SCANNERS[origin] = factory
        return factory
    return decorator

def is_scannable_type(obj: Any) -> bool:
    """Whether `obj` is a type (or generic alias) rather than a scanner."""
    return isinstance(obj, (type, UnionType)) or typing.get_origin(obj) is not None

def scanner_for(tp: Any) -> Scanner[Any]:
    """
    Finds the static scanner for a type.

    Raises `LookupError` if there's none.
    """
    if tp in _STATIC_SCANNERS:
        return _STATIC_SCANNERS[tp]
    origin = typing.get_origin(tp)
    if origin is typing.Union:
        origin = UnionType
    if origin in _GENERIC_SCANNERS:
        return _GENERIC_SCANNERS[origin](*typing.get_args(tp))
    raise LookupError(f"No scanner registered for {tp!r}.")

def resolve_scanner(scanner: Any) -> Scanner[Any]:
    """Converts a type into its static scanner. Scanners are returned as-is."""
    if is_scannable_type(scanner):
        return scanner_for(scanner)
    if not callable(scanner):
        raise TypeError(f"Expected a scanner or a type, got {scanner!r}.")
    return scanner

def converter(to: Any) -> Callable[[str, Policy], Any]:
    """
    Converts the target of an abstract scanner into a function that converts a slice of text.

    The function is called with the slice and the policy of the cursor the slice was taken from.

    - `str`: The slice itself.
    - Types with a static scanner: The static scanner, which must consume the whole slice.
    - Other callables: Called with the slice.
    """
    if to is str:
        return lambda text, policy: text
    if is_scannable_type(to):
        try:
            scanner = scanner_for(to)
        except LookupError:
            if isinstance(to, type):
                return lambda text, policy: to(text)
            raise
        def convert(text: str, policy: Policy) -> Any:
            r = scanner(Cursor.start(text, policy))
            if isinstance(r, ScanFailure):
                raise r.error()
            if not r.cursor.at_end():
                raise ValueError(f"unexpected trailing input {r.cursor.remaining()!r}")
            return r.value
        return convert
    if not callable(to):
        raise TypeError(f"Expected a type or a callable, got {to!r}.")
    return lambda text, policy: to(text)
