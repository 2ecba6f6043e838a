"""
Built-in scanners.

Static scanners are registered for `int`, `float`, `decimal.Decimal`, `bool` and `str`.

Abstract scanners slice the input using some strategy, then convert the slice using `to`:
```
Binding("age", word(int))
Binding("title", line())
Binding("total", number(Decimal))
```
"""

from __future__ import annotations
from typing import Any, Callable, Sequence

from decimal import Decimal
import re

import inkscan.const as const
from inkscan.main import (
    Cursor, Scanned, ScanFailure, Scanner, PosNote, Matcher,
    parse_scanner, slice_scanner, converter, register, CONVERSION_ERRORS,
)


# static scanners

integer: Scanner[int] = register(int)(parse_scanner(const.INTEGER_RE, int, "an integer"))
"""An optional sign followed by ASCII digits."""

floating: Scanner[float] = register(float)(parse_scanner(const.FLOAT_RE, float, "a floating point number"))
"""An optional sign followed by digits with an optional fraction and exponent, or `inf`, `infinity`, `nan`. Integers are accepted."""

decimal_number: Scanner[Decimal] = register(Decimal)(parse_scanner(const.FLOAT_RE, Decimal, "a decimal number"))

def _to_bool(text: str) -> bool:
    if text == "true":
        return True
    if text == "false":
        return False
    raise ValueError(f"{text!r} is not `true` or `false`")

boolean: Scanner[bool] = register(bool)(parse_scanner(const.WORD_RE, _to_bool, "`true` or `false`"))

@register(str)
def string(cur: Cursor) -> Scanned[str] | ScanFailure:
    """The next word, according to the `WordSlice` policy."""
    start = cur.skip_space()
    if (r := start.slice_word()) is None:
        return start.fail(expected="a word")
    word, cur = r
    return cur.scanned(word, start.pos)


# abstract scanners

def _abstract(matcher: Matcher, to: Any, expected: str, *, skip_space: bool = True, allow_empty: bool = False) -> Scanner[Any]:
    return slice_scanner(matcher, converter(to), expected, skip_space=skip_space, allow_empty=allow_empty)

def word(to: Any = str) -> Scanner[Any]:
    """A run of word characters. (`\\w+`)"""
    return _abstract(const.WORD_RE, to, "a word")

def wordish(to: Any = str) -> Scanner[Any]:
    """A word according to the `WordSlice` policy of the cursor."""
    convert = converter(to)
    def scan(cur: Cursor) -> Scanned[Any] | ScanFailure:
        start = cur.skip_space()
        if (r := start.slice_word()) is None:
            return start.fail(expected="a word, number or some other character")
        text, after = r
        try:
            return after.scanned(convert(text, start.policy), start.pos)
        except CONVERSION_ERRORS as e:
            return start.fail(expected="a word, number or some other character", cause=e)
    return scan

def non_space(to: Any = str) -> Scanner[Any]:
    """A run of non-whitespace characters."""
    return _abstract(const.NON_SPACE_RE, to, "at least one non-space character")

def ident(to: Any = str) -> Scanner[Any]:
    """An identifier. (A letter or `_`, followed by word characters.)"""
    return _abstract(const.IDENT_RE, to, "an identifier")

def number(to: Any = str) -> Scanner[Any]:
    """The longest number-looking prefix. (Digits, with an optional sign, fraction and exponent.)"""
    return _abstract(const.NUMBER_RE, to, "a number")

def char(to: Any = str) -> Scanner[Any]:
    """A single character."""
    return _abstract(const.CHAR_RE, to, "a character")

def everything(to: Any = str) -> Scanner[Any]:
    """
    All of the remaining input, possibly empty. No whitespace is skipped.

    Use `Remainder` when the rest of the input should be bound at the end of a rule.
    """
    return _abstract(lambda src, pos, end: end, to, "anything", skip_space=False, allow_empty=True)

def space(to: Any = str) -> Scanner[Any]:
    """A non-empty run of whitespace."""
    return _abstract(const.SPACE_RE, to, "whitespace", skip_space=False)

def hor_space(to: Any = str) -> Scanner[Any]:
    """A non-empty run of horizontal whitespace."""
    return _abstract(const.HOR_SPACE_RE, to, "horizontal whitespace", skip_space=False)

def newline(to: Any = str) -> Scanner[Any]:
    """A single line break. (`\\r\\n` counts as one.)"""
    return _abstract(const.NEWLINE_RE, to, "a line break", skip_space=False)

def line(to: Any = str) -> Scanner[Any]:
    """
    Everything up to the end of the current line, or the end of the input.

    The line terminator is consumed, but isn't part of the value.
    """
    convert = converter(to)
    def scan(cur: Cursor) -> Scanned[Any] | ScanFailure:
        start = cur.skip_space()
        if (r := start.regex(const.LINE_RE)) is None:
            return start.fail(expected="a line")
        m, after = r
        try:
            return after.scanned(convert(m.group(1), start.policy), start.pos)
        except CONVERSION_ERRORS as e:
            return start.fail(expected="a line", cause=e)
    return scan

def _radix(pattern: re.Pattern[str], base: int, to: Callable[[int], Any], expected: str) -> Scanner[Any]:
    return parse_scanner(pattern, lambda text: to(int(text, base)), expected)

def binary(to: Callable[[int], Any] = int) -> Scanner[Any]:
    """Binary digits. `to` is applied to the integer value."""
    return _radix(const.BINARY_RE, 2, to, "binary digits")

def octal(to: Callable[[int], Any] = int) -> Scanner[Any]:
    """Octal digits. `to` is applied to the integer value."""
    return _radix(const.OCTAL_RE, 8, to, "octal digits")

def hex(to: Callable[[int], Any] = int) -> Scanner[Any]:
    """Hexadecimal digits. `to` is applied to the integer value."""
    return _radix(const.HEX_RE, 16, to, "hexadecimal digits")


# quoted string

GENERAL_ESCAPES = {
    'b': '\b',
    'f': '\f',
    'n': '\n',
    'r': '\r',
    't': '\t',
    '0': '\0',
}

def unicode_escape(cur: Cursor) -> Scanned[str] | ScanFailure | None:
    """
    Escape sequence: `u{...}` (1 to 6 hexadecimal digits) or `uXXXX`

    Returns `None` if this isn't a unicode escape sequence.
    """
    if cur.peek(1) != "u":
        return None
    if (r := cur.regex(const.UNICODE_ESCAPE_RE)) is None:
        return cur.fail("Expected 4 hexadecimal characters, or up to 6 in braces, after unicode escape sequence.")
    m, after = r
    code = int(m.group(1) or m.group(2), base=16)
    if code > 0x10FFFF or 0xD800 <= code <= 0xDFFF:
        return cur.fail(f"Invalid code point U+{code:X} in unicode escape sequence.")
    return after.scanned(chr(code), cur.pos)

def hex_escape(cur: Cursor) -> Scanned[str] | ScanFailure | None:
    """Escape sequence: `xHH`"""
    if cur.peek(1) != "x":
        return None
    if (r := cur.regex(const.HEX_ESCAPE_RE)) is None:
        return cur.fail("Expected 2 hexadecimal characters after hex escape sequence.")
    m, after = r
    return after.scanned(chr(int(m.group(1), base=16)), cur.pos)

def quoted_string(
    cur: Cursor,
    *,
    start: Sequence[str] = ('"',),
    end: Sequence[str] = ('"',),
    escape: str = '\\',
    custom_escapes: dict[str, str] = GENERAL_ESCAPES,
    advanced_escapes: Sequence[Callable[[Cursor], Scanned[str] | ScanFailure | None]] = (unicode_escape, hex_escape),
) -> Scanned[str] | ScanFailure:
    """
    A quoted string, with the quotes removed and escape sequences expanded.

    Any other escaped character stands for itself. (`\\"`, `\\\\`)

    Use `functools.partial` to customize the quotes and escapes:
    ```
    Binding("s", partial(quoted_string, start=("'", '"'), end=("'", '"')))
    ```
    """
    if len(start) != len(end):
        raise ValueError("The number of starting quotes and ending quotes don't match.")
    cur = cur.skip_space()
    begin = cur.pos
    for i, s in enumerate(start):
        if (after := cur.raw_literal(s)) is not None:
            closing = end[i]
            cur = after
            break
    else:
        return cur.fail(expected="a quoted string")
    data: list[str] = []
    while True:
        if escape and (after := cur.raw_literal(escape)) is not None:
            cur = after
            for sequence, result in custom_escapes.items():
                if (after := cur.raw_literal(sequence)) is not None:
                    data.append(result)
                    cur = after
                    break
            else:
                for scanner in advanced_escapes:
                    if (r := scanner(cur)) is not None:
                        if not r:
                            return r.prepend_pos_note(begin, "In quote:")
                        data.append(r.value)
                        cur = r.cursor
                        break
                else:
                    if (taken := cur.take(1)) is not None:
                        char, cur = taken
                        data.append(char)
                    else:
                        return cur.fail(f"Expected a character to escape after `{escape}`.", [PosNote(begin, "In quote:")])
        elif (after := cur.raw_literal(closing)) is not None:
            return after.scanned("".join(data), begin)
        elif (taken := cur.take(1)) is not None:
            char, cur = taken
            data.append(char)
        else:
            return cur.fail(f"Expected closing quote `{closing}`.", [PosNote(begin, "Starting quote:")])

def raw_quoted_string(
    cur: Cursor,
    *,
    start: Sequence[str] = ('r"', "r'"),
    end: Sequence[str] = ('"', "'"),
) -> Scanned[str] | ScanFailure:
    """A quoted string without escape sequences."""
    return quoted_string(cur, start=start, end=end, escape="", custom_escapes={}, advanced_escapes=())
