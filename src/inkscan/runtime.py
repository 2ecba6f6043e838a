"""
Runtime scanners.

Scanners built from runtime values rather than selected by type. They compose with the other scanners:
```
rule = Rule([Binding("a", exact_width(3, int)), Binding("b", max_width(2, hex())), Remainder("rest")])
```
"""

from __future__ import annotations
from typing import Any

import re

from inkscan.main import Cursor, Scanned, ScanFailure, Scanner, resolve_scanner
from inkscan.general import everything


def exact_width(width: int, then: Any = None) -> Scanner[Any]:
    """
    Scans exactly `width` characters using `then`. (A scanner or a type, `everything()` by default.)

    Leading whitespace is skipped according to the policy before the width is counted, like `%2d` in `scanf`.
    `then` sees a cursor bounded to `width` characters, and must consume all of them.
    """
    if width < 0:
        raise ValueError("Width can't be negative.")
    scanner = everything() if then is None else resolve_scanner(then)
    def scan(cur: Cursor) -> Scanned[Any] | ScanFailure:
        cur = cur.skip_space()
        if cur.width() < width:
            return cur.fail(f"Input not long enough. (Expected {width} characters, {cur.width()} left.)")
        r = scanner(cur.bounded(width))
        if not r:
            return r
        if r.cursor.pos < cur.pos + width:
            return r.cursor.fail(f"Value did not consume enough characters. (Expected {width}, consumed {r.cursor.pos - cur.pos}.)")
        return Scanned(r.value, cur.advance_to(r.cursor.pos), r.start)
    return scan

def max_width(width: int, then: Any = None) -> Scanner[Any]:
    """
    Scans using `then`, which sees at most `width` characters.

    The width is counted after the whitespace skipped by the policy.
    """
    if width < 0:
        raise ValueError("Width can't be negative.")
    scanner = everything() if then is None else resolve_scanner(then)
    def scan(cur: Cursor) -> Scanned[Any] | ScanFailure:
        cur = cur.skip_space()
        r = scanner(cur.bounded(width))
        if not r:
            return r
        return Scanned(r.value, cur.advance_to(r.cursor.pos), r.start)
    return scan

def min_width(width: int, then: Any = None) -> Scanner[Any]:
    """Scans using `then`, which must consume at least `width` characters after the skipped whitespace."""
    if width < 0:
        raise ValueError("Width can't be negative.")
    scanner = everything() if then is None else resolve_scanner(then)
    def scan(cur: Cursor) -> Scanned[Any] | ScanFailure:
        cur = cur.skip_space()
        if cur.width() < width:
            return cur.fail(f"Expected more characters to scan. (Expected at least {width}, {cur.width()} left.)")
        r = scanner(cur)
        if not r:
            return r
        if r.cursor.pos - cur.pos < width:
            return r.cursor.fail(f"Scanned value too short. (Expected at least {width} characters, consumed {r.cursor.pos - cur.pos}.)")
        return r
    return scan

def regex(pattern: str | re.Pattern[str], then: Any = None) -> Scanner[Any]:
    """
    Matches the regex at the (whitespace skipped) current position, and scans a slice of the match using `then`.

    The slice is the `scan` named group if there is one, the first group if there is one, or the whole match otherwise.
    `then` must consume all of the slice. The whole match is consumed.
    """
    compiled = re.compile(pattern)
    scanner = everything() if then is None else resolve_scanner(then)
    if "scan" in compiled.groupindex:
        group: int | str = "scan"
    elif compiled.groups >= 1:
        group = 1
    else:
        group = 0
    expected = f"a match for {compiled.pattern!r}"
    def scan(cur: Cursor) -> Scanned[Any] | ScanFailure:
        cur = cur.skip_space()
        if (r := cur.regex(compiled)) is None:
            return cur.fail(expected=expected)
        m, after = r
        a, b = m.span(group)
        if a < 0:
            return cur.fail(f"The {group!r} group of {compiled.pattern!r} didn't participate in the match.")
        inner = scanner(Cursor(cur.src, a, cur.policy, b))
        if not inner:
            return inner
        if not inner.cursor.at_end():
            return inner.cursor.fail(expected="the end of the matched text")
        return Scanned(inner.value, after, a)
    return scan

def re_str(pattern: str | re.Pattern[str]) -> Scanner[str]:
    """Same as `regex(pattern)`. Scans the matched slice as a string."""
    return regex(pattern)

def scan_a(tp: Any) -> Scanner[Any]:
    """The scanner for the type `tp`, selected at runtime."""
    return resolve_scanner(tp)
