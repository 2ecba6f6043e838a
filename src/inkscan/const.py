"""
General use constants.
"""

from __future__ import annotations
from typing import Final

import re

LINE_TERMINATORS: Final[frozenset[str]] = frozenset({"\n", "\r", "\x0b", "\x0c", "\x1c", "\x1d", "\x1e", "\x85", "\u2028", "\u2029"})
HORIZONTAL_SPACES: Final[frozenset[str]] = frozenset({"\t"}) | frozenset(chr(c) for c in (0x20, 0xa0, 0x1680, *range(0x2000, 0x200b), 0x202f, 0x205f, 0x3000))

# word slicing
WORD_RE: Final[re.Pattern[str]] = re.compile(r"\w+")
WORDISH_RE: Final[re.Pattern[str]] = re.compile(r"\w+|\S")
NON_SPACE_RE: Final[re.Pattern[str]] = re.compile(r"\S+")
IDENT_RE: Final[re.Pattern[str]] = re.compile(r"[^\W\d]\w*")
LITERAL_RUN_RE: Final[re.Pattern[str]] = re.compile(r"\s+|\S+")
CHAR_RE: Final[re.Pattern[str]] = re.compile(r".", re.DOTALL)

# lines and spaces
LINE_RE: Final[re.Pattern[str]] = re.compile(r"([^\r\n]*)(?:\r\n|\r|\n|$)")
SPACE_RE: Final[re.Pattern[str]] = re.compile(r"\s+")
HOR_SPACE_RE: Final[re.Pattern[str]] = re.compile("[" + "".join(sorted(HORIZONTAL_SPACES)) + "]+")
NEWLINE_RE: Final[re.Pattern[str]] = re.compile(r"\r\n|[\n\r\x0b\x0c\x1c\x1d\x1e\x85\u2028\u2029]")

# escape sequences
UNICODE_ESCAPE_RE: Final[re.Pattern[str]] = re.compile(r"u\{([0-9a-fA-F]{1,6})\}|u([0-9a-fA-F]{4})")
HEX_ESCAPE_RE: Final[re.Pattern[str]] = re.compile(r"x([0-9a-fA-F]{2})")

# numbers
INTEGER_RE: Final[re.Pattern[str]] = re.compile(r"[+-]?[0-9]+")
FLOAT_RE: Final[re.Pattern[str]] = re.compile(
    r"[+-]?(?:(?:inf(?:inity)?|nan)(?![^\W\d_])|(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][+-]?[0-9]+)?)",
    re.IGNORECASE,
)
NUMBER_RE: Final[re.Pattern[str]] = re.compile(r"[+-]?\d+(?:\.\d+)?(?:[eE][+-]?\d+)?")
BINARY_RE: Final[re.Pattern[str]] = re.compile(r"[01]+")
OCTAL_RE: Final[re.Pattern[str]] = re.compile(r"[0-7]+")
HEX_RE: Final[re.Pattern[str]] = re.compile(r"[0-9a-fA-F]+")

# network addresses
IPV4_PATTERN: Final[str] = r"\d{1,3}\.\d{1,3}\.\d{1,3}\.\d{1,3}"
IPV6_PATTERN: Final[str] = (
    r"(?:(?:[0-9a-fA-F]+(?::[0-9a-fA-F]+)*)?::(?:[0-9a-fA-F]+(?::[0-9a-fA-F]+)*(?:\.\d+\.\d+\.\d+)?)?"
    r"|[0-9a-fA-F]+(?::[0-9a-fA-F]+)+(?:\.\d+\.\d+\.\d+)?)"
)
IPV4_RE: Final[re.Pattern[str]] = re.compile(IPV4_PATTERN)
IPV6_RE: Final[re.Pattern[str]] = re.compile(IPV6_PATTERN)
SOCKET_V4_RE: Final[re.Pattern[str]] = re.compile(rf"(?P<host>{IPV4_PATTERN}):(?P<port>\d+)")
SOCKET_V6_RE: Final[re.Pattern[str]] = re.compile(rf"\[(?P<host>{IPV6_PATTERN})\]:(?P<port>\d+)")

# durations
_DURATION_NUMBER = r"[0-9]+(?:[.,][0-9]+)?"
DURATION_RE: Final[re.Pattern[str]] = re.compile(
    rf"P(?:(?P<weeks>{_DURATION_NUMBER})W"
    rf"|(?:(?P<days>{_DURATION_NUMBER})D)?"
    rf"(?:T(?:(?P<hours>{_DURATION_NUMBER})H)?(?:(?P<minutes>{_DURATION_NUMBER})M)?(?:(?P<seconds>{_DURATION_NUMBER})S)?)?)"
)
SECS_IN_MIN: Final[int] = 60
SECS_IN_HOUR: Final[int] = 60 * SECS_IN_MIN
SECS_IN_DAY: Final[int] = 24 * SECS_IN_HOUR
SECS_IN_WEEK: Final[int] = 7 * SECS_IN_DAY
