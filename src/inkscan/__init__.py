"""
Library for scanning typed values out of text. The inverse of string formatting.

See the objects for more explanations.

See the `inkscan.general` module for the built-in scanners, and `inkscan.stdtypes` for the container and standard library types.

Defining rules:
```
rules = RuleSet([
    Rule(["age", Binding("age", int)], action=lambda age: age),
    Rule(["born in", Binding("year", int)], action=lambda year: 2024 - year),
])
```

Scanning:
```
result = rules.scan("age 42")
if result:
    ... # `result` is a `Match` object
else:
    ... # `result` is a `ScanFailure` object
```

Defining scanners:
```
def foo(cur: Cursor) -> Scanned[int] | ScanFailure:
    cur = cur.skip_space()
    if (after := cur.literal("abc")) is None:
        return cur.fail(expected="literal 'abc'")   # fail
    return after.scanned(10, cur.pos)               # success
```
"""

import inkscan.const as const
import inkscan.main
from inkscan.policy import (
    Comparison,
    SpaceSkip,
    WordSlice,
    Policy,
    DEFAULT_POLICY,
)
from inkscan.main import (
    PosNote,
    ScanErrorKind,
    ScanFailure,
    ScanError,
    Scanned,
    Cursor,
    Scanner,
    parse_scanner,
    slice_scanner,
    register,
    register_generic,
    scanner_for,
    resolve_scanner,
)
import inkscan.general as general
from inkscan.general import (
    word,
    wordish,
    non_space,
    ident,
    number,
    char,
    everything,
    space,
    hor_space,
    newline,
    line,
    binary,
    octal,
    hex,
    quoted_string,
    raw_quoted_string,
)
from inkscan.rules import (
    Term,
    Literal,
    Binding,
    Anchor,
    End,
    Remainder,
    Repetition,
    Rule,
    RuleSet,
    Match,
    strict_set,
    strict_dict,
    scan,
    scan_or_raise,
)
import inkscan.stdtypes as stdtypes
from inkscan.stdtypes import (
    key_value_pair,
    socket_address,
)
import inkscan.runtime as runtime
from inkscan.runtime import (
    exact_width,
    max_width,
    min_width,
    regex,
    re_str,
    scan_a,
)
