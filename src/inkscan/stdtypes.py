"""
Scanners for standard library types.

Registered static scanners:
- `list[T]`: `[a, b, c]`
- `set[T]`, `frozenset[T]`: `{a, b, c}`
- `dict[K, V]`: `{k: v, k: v}` (Duplicate keys fail.)
- `tuple[A, B]`: `(a, b)`, `tuple[T, ...]`: `(a, b, c)`
- `A | B`: The options are tried in order. `None` is the word `None`.
- `datetime.timedelta`: ISO 8601 durations. (`PT1H30M`, `P2W`, `PT0.5S`, `PT0,5S`)
- `ipaddress.IPv4Address`, `ipaddress.IPv6Address`

A trailing comma is allowed in the bracketed containers.
"""

from __future__ import annotations
from typing import Any, Callable, Iterable

from datetime import timedelta
from decimal import Decimal
from ipaddress import IPv4Address, IPv6Address
from types import NoneType, UnionType

import inkscan.const as const
from inkscan.main import Cursor, Scanned, ScanFailure, Scanner, parse_scanner, register, register_generic
from inkscan.general import word
from inkscan.rules import Rule, RuleSet, Binding, Repetition, strict_dict


# containers

def _items(item: Any, opening: str, closing: str, collect: Callable[[list[Any]], Any]) -> RuleSet:
    def items(min: int) -> Repetition:
        return Repetition(Binding("items", item), separator=",", min=min, collect=collect)
    return RuleSet([
        Rule([opening, items(0), closing], action=lambda items: items),
        Rule([opening, items(1), ",", closing], action=lambda items: items),
    ])

@register_generic(list)
def list_scanner(item: Any) -> Scanner[list[Any]]:
    return _items(item, "[", "]", list)

@register_generic(set)
def set_scanner(item: Any) -> Scanner[set[Any]]:
    return _items(item, "{", "}", set)

@register_generic(frozenset)
def frozenset_scanner(item: Any) -> Scanner[frozenset[Any]]:
    return _items(item, "{", "}", frozenset)

def key_value_pair(key: Any = str, value: Any = str) -> Scanner[tuple[Any, Any]]:
    """`key: value`, as a `(key, value)` tuple."""
    return RuleSet([
        Rule([Binding("key", key), ":", Binding("value", value)], action=lambda key, value: (key, value)),
    ])

@register_generic(dict)
def dict_scanner(key: Any, value: Any) -> Scanner[dict[Any, Any]]:
    return _items(key_value_pair(key, value), "{", "}", strict_dict)

@register_generic(tuple)
def tuple_scanner(*items: Any) -> Scanner[tuple[Any, ...]]:
    if len(items) == 2 and items[1] is Ellipsis:
        return _items(items[0], "(", ")", tuple)
    if not items:
        return RuleSet([Rule(["(", ")"], action=lambda: ())])
    terms: list[Any] = ["("]
    for i, item in enumerate(items):
        if i:
            terms.append(",")
        terms.append(Binding(f"item{i}", item))
    def action(**bindings: Any) -> tuple[Any, ...]:
        return tuple(bindings[f"item{i}"] for i in range(len(items)))
    return RuleSet([
        Rule(terms + [")"], action=action),
        Rule(terms + [",", ")"], action=action),
    ])

def _to_none(text: str) -> None:
    if text != "None":
        raise ValueError(f"{text!r} is not `None`")
    return None

@register_generic(UnionType)
def union_scanner(*options: Any) -> Scanner[Any]:
    rules: list[Rule] = []
    for option in options:
        rule = Rule([Binding("value", word(_to_none) if option is NoneType else option)], action=lambda value: value)
        # `None` first, so that it isn't scanned as a string
        if option is NoneType:
            rules.insert(0, rule)
        else:
            rules.append(rule)
    return RuleSet(rules)


# durations

_DURATION_UNITS = {
    "weeks": const.SECS_IN_WEEK,
    "days": const.SECS_IN_DAY,
    "hours": const.SECS_IN_HOUR,
    "minutes": const.SECS_IN_MIN,
    "seconds": 1,
}

def _to_timedelta(text: str) -> timedelta:
    m = const.DURATION_RE.fullmatch(text)
    if m is None:
        raise ValueError(f"{text!r} is not an ISO 8601 duration")
    parts = {unit: value for unit, value in m.groupdict().items() if value is not None}
    if not parts or text.endswith("T"):
        raise ValueError("expected at least one component after `P` or `T`")
    # `.` or `,` as the decimal point
    seconds = sum(Decimal(value.replace(",", ".")) * _DURATION_UNITS[unit] for unit, value in parts.items())
    return timedelta(microseconds=int((seconds * 1_000_000).to_integral_value()))

duration: Scanner[timedelta] = register(timedelta)(parse_scanner(const.DURATION_RE, _to_timedelta, "an ISO 8601 duration"))


# network addresses

ipv4_address: Scanner[IPv4Address] = register(IPv4Address)(parse_scanner(const.IPV4_RE, IPv4Address, "an IPv4 address"))
ipv6_address: Scanner[IPv6Address] = register(IPv6Address)(parse_scanner(const.IPV6_RE, IPv6Address, "an IPv6 address"))

_SOCKET_ADDRESS_FORMS: Iterable[tuple[Any, Any]] = (
    (const.SOCKET_V6_RE, IPv6Address),
    (const.SOCKET_V4_RE, IPv4Address),
)

def socket_address(cur: Cursor) -> Scanned[tuple[IPv4Address | IPv6Address, int]] | ScanFailure:
    """`127.0.0.1:80` or `[::1]:80`, as an `(address, port)` tuple."""
    cur = cur.skip_space()
    for pattern, address_type in _SOCKET_ADDRESS_FORMS:
        if (r := cur.regex(pattern)) is not None:
            m, after = r
            try:
                address = address_type(m.group("host"))
                port = int(m.group("port"))
                if port > 0xFFFF:
                    raise ValueError(f"port {port} is out of range")
            except ValueError as e:
                return cur.fail(expected="a socket address", cause=e)
            return after.scanned((address, port), cur.pos)
    return cur.fail(expected="a socket address")
