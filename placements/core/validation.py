"""
Field checks shared by every feed.

Each check returns a message when the value is missing and None otherwise;
rules wrap the checks so a feed can describe its listings as an ordered table.
A rule is called as rule(item, idx, ident) and yields zero or more messages.
"""
from __future__ import annotations

import re
from typing import Any, Callable, Iterable, Iterator, Sequence

from placements.errors import FormatError
from placements.models import OptionalInt

MSG_EMPTY_FEED = "feed is empty"

Rule = Callable[[Any, int, str], Iterable[str]]

_RE_FLOAT = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
_RE_INT = re.compile(r"[+-]?\d+")
_RE_SPACES = re.compile(r"\s+")

INT64_MIN = -(2 ** 63)
INT64_MAX = 2 ** 63 - 1
_INT64_DIGITS = len(str(INT64_MAX))


# --- Decoders ---

def parse_int64(text: str) -> int:
    """Parse a decimal integer that has to fit in a signed 64-bit field."""
    s = text.strip()
    if not _RE_INT.fullmatch(s):
        raise FormatError(f"can't parse {text!r} as an integer")
    # int() refuses very long digit strings with a plain ValueError
    if len(s.lstrip("+-").lstrip("0")) > _INT64_DIGITS:
        raise FormatError(f"{s[:_INT64_DIGITS]!r}... is out of the 64-bit integer range")
    value = int(s)
    if not INT64_MIN <= value <= INT64_MAX:
        raise FormatError(f"{s!r} is out of the 64-bit integer range")
    return value


def parse_locale_float(text: str | None) -> float:
    """Parse a number that may use a comma as the decimal separator ("1 234,50")."""
    s = _RE_SPACES.sub("", text or "").replace(",", ".")
    if not s:
        return 0.0
    if not _RE_FLOAT.fullmatch(s):
        raise FormatError(f"can't parse {text!r} as a number")
    return float(s)


def parse_optional_int(text: str | None) -> OptionalInt:
    """Parse an integer where the literal "undefined" means "no value"."""
    s = (text or "").strip()
    if not s or s == "undefined":
        return OptionalInt()
    return OptionalInt(value=parse_int64(s), valid=True)


# --- Checks ---

def _id_message(ident: str) -> str:
    return f"InternalID: {ident}" if ident else "InternalID not found"


def check_string(path: str, field: str, value: str) -> str | None:
    if value == "":
        return f"field {path}.{field} is empty"
    return None


def check_string_with_pos(idx: int, path: str, field: str, value: str) -> str | None:
    if value == "":
        return f"field {path}[{idx}].{field} is empty"
    return None


def check_string_with_id(ident: str, path: str, field: str, value: str) -> str | None:
    if value == "":
        return f"field {path}.{field} is empty. {_id_message(ident)}"
    return None


def check_zero_with_id(ident: str, path: str, field: str, value: int | float) -> str | None:
    if value == 0:
        return f"field {path}.{field} is empty. InternalID: {ident}"
    return None


# --- Rules ---

def required(path: str, field: str, getter: Callable[[Any], str]) -> Rule:
    """Non-empty string, reported by the listing id."""
    def rule(item, idx, ident):
        msg = check_string_with_id(ident, path, field, getter(item))
        return [msg] if msg else []
    return rule


def nonzero(path: str, field: str, getter: Callable[[Any], int | float]) -> Rule:
    """Non-zero number, reported by the listing id."""
    def rule(item, idx, ident):
        msg = check_zero_with_id(ident, path, field, getter(item))
        return [msg] if msg else []
    return rule


def present(path: str, field: str, getter: Callable[[Any], str]) -> Rule:
    """Non-empty string without any id in the message."""
    def rule(item, idx, ident):
        msg = check_string(path, field, getter(item))
        return [msg] if msg else []
    return rule


def positional(path: str, field: str, getter: Callable[[Any], str]) -> Rule:
    """Non-empty string, reported by the listing position."""
    def rule(item, idx, ident):
        msg = check_string_with_pos(idx, path, field, getter(item))
        return [msg] if msg else []
    return rule


def each(path: str, field: str, items: Callable[[Any], Sequence[Any]],
         getter: Callable[[Any], str] = lambda v: v) -> Rule:
    """Non-empty string on every element of a repeated group, by position in that group."""
    def rule(item, idx, ident):
        out = []
        for pos, sub in enumerate(items(item)):
            msg = check_string_with_pos(pos, path, field, getter(sub))
            if msg:
                out.append(msg)
        return out
    return rule


def when(predicate: Callable[[Any], bool], message: Callable[[Any, int, str], str]) -> Rule:
    """Cross-field rule: emit message(item, idx, ident) when predicate(item) holds."""
    def rule(item, idx, ident):
        return [message(item, idx, ident)] if predicate(item) else []
    return rule


def apply_rules(rules: Sequence[Rule], item: Any, idx: int, ident: str) -> Iterator[str]:
    for rule in rules:
        yield from rule(item, idx, ident)
