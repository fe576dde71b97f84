"""
Indent numbers: I-001, I-002, ... I-999, I-1000.

The next number is always max(existing) + 1. A cell counts when it contains
"I-<digits>" anywhere, so hand-edited cells like "PO I-005" or
"I-007 (revised)" still reserve their number. Cells with no such run
(blank, free text, other series) are skipped.

Allocation reads a snapshot and writes later, with no lock between the two.
Two requests that read the same snapshot get the same number.
"""
import re
from typing import NamedTuple, Union

PREFIX = "I"
MIN_DIGITS = 3
DEFAULT_REFERENCE = f"{PREFIX}-{1:0{MIN_DIGITS}d}"

_REF_RE = re.compile(rf"{PREFIX}-(\d+)")


class Ok(NamedTuple):
    value: int


class Skip(NamedTuple):
    reason: str


ParseResult = Union[Ok, Skip]


def parse_reference(value) -> ParseResult:
    """Ok(n) for the first "I-<digits>" in the cell, Skip(reason) otherwise."""
    if not isinstance(value, str):
        return Skip("not a string")
    m = _REF_RE.search(value)
    if not m:
        return Skip(f"no {PREFIX}-NNN match")
    return Ok(int(m.group(1)))


def format_reference(number: int) -> str:
    return f"{PREFIX}-{number:0{MIN_DIGITS}d}"


def next_reference(existing) -> str:
    """Next unused indent number after the highest one in ``existing``."""
    highest = 0
    for value in existing or ():
        parsed = parse_reference(value)
        if isinstance(parsed, Ok) and parsed.value > highest:
            highest = parsed.value
    return format_reference(highest + 1)
