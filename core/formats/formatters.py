"""Number and time formatter objects built once per pattern.

Patterns are parsed at construction so that evaluation only has to apply
the already-validated pattern. Construction failures raise
``InvalidFormatPatternError`` and are reported at template compile time.
"""

from __future__ import annotations

import math
import re
from datetime import date, datetime
from decimal import Decimal
from typing import Protocol

from core.utils.errors import InvalidFormatPatternError

_NUMBER_SPEC_RE = re.compile(
    r"""
    (?:(?P<fill>.)?(?P<align>[<>=^]))?
    (?P<sign>[-+ ])?
    (?P<alternate>\#)?
    (?P<zero>0)?
    (?P<width>\d+)?
    (?P<grouping>[,_])?
    (?:\.(?P<precision>\d+))?
    (?P<type>[bcdeEfFgGnoxX%])?
    """,
    re.VERBOSE | re.DOTALL,
)
_INTEGER_TYPES = frozenset("bcdoxX")

# strftime directives that behave the same on every platform, plus the two
# extensions handled locally: %L (milliseconds) and %e (space-padded day).
_TIME_DIRECTIVES = frozenset("aAbBcdfGHIjmMpSuUVwWxXyYzZ%Le")


class Formatter(Protocol):
    pattern: str

    def __call__(self, value: object) -> str: ...


class NumberFormatter:
    """Format real numbers with a Python format-spec pattern (e.g. ``.3f``)."""

    def __init__(self, pattern: str) -> None:
        match = _NUMBER_SPEC_RE.fullmatch(pattern)
        if match is None:
            raise InvalidFormatPatternError("number", pattern, "not a format specification")

        self.pattern = pattern
        self.presentation = match.group("type") or ""
        self.precision = int(match.group("precision")) if match.group("precision") else None
        self.width = int(match.group("width")) if match.group("width") else None
        self.grouping = match.group("grouping")
        self.integer_only = self.presentation in _INTEGER_TYPES

        probe: int | float = 0 if self.integer_only else 0.0
        try:
            format(probe, pattern)
        except ValueError as exc:
            raise InvalidFormatPatternError("number", pattern, str(exc)) from exc

    def __call__(self, value: int | float | Decimal) -> str:
        if self.integer_only and not isinstance(value, int):
            if isinstance(value, float) and not math.isfinite(value):
                return str(value)
            value = int(round(value))
        return format(value, self.pattern)

    def __repr__(self) -> str:
        return f"NumberFormatter({self.pattern!r})"


class TimeFormatter:
    """Format dates and datetimes with a strftime-style pattern."""

    def __init__(self, pattern: str) -> None:
        self.pattern = pattern
        self.parts = _parse_time_pattern(pattern)

    def __call__(self, value: date) -> str:
        chunks: list[str] = []
        for is_directive, text in self.parts:
            if not is_directive:
                chunks.append(text)
            elif text == "L":
                micros = value.microsecond if isinstance(value, datetime) else 0
                chunks.append(f"{micros // 1000:03d}")
            elif text == "e":
                chunks.append(f"{value.day:>2}")
            else:
                chunks.append(value.strftime(f"%{text}"))
        return "".join(chunks)

    def __repr__(self) -> str:
        return f"TimeFormatter({self.pattern!r})"


def _parse_time_pattern(pattern: str) -> list[tuple[bool, str]]:
    parts: list[tuple[bool, str]] = []
    literal: list[str] = []
    index = 0

    while index < len(pattern):
        char = pattern[index]
        if char != "%":
            literal.append(char)
            index += 1
            continue

        if index + 1 >= len(pattern):
            raise InvalidFormatPatternError("time", pattern, "dangling '%' at end of pattern")
        directive = pattern[index + 1]
        if directive not in _TIME_DIRECTIVES:
            raise InvalidFormatPatternError("time", pattern, f"unsupported directive %{directive}")

        if directive == "%":
            literal.append("%")
        else:
            if literal:
                parts.append((False, "".join(literal)))
                literal = []
            parts.append((True, directive))
        index += 2

    if literal:
        parts.append((False, "".join(literal)))
    return parts
