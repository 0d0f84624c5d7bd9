"""Data models for tokenized, parsed and compiled templates."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Literal as LiteralType

SpanKind = LiteralType["literal", "interpolation"]


@dataclass(frozen=True)
class Span:
    """One tokenizer span; interpolation text excludes the delimiters."""

    kind: SpanKind
    text: str
    start: int
    end: int


class ArgKind(str, Enum):
    """Tag for parsed filter arguments."""

    STRING = "string"
    NUMBER = "number"
    KEYWORD = "keyword"


@dataclass(frozen=True)
class Arg:
    """A filter argument: quoted string, bare number or bare keyword."""

    kind: ArgKind
    value: str | int | float
    raw: str = ""


@dataclass(frozen=True)
class FilterInvocation:
    """A named filter with its positional arguments."""

    name: str
    args: tuple[Arg, ...] = ()


@dataclass(frozen=True)
class PropertyPath:
    """Dotted lookup path; only the first element is a context field."""

    parts: tuple[str | int, ...]

    @property
    def root(self) -> str:
        return str(self.parts[0])

    def __str__(self) -> str:
        return ".".join(str(part) for part in self.parts)


@dataclass(frozen=True)
class Literal:
    """Literal template text emitted unchanged."""

    text: str


@dataclass(frozen=True)
class Interpolation:
    """A property lookup followed by a filter pipeline."""

    path: PropertyPath
    pipeline: tuple[FilterInvocation, ...] = ()


Segment = Literal | Interpolation


@dataclass(frozen=True)
class BoundFilter:
    """A filter invocation resolved against the registry and format cache."""

    name: str
    func: Callable[[Any, tuple[Any, ...]], Any]
    args: tuple[Any, ...] = ()


@dataclass(frozen=True)
class BoundInterpolation:
    """Evaluation-ready form of :class:`Interpolation`."""

    path: PropertyPath
    stages: tuple[BoundFilter, ...] = field(default_factory=tuple)
