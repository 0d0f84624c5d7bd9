"""Compile parsed templates into reusable evaluators and source expressions.

The segment tuple is the single representation of a template. Evaluation
interprets it directly; ``generate_source`` serializes the same segments
into a Python expression that calls back into a :class:`SourceRuntime`.
"""

from __future__ import annotations

import keyword
from collections.abc import Mapping, MutableMapping, Sequence
from dataclasses import dataclass
from typing import Any

from core.filters.registry import FilterRegistry, FilterSpec, coerce_arguments, get_filter
from core.filters.text import to_text
from core.formats.cache import FormatCache
from core.templates.interpolation_parser import parse_interpolation
from core.templates.models import (
    BoundFilter,
    BoundInterpolation,
    FilterInvocation,
    Literal,
    PropertyPath,
    Segment,
)
from core.templates.tokenizer import tokenize

RUNTIME_NAME = "_tpl"
DEFAULT_CONTEXT_NAME = "datum"


@dataclass(frozen=True)
class CompiledTemplate:
    """Immutable, context-independent result of compiling a template string."""

    text: str
    segments: tuple[Segment, ...]
    program: tuple[str | BoundInterpolation, ...]
    fields: frozenset[str]
    source: str
    missing_text: str = ""

    def evaluate(self, context: Any) -> str:
        """Render the template against ``context``."""

        chunks: list[str] = []
        for step in self.program:
            if isinstance(step, str):
                chunks.append(step)
                continue
            value = resolve_path(context, step.path)
            for stage in step.stages:
                value = stage.func(value, stage.args)
            chunks.append(self.missing_text if value is None else to_text(value))
        return "".join(chunks)

    __call__ = evaluate


def parse_template(text: str, registry: FilterRegistry) -> tuple[Segment, ...]:
    """Tokenize and parse ``text`` into literal and interpolation segments."""

    segments: list[Segment] = []
    for span in tokenize(text):
        if span.kind == "literal":
            segments.append(Literal(span.text))
        else:
            segments.append(
                parse_interpolation(span.text, registry, template=text, position=span.start)
            )
    return tuple(segments)


def compile_template(
    text: str,
    registry: FilterRegistry,
    format_cache: FormatCache,
    *,
    missing_text: str = "",
    context_name: str = DEFAULT_CONTEXT_NAME,
) -> CompiledTemplate:
    """Compile ``text``, binding filters and resolving cached formatters."""

    segments = parse_template(text, registry)
    program: list[str | BoundInterpolation] = []
    fields: set[str] = set()

    for segment in segments:
        if isinstance(segment, Literal):
            program.append(segment.text)
            continue
        fields.add(segment.path.root)
        stages = tuple(
            _bind_filter(get_filter(registry, invocation.name), invocation, format_cache, text)
            for invocation in segment.pipeline
        )
        program.append(BoundInterpolation(path=segment.path, stages=stages))

    source = generate_source(segments, registry, context_name=context_name, template=text)
    return CompiledTemplate(
        text=text,
        segments=segments,
        program=tuple(program),
        fields=frozenset(fields),
        source=source,
        missing_text=missing_text,
    )


def generate_source(
    segments: Sequence[Segment],
    registry: FilterRegistry,
    *,
    context_name: str = DEFAULT_CONTEXT_NAME,
    collected_props: MutableMapping[str, Any] | None = None,
    template: str | None = None,
) -> str:
    """Serialize segments into a Python expression over ``context_name``.

    The expression expects a :class:`SourceRuntime` bound to ``_tpl``.
    Top-level field names are recorded in ``collected_props`` when given.
    """

    if (
        not context_name.isidentifier()
        or keyword.iskeyword(context_name)
        or context_name == RUNTIME_NAME
    ):
        raise ValueError(f"Invalid context parameter name: {context_name!r}")

    pieces: list[str] = []
    for segment in segments:
        if isinstance(segment, Literal):
            if segment.text:
                pieces.append(repr(segment.text))
            continue

        if collected_props is not None:
            collected_props[segment.path.root] = True
        lookup_args = ", ".join([context_name, *(repr(part) for part in segment.path.parts)])
        expr = f"{RUNTIME_NAME}.lookup({lookup_args})"
        if segment.pipeline:
            stages = ", ".join(
                repr(_source_stage(registry, invocation, template))
                for invocation in segment.pipeline
            )
            expr = f"{RUNTIME_NAME}.pipe({expr}, {stages})"
        pieces.append(f"{RUNTIME_NAME}.text({expr})")

    if not pieces:
        return "''"
    return " + ".join(pieces)


def resolve_path(context: Any, path: PropertyPath) -> Any:
    """Walk ``path`` through mappings, sequences and public attributes.

    Any missing step yields ``None``.
    """

    value = context
    for part in path.parts:
        if value is None:
            return None
        if isinstance(value, Mapping):
            value = value.get(part, value.get(str(part)) if isinstance(part, int) else None)
        elif isinstance(part, int):
            if isinstance(value, Sequence) and not isinstance(value, (str, bytes)):
                value = value[part] if part < len(value) else None
            else:
                value = None
        elif part.startswith("_"):
            return None
        else:
            value = getattr(value, part, None)
    return value


class SourceRuntime:
    """Helpers referenced by generated source expressions as ``_tpl``."""

    def __init__(
        self,
        registry: FilterRegistry,
        format_cache: FormatCache,
        *,
        missing_text: str = "",
    ) -> None:
        self.registry = registry
        self.format_cache = format_cache
        self.missing_text = missing_text

    def lookup(self, context: Any, *parts: str | int) -> Any:
        return resolve_path(context, PropertyPath(tuple(parts)))

    def pipe(self, value: Any, *stages: tuple[str, tuple[Any, ...]]) -> Any:
        for name, args in stages:
            spec = get_filter(self.registry, name)
            if spec.format_family is not None:
                formatter = self.format_cache.get_formatter(spec.format_family, args[0])
                args = (formatter, *args[1:])
            value = spec.func(value, args)
        return value

    def text(self, value: Any) -> str:
        return self.missing_text if value is None else to_text(value)


def _bind_filter(
    spec: FilterSpec,
    invocation: FilterInvocation,
    format_cache: FormatCache,
    template: str,
) -> BoundFilter:
    args = coerce_arguments(spec, invocation.args, template=template)
    if spec.format_family is not None:
        formatter = format_cache.get_formatter(spec.format_family, args[0])
        args = (formatter, *args[1:])
    return BoundFilter(name=spec.name, func=spec.func, args=args)


def _source_stage(
    registry: FilterRegistry, invocation: FilterInvocation, template: str | None
) -> tuple[str, tuple[Any, ...]]:
    spec = get_filter(registry, invocation.name, template=template)
    return (spec.name, coerce_arguments(spec, invocation.args, template=template))
