"""Parser for the body of one ``{{ path | filter:arg, arg | ... }}`` token."""

from __future__ import annotations

import keyword
import re
from collections.abc import Callable

from core.filters.registry import FilterRegistry, get_filter
from core.templates.models import Arg, ArgKind, FilterInvocation, Interpolation, PropertyPath
from core.utils.errors import TemplateSyntaxError, UnquotedFormatArgumentError

_NUMBER_RE = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")
_INDEX_RE = re.compile(r"\d+")
_QUOTES = frozenset("'\"")

_Fail = Callable[[str], TemplateSyntaxError]


def parse_interpolation(
    raw: str,
    registry: FilterRegistry,
    *,
    template: str | None = None,
    position: int | None = None,
) -> Interpolation:
    """Parse one token's text into a property path and filter pipeline.

    Rules:
    - ``|`` and ``,`` inside quoted arguments are not separators.
    - Whitespace around ``|``, ``:`` and ``,`` is ignored.
    - Quoted arguments are taken verbatim between matching quotes.
    - Bare arguments are numbers when fully numeric, keywords otherwise.

    Raises:
        TemplateSyntaxError: malformed path, filter or argument.
        UnknownFilterError: filter name not in ``registry``.
        UnquotedFormatArgumentError: ``number``/``time`` with a bare pattern.
    """

    def fail(message: str) -> TemplateSyntaxError:
        return TemplateSyntaxError(message, template=template, position=position)

    parts = [part.strip() for part in _split_top_level(raw, "|", fail)]
    path = _parse_path(parts[0], fail)

    pipeline: list[FilterInvocation] = []
    for part in parts[1:]:
        name, separator, arg_text = part.partition(":")
        name = name.strip()
        if not name:
            raise fail(f"Empty filter name in {raw.strip()!r}")

        spec = get_filter(registry, name, template=template)
        args = _parse_args(arg_text, fail) if separator else ()

        if spec.format_family is not None:
            for arg in args:
                if arg.kind is not ArgKind.STRING:
                    raise UnquotedFormatArgumentError(name, arg.raw, template=template)

        pipeline.append(FilterInvocation(name=name, args=args))

    return Interpolation(path=path, pipeline=tuple(pipeline))


def _parse_path(text: str, fail: _Fail) -> PropertyPath:
    if not text:
        raise fail("Missing property path")

    parts: list[str | int] = []
    for index, element in enumerate(text.split(".")):
        element = element.strip()
        if index > 0 and _INDEX_RE.fullmatch(element):
            parts.append(int(element))
            continue
        if not element.isidentifier() or keyword.iskeyword(element):
            raise fail(f"Invalid property path: {text!r}")
        parts.append(element)
    return PropertyPath(tuple(parts))


def _parse_args(text: str, fail: _Fail) -> tuple[Arg, ...]:
    args: list[Arg] = []
    for token in _split_top_level(text, ",", fail):
        token = token.strip()
        if not token:
            raise fail(f"Empty filter argument in {text.strip()!r}")

        if token[0] in _QUOTES:
            closing = token.find(token[0], 1)
            if closing != len(token) - 1:
                raise fail(f"Unexpected text after quoted argument: {token!r}")
            args.append(Arg(ArgKind.STRING, token[1:-1], token))
        elif _NUMBER_RE.fullmatch(token):
            number = float(token) if any(c in token for c in ".eE") else int(token)
            args.append(Arg(ArgKind.NUMBER, number, token))
        else:
            args.append(Arg(ArgKind.KEYWORD, token, token))
    return tuple(args)


def _split_top_level(text: str, separator: str, fail: _Fail) -> list[str]:
    """Split on ``separator`` outside of single- or double-quoted runs."""

    pieces: list[str] = []
    current: list[str] = []
    quote: str | None = None

    for char in text:
        if quote is not None:
            current.append(char)
            if char == quote:
                quote = None
        elif char in _QUOTES:
            quote = char
            current.append(char)
        elif char == separator:
            pieces.append("".join(current))
            current = []
        else:
            current.append(char)

    if quote is not None:
        raise fail(f"Unterminated quote in {text.strip()!r}")
    pieces.append("".join(current))
    return pieces
