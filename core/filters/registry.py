"""Filter registry: name -> transform function plus parameter declarations."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from functools import partial
from typing import Any, Literal

from core.filters import text
from core.filters.formatting import FormatErrorMode, format_number, format_time
from core.templates.models import Arg, ArgKind
from core.utils.errors import FilterArgumentError, UnknownFilterError

FilterFunc = Callable[[Any, tuple[Any, ...]], Any]
ParamKind = Literal["int", "choice", "pattern"]

_ALIGNMENTS = ("left", "middle", "right")


@dataclass(frozen=True)
class Param:
    """Declaration of one positional filter parameter."""

    name: str
    kind: ParamKind
    required: bool = True
    default: Any = None
    choices: tuple[str, ...] = ()


@dataclass(frozen=True)
class FilterSpec:
    """A registered filter."""

    name: str
    func: FilterFunc
    params: tuple[Param, ...] = ()
    format_family: Literal["number", "time"] | None = None
    description: str = ""


FilterRegistry = Mapping[str, FilterSpec]


def build_filter_registry(
    *, locale: str = "en", format_error_mode: FormatErrorMode = "verbatim"
) -> dict[str, FilterSpec]:
    """Build the fixed filter table bound to locale and format-error settings."""

    count = Param("n", "int")
    specs = [
        FilterSpec("lower", text.lower, description="Lowercase"),
        FilterSpec("upper", text.upper, description="Uppercase"),
        FilterSpec(
            "lower-locale",
            partial(text.lower_locale, locale=locale),
            description=f"Lowercase using {locale} rules",
        ),
        FilterSpec(
            "upper-locale",
            partial(text.upper_locale, locale=locale),
            description=f"Uppercase using {locale} rules",
        ),
        FilterSpec("trim", text.trim, description="Strip surrounding whitespace"),
        FilterSpec("left", text.left, (count,), description="First n characters"),
        FilterSpec("right", text.right, (count,), description="Last n characters"),
        FilterSpec(
            "mid",
            text.mid,
            (Param("start", "int"), Param("length", "int")),
            description="length characters from start",
        ),
        FilterSpec(
            "slice",
            text.slice_text,
            (Param("start", "int"), Param("end", "int", required=False)),
            description="Python slice; negative indices count from the end",
        ),
        FilterSpec("length", text.length, description="Length of the string form"),
        FilterSpec(
            "truncate",
            text.truncate,
            (count, Param("direction", "choice", False, "right", _ALIGNMENTS)),
            description="Shorten to n characters with an ellipsis",
        ),
        FilterSpec(
            "pad",
            text.pad,
            (count, Param("mode", "choice", False, "right", _ALIGNMENTS)),
            description="Pad with spaces to width n",
        ),
        FilterSpec(
            "number",
            partial(format_number, error_mode=format_error_mode),
            (Param("pattern", "pattern"),),
            format_family="number",
            description="Format a number with a quoted format-spec pattern",
        ),
        FilterSpec(
            "time",
            partial(format_time, error_mode=format_error_mode),
            (Param("pattern", "pattern"),),
            format_family="time",
            description="Format a date with a quoted strftime pattern",
        ),
    ]
    return {spec.name: spec for spec in specs}


def get_filter(registry: FilterRegistry, name: str, *, template: str | None = None) -> FilterSpec:
    """Look up a filter by name."""

    try:
        return registry[name]
    except KeyError as exc:
        raise UnknownFilterError(name, template=template) from exc


def list_filters(registry: FilterRegistry) -> list[str]:
    """Return filter names in stable order."""

    return sorted(registry)


def coerce_arguments(
    spec: FilterSpec, args: tuple[Arg, ...], *, template: str | None = None
) -> tuple[Any, ...]:
    """Validate parsed arguments against ``spec`` and fill in defaults.

    Pattern parameters are returned as their string; binding them to a
    formatter is the compiler's job.
    """

    required = sum(1 for param in spec.params if param.required)
    allowed = len(spec.params)
    if not required <= len(args) <= allowed:
        expected = str(required) if required == allowed else f"{required}-{allowed}"
        raise FilterArgumentError(
            spec.name, f"expected {expected} argument(s), got {len(args)}", template=template
        )

    values: list[Any] = []
    for index, param in enumerate(spec.params):
        if index >= len(args):
            values.append(param.default)
            continue
        values.append(_coerce_one(spec.name, param, args[index], template))
    return tuple(values)


def _coerce_one(filter_name: str, param: Param, arg: Arg, template: str | None) -> Any:
    if param.kind == "int":
        if arg.kind is not ArgKind.NUMBER:
            raise FilterArgumentError(
                filter_name, f"{param.name} must be a number, got {arg.raw}", template=template
            )
        if isinstance(arg.value, float) and not arg.value.is_integer():
            raise FilterArgumentError(
                filter_name, f"{param.name} must be an integer, got {arg.raw}", template=template
            )
        return int(arg.value)

    if param.kind == "choice":
        value = str(arg.value)
        if arg.kind is ArgKind.NUMBER or value not in param.choices:
            raise FilterArgumentError(
                filter_name,
                f"{param.name} must be one of {', '.join(param.choices)}, got {arg.raw}",
                template=template,
            )
        return value

    return str(arg.value)
