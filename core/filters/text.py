"""String filters: case conversion, trimming, substrings, truncation, padding.

Every filter takes ``(value, args)`` where ``args`` already holds coerced
positional values. ``None`` (an undefined lookup) passes through unchanged.
"""

from __future__ import annotations

from typing import Any

ELLIPSIS = "…"

_TURKIC_LOWER = str.maketrans({"I": "ı", "İ": "i"})
_TURKIC_UPPER = str.maketrans({"i": "İ", "ı": "I"})

_LOWER_TAILORING = {"tr": _TURKIC_LOWER, "az": _TURKIC_LOWER}
_UPPER_TAILORING = {"tr": _TURKIC_UPPER, "az": _TURKIC_UPPER}


def to_text(value: Any) -> str:
    """Stringify a value for filters and final output."""

    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def language_of(locale: str) -> str:
    return locale.replace("-", "_").split("_", 1)[0].lower()


def lower(value: Any, args: tuple[Any, ...]) -> Any:
    if value is None:
        return None
    return to_text(value).lower()


def upper(value: Any, args: tuple[Any, ...]) -> Any:
    if value is None:
        return None
    return to_text(value).upper()


def lower_locale(value: Any, args: tuple[Any, ...], *, locale: str) -> Any:
    if value is None:
        return None
    text = to_text(value)
    table = _LOWER_TAILORING.get(language_of(locale))
    if table is not None:
        text = text.translate(table)
    return text.lower()


def upper_locale(value: Any, args: tuple[Any, ...], *, locale: str) -> Any:
    if value is None:
        return None
    text = to_text(value)
    table = _UPPER_TAILORING.get(language_of(locale))
    if table is not None:
        text = text.translate(table)
    return text.upper()


def trim(value: Any, args: tuple[Any, ...]) -> Any:
    if value is None:
        return None
    return to_text(value).strip()


def left(value: Any, args: tuple[Any, ...]) -> Any:
    if value is None:
        return None
    return to_text(value)[: max(args[0], 0)]


def right(value: Any, args: tuple[Any, ...]) -> Any:
    if value is None:
        return None
    count = args[0]
    return to_text(value)[-count:] if count > 0 else ""


def mid(value: Any, args: tuple[Any, ...]) -> Any:
    if value is None:
        return None
    text = to_text(value)
    start, count = args
    if count <= 0:
        return ""
    if start < 0:
        start = max(len(text) + start, 0)
    return text[start : start + count]


def slice_text(value: Any, args: tuple[Any, ...]) -> Any:
    if value is None:
        return None
    start, end = args
    return to_text(value)[start:end]


def length(value: Any, args: tuple[Any, ...]) -> int:
    return len(to_text(value))


def truncate(value: Any, args: tuple[Any, ...]) -> Any:
    """Shorten to ``n`` characters including the ellipsis."""

    if value is None:
        return None
    text = to_text(value)
    width, direction = args
    if len(text) <= width:
        return text

    keep = max(width - len(ELLIPSIS), 0)
    if direction == "left":
        return ELLIPSIS + text[len(text) - keep :]
    if direction == "middle":
        head = (keep + 1) // 2
        tail = keep - head
        return text[:head] + ELLIPSIS + (text[len(text) - tail :] if tail else "")
    return text[:keep] + ELLIPSIS


def pad(value: Any, args: tuple[Any, ...]) -> Any:
    """Pad with spaces to width ``n``; odd middle padding goes right."""

    if value is None:
        return None
    text = to_text(value)
    width, mode = args
    missing = width - len(text)
    if missing <= 0:
        return text

    if mode == "left":
        return " " * missing + text
    if mode == "middle":
        before = missing // 2
        return " " * before + text + " " * (missing - before)
    return text + " " * missing
