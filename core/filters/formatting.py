"""Number and time filters backed by cached formatter objects."""

from __future__ import annotations

import logging
import numbers
from datetime import date
from decimal import Decimal
from typing import Any, Literal

from core.filters.text import to_text
from core.utils.errors import FilterValueError

logger = logging.getLogger("tmplpipe.filters")

FormatErrorMode = Literal["verbatim", "raise"]


def format_number(value: Any, args: tuple[Any, ...], *, error_mode: FormatErrorMode) -> Any:
    """Apply the bound number formatter; ``args[0]`` is the formatter.

    Values the formatter cannot represent (``%c`` out of range, a NaN under
    an integer type) fall back like values of the wrong kind.
    """

    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (numbers.Real, Decimal)):
        return _unformattable("number", value, error_mode)
    try:
        return args[0](value)
    except (ValueError, TypeError, OverflowError):
        return _unformattable("number", value, error_mode)


def format_time(value: Any, args: tuple[Any, ...], *, error_mode: FormatErrorMode) -> Any:
    """Apply the bound time formatter to a ``date`` or ``datetime``."""

    if value is None:
        return None
    if not isinstance(value, date):
        return _unformattable("time", value, error_mode)
    try:
        return args[0](value)
    except (ValueError, OverflowError):
        return _unformattable("time", value, error_mode)


def _unformattable(filter_name: str, value: Any, error_mode: FormatErrorMode) -> str:
    if error_mode == "raise":
        raise FilterValueError(filter_name, value)
    logger.warning(
        "filter %s received %s; emitting value verbatim", filter_name, type(value).__name__
    )
    return to_text(value)
