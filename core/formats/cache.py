"""Process-wide cache of number/time formatter objects keyed by pattern."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from typing import Literal

from core.formats.formatters import Formatter, NumberFormatter, TimeFormatter

logger = logging.getLogger("tmplpipe.formats")

FormatFamily = Literal["number", "time"]

_FORMATTER_FACTORIES: dict[str, Callable[[str], Formatter]] = {
    "number": NumberFormatter,
    "time": TimeFormatter,
}


@dataclass(frozen=True)
class FormatCacheEntry:
    """One constructed formatter for a ``(family, pattern)`` pair."""

    family: FormatFamily
    pattern: str
    formatter: Formatter


class FormatCache:
    """Lookup-or-construct store shared by every compiled template.

    Number and time patterns live in separate namespaces. The check and
    insert happen under one lock, so a pattern is constructed at most once
    between two ``clear()`` calls.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entries: list[FormatCacheEntry] = []
        self._by_key: dict[tuple[str, str], FormatCacheEntry] = {}
        self._generation = 0

    def get_formatter(self, family: FormatFamily, pattern: str) -> Formatter:
        """Return the cached formatter, constructing it on first request."""

        try:
            factory = _FORMATTER_FACTORIES[family]
        except KeyError as exc:
            raise ValueError(f"Unsupported format family: {family}") from exc

        with self._lock:
            entry = self._by_key.get((family, pattern))
            if entry is None:
                entry = FormatCacheEntry(family=family, pattern=pattern, formatter=factory(pattern))
                self._by_key[(family, pattern)] = entry
                self._entries.append(entry)
                logger.debug("constructed %s formatter for pattern %r", family, pattern)
        return entry.formatter

    def clear(self) -> None:
        """Drop all entries; formatters already handed out keep working."""

        with self._lock:
            dropped = len(self._entries)
            self._entries.clear()
            self._by_key.clear()
            self._generation += 1
        logger.info("format cache cleared (%d entries dropped)", dropped)

    def entries(self) -> list[FormatCacheEntry]:
        """Return entries in construction order."""

        with self._lock:
            return list(self._entries)

    def format_map(self, family: FormatFamily) -> dict[str, FormatCacheEntry]:
        """Return ``pattern -> entry`` for one family."""

        with self._lock:
            return {entry.pattern: entry for entry in self._entries if entry.family == family}

    @property
    def generation(self) -> int:
        """Counter bumped by every ``clear()``."""

        with self._lock:
            return self._generation

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


_default_cache_lock = threading.Lock()
_default_cache: FormatCache | None = None


def default_format_cache() -> FormatCache:
    """Return the lazily created process-wide cache."""

    global _default_cache
    with _default_cache_lock:
        if _default_cache is None:
            _default_cache = FormatCache()
        return _default_cache
