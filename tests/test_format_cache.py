from __future__ import annotations

import threading

import pytest

from core.formats.cache import FormatCache, default_format_cache
from core.formats.formatters import NumberFormatter, TimeFormatter
from core.utils.errors import InvalidFormatPatternError


def test_get_formatter_returns_same_instance() -> None:
    cache = FormatCache()

    first = cache.get_formatter("number", ".3f")
    second = cache.get_formatter("number", ".3f")

    assert first is second
    assert isinstance(first, NumberFormatter)
    assert len(cache) == 1


def test_families_are_separate_namespaces() -> None:
    cache = FormatCache()

    number = cache.get_formatter("number", "%")
    time = cache.get_formatter("time", "%%")

    assert isinstance(number, NumberFormatter)
    assert isinstance(time, TimeFormatter)
    assert list(cache.format_map("number")) == ["%"]
    assert list(cache.format_map("time")) == ["%%"]
    assert len(cache) == 2


def test_entries_keep_construction_order() -> None:
    cache = FormatCache()
    cache.get_formatter("number", ".1f")
    cache.get_formatter("time", "%Y")
    cache.get_formatter("number", ".1f")
    cache.get_formatter("number", ",")

    assert [(entry.family, entry.pattern) for entry in cache.entries()] == [
        ("number", ".1f"),
        ("time", "%Y"),
        ("number", ","),
    ]


def test_clear_drops_entries_and_bumps_generation() -> None:
    cache = FormatCache()
    held = cache.get_formatter("number", ".3f")
    generation = cache.generation

    cache.clear()

    assert len(cache) == 0
    assert cache.format_map("number") == {}
    assert cache.generation == generation + 1
    assert held(1) == "1.000"
    assert cache.get_formatter("number", ".3f") is not held


def test_invalid_pattern_is_not_cached() -> None:
    cache = FormatCache()

    with pytest.raises(InvalidFormatPatternError):
        cache.get_formatter("time", "%Q")

    assert len(cache) == 0


def test_unknown_family_raises_value_error() -> None:
    with pytest.raises(ValueError, match="Unsupported format family"):
        FormatCache().get_formatter("currency", "$")  # type: ignore[arg-type]


def test_concurrent_lookups_construct_once() -> None:
    cache = FormatCache()
    results: list[object] = []
    barrier = threading.Barrier(8)

    def worker() -> None:
        barrier.wait()
        results.append(cache.get_formatter("number", ".2f"))

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(cache) == 1
    assert all(result is results[0] for result in results)


def test_default_format_cache_is_shared() -> None:
    assert default_format_cache() is default_format_cache()
