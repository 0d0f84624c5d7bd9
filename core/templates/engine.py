"""Template engine facade and module-level API.

Usage:
    from core.templates.engine import compile_template

    greet = compile_template("hello {{ user.name | upper | pad:8 }}")
    greet.evaluate({"user": {"name": "ada"}})

An engine owns its settings, filter registry and a format cache (the
process-wide one unless injected). Compiled templates are memoized by
source text and recompiled after the format cache is cleared.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import MutableMapping
from typing import Any

from core.config.models import EngineSettings
from core.config.settings_loader import load_settings_from_env
from core.filters.registry import FilterRegistry, build_filter_registry
from core.formats.cache import FormatCache, default_format_cache
from core.templates.compiler import (
    RUNTIME_NAME,
    CompiledTemplate,
    SourceRuntime,
    compile_template as _compile,
    generate_source,
    parse_template,
)

logger = logging.getLogger("tmplpipe.engine")


class TemplateEngine:
    """Compiles and memoizes templates against one registry and cache."""

    def __init__(
        self,
        settings: EngineSettings | None = None,
        *,
        registry: FilterRegistry | None = None,
        format_cache: FormatCache | None = None,
    ) -> None:
        self.settings = settings or EngineSettings()
        self.registry = registry or build_filter_registry(
            locale=self.settings.locale,
            format_error_mode=self.settings.format_error_mode,
        )
        self.format_cache = format_cache if format_cache is not None else default_format_cache()
        self._lock = threading.Lock()
        self._compiled: dict[str, tuple[int, CompiledTemplate]] = {}

    def compile(self, text: str) -> CompiledTemplate:
        """Compile ``text`` or return the memoized template."""

        generation = self.format_cache.generation
        if self.settings.memoize:
            with self._lock:
                cached = self._compiled.get(text)
            if cached is not None and cached[0] == generation:
                return cached[1]

        compiled = _compile(
            text,
            self.registry,
            self.format_cache,
            missing_text=self.settings.missing_text,
            context_name=self.settings.default_context_name,
        )
        logger.debug("compiled template %r (fields=%s)", text, sorted(compiled.fields))

        if self.settings.memoize:
            with self._lock:
                self._compiled[text] = (generation, compiled)
        return compiled

    def render(self, text: str, context: Any) -> str:
        """Compile (memoized) and evaluate in one call."""

        return self.compile(text).evaluate(context)

    def emit_source(
        self,
        text: str,
        context_name: str | None = None,
        collected_props: MutableMapping[str, Any] | None = None,
    ) -> str:
        """Return the template as a Python expression over ``context_name``.

        Execute it with :meth:`source_namespace` as globals.
        """

        return generate_source(
            parse_template(text, self.registry),
            self.registry,
            context_name=context_name or self.settings.default_context_name,
            collected_props=collected_props,
            template=text,
        )

    def runtime(self) -> SourceRuntime:
        return SourceRuntime(
            self.registry, self.format_cache, missing_text=self.settings.missing_text
        )

    def source_namespace(self) -> dict[str, Any]:
        return {RUNTIME_NAME: self.runtime()}

    def clear_format_cache(self) -> None:
        self.format_cache.clear()

    def clear_compiled(self) -> None:
        with self._lock:
            self._compiled.clear()

    def compiled_count(self) -> int:
        with self._lock:
            return len(self._compiled)


_default_engine_lock = threading.Lock()
_default_engine: TemplateEngine | None = None


def default_engine() -> TemplateEngine:
    """Return the engine behind the module-level functions.

    Created on first use from ``TMPLPIPE_SETTINGS`` or the packaged defaults.
    """

    global _default_engine
    with _default_engine_lock:
        if _default_engine is None:
            _default_engine = TemplateEngine(load_settings_from_env())
        return _default_engine


def _reset_default_engine_for_tests() -> None:
    global _default_engine
    with _default_engine_lock:
        _default_engine = None


def compile_template(text: str) -> CompiledTemplate:
    """Compile ``text`` with the default engine."""

    return default_engine().compile(text)


def emit_source(
    text: str,
    context_name: str | None = None,
    collected_props: MutableMapping[str, Any] | None = None,
) -> str:
    """Emit source for ``text`` with the default engine."""

    return default_engine().emit_source(text, context_name, collected_props)


def clear_format_cache() -> None:
    """Drop every cached formatter in the process-wide cache."""

    default_format_cache().clear()
