from __future__ import annotations

import logging
from datetime import date
from pathlib import Path

import pytest

from core.config.models import EngineSettings
from core.config.settings_loader import SETTINGS_ENV_VAR
from core.formats.cache import FormatCache
from core.templates.engine import (
    TemplateEngine,
    _reset_default_engine_for_tests,
    compile_template,
    default_engine,
)
from core.utils.errors import FilterValueError


def test_compile_is_memoized_by_text() -> None:
    engine = TemplateEngine(format_cache=FormatCache())

    first = engine.compile("{{a|upper}}")

    assert engine.compile("{{a|upper}}") is first
    assert engine.compiled_count() == 1


def test_memoization_can_be_disabled() -> None:
    engine = TemplateEngine(EngineSettings(memoize=False), format_cache=FormatCache())

    assert engine.compile("{{a}}") is not engine.compile("{{a}}")
    assert engine.compiled_count() == 0


def test_clearing_format_cache_forces_recompile() -> None:
    cache = FormatCache()
    engine = TemplateEngine(format_cache=cache)
    first = engine.compile("{{a|number:'.1f'}}")

    engine.clear_format_cache()
    second = engine.compile("{{a|number:'.1f'}}")

    assert second is not first
    assert len(cache) == 1
    assert first.evaluate({"a": 2}) == second.evaluate({"a": 2}) == "2.0"


def test_engines_sharing_a_cache_share_formatters() -> None:
    cache = FormatCache()
    left = TemplateEngine(format_cache=cache).compile("{{a|number:',d'}}")
    right = TemplateEngine(format_cache=cache).compile("total {{b|number:',d'}}")

    assert len(cache) == 1
    assert left.program[0].stages[0].args[0] is right.program[1].stages[0].args[0]


def test_clear_compiled_drops_memo() -> None:
    engine = TemplateEngine(format_cache=FormatCache())
    first = engine.compile("{{a}}")

    engine.clear_compiled()

    assert engine.compile("{{a}}") is not first


def test_missing_text_setting_renders_undefined_values() -> None:
    engine = TemplateEngine(EngineSettings(missing_text="n/a"), format_cache=FormatCache())

    assert engine.render("[{{a.b|upper}}]", {"a": {}}) == "[n/a]"
    assert engine.render("[{{a|length}}]", {}) == "[0]"


def test_locale_setting_drives_locale_filters() -> None:
    engine = TemplateEngine(EngineSettings(locale="tr_TR"), format_cache=FormatCache())

    assert engine.render("{{city|upper-locale}}", {"city": "izmir"}) == "İZMIR"
    assert engine.render("{{city|upper}}", {"city": "izmir"}) == "IZMIR"


def test_raise_mode_surfaces_filter_value_errors() -> None:
    engine = TemplateEngine(EngineSettings(format_error_mode="raise"), format_cache=FormatCache())

    with pytest.raises(FilterValueError) as exc_info:
        engine.render("{{a|number:'.2f'}}", {"a": "abc"})

    assert exc_info.value.filter_name == "number"
    assert engine.render("{{a|time:'%Y'}}", {"a": date(2020, 5, 1)}) == "2020"


def test_verbatim_mode_logs_warning(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.WARNING, logger="tmplpipe.filters")
    engine = TemplateEngine(format_cache=FormatCache())

    assert engine.render("{{a|time:'%Y'}}", {"a": "soon"}) == "soon"
    assert any("time" in record.message for record in caplog.records)


def test_custom_default_context_name_is_used_for_source() -> None:
    engine = TemplateEngine(
        EngineSettings(default_context_name="row"), format_cache=FormatCache()
    )

    assert engine.compile("{{a}}").source == "_tpl.text(_tpl.lookup(row, 'a'))"
    assert engine.emit_source("x") == "'x'"


def test_default_engine_loads_settings_from_env(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    settings = tmp_path / "settings.yaml"
    settings.write_text("missing_text: '?'\ndefault_context_name: row\n", encoding="utf-8")
    monkeypatch.setenv(SETTINGS_ENV_VAR, str(settings))
    _reset_default_engine_for_tests()
    try:
        assert default_engine().settings.missing_text == "?"
        assert compile_template("[{{nope}}]").evaluate({}) == "[?]"
        assert compile_template("{{a}}").source == "_tpl.text(_tpl.lookup(row, 'a'))"
    finally:
        _reset_default_engine_for_tests()
