from __future__ import annotations

from typing import Any

import pytest

from core.templates.engine import TemplateEngine, default_engine, emit_source
from core.utils.errors import UnknownFilterError


def _function(source: str, context_name: str = "datum") -> Any:
    namespace = default_engine().source_namespace()
    return eval(f"lambda {context_name}: {source}", namespace)  # noqa: S307


def test_emit_source_without_interpolants() -> None:
    assert _function(emit_source("hello"))({}) == "hello"
    assert _function(emit_source(""))({}) == ""


def test_emit_source_uses_context_name() -> None:
    source = emit_source("{{a}}", "myvar")

    assert "myvar" in source
    assert _function(source, "myvar")({"a": "hello"}) == "hello"


def test_emit_source_collects_referenced_top_level_names() -> None:
    props: dict[str, Any] = {}
    source = emit_source("{{a}} {{b}}", "d", props)

    assert _function(source, "d")({"a": 1, "b": 2, "c": 3, "d": 4}) == "1 2"
    assert "a" in props
    assert "b" in props
    assert "c" not in props
    assert "d" not in props


def test_emit_source_records_only_path_roots() -> None:
    props: dict[str, Any] = {}
    emit_source("{{user.name|upper}} {{user.age}} {{team.city}}", "d", props)

    assert set(props) == {"user", "team"}


def test_emit_source_matches_evaluate() -> None:
    text = "{{a|lower|slice:3,-3|pad:7,middle}}|{{n|number:'.2f'}}|{{missing.x}}"
    context = {"a": "---HeLlO---", "n": 2}
    engine = default_engine()

    emitted = _function(engine.emit_source(text))(context)

    assert emitted == engine.compile(text).evaluate(context)
    assert emitted == " hello |2.00|"


def test_compiled_template_exposes_default_source() -> None:
    template = default_engine().compile("hi {{a}}")

    assert _function(template.source)({"a": "there"}) == "hi there"


@pytest.mark.parametrize("name", ["not valid", "class", "_tpl", " "])
def test_emit_source_rejects_bad_context_names(name: str) -> None:
    with pytest.raises(ValueError, match="Invalid context parameter name"):
        emit_source("{{a}}", name)


def test_emit_source_validates_filters() -> None:
    with pytest.raises(UnknownFilterError):
        TemplateEngine().emit_source("{{a|fake}}")
