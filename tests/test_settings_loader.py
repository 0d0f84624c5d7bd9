from __future__ import annotations

from pathlib import Path

import pytest

from core.config.settings_loader import SETTINGS_ENV_VAR, load_settings, load_settings_from_env


def test_load_default_settings() -> None:
    settings = load_settings()

    assert settings.missing_text == ""
    assert settings.locale == "en"
    assert settings.format_error_mode == "verbatim"
    assert settings.memoize is True
    assert settings.default_context_name == "datum"


def test_load_settings_partial_file_uses_defaults(tmp_path: Path) -> None:
    path = tmp_path / "settings.yaml"
    path.write_text("locale: tr_TR\nmissing_text: '-'\n", encoding="utf-8")

    settings = load_settings(path)

    assert settings.locale == "tr_TR"
    assert settings.missing_text == "-"
    assert settings.memoize is True


def test_load_settings_empty_file_uses_defaults(tmp_path: Path) -> None:
    path = tmp_path / "settings.yaml"
    path.write_text("", encoding="utf-8")

    assert load_settings(path).locale == "en"


def test_load_settings_raises_for_missing_file(tmp_path: Path) -> None:
    with pytest.raises(ValueError, match="Settings file not found"):
        load_settings(tmp_path / "nope.yaml")


def test_load_settings_raises_for_invalid_yaml(tmp_path: Path) -> None:
    path = tmp_path / "settings.yaml"
    path.write_text("locale: [unclosed\n", encoding="utf-8")

    with pytest.raises(ValueError, match="Invalid YAML"):
        load_settings(path)


def test_load_settings_raises_for_non_mapping(tmp_path: Path) -> None:
    path = tmp_path / "settings.yaml"
    path.write_text("- a\n- b\n", encoding="utf-8")

    with pytest.raises(ValueError, match="must contain a mapping"):
        load_settings(path)


@pytest.mark.parametrize(
    "content",
    [
        "format_error_mode: loud\n",
        "unknown_key: 1\n",
        "default_context_name: 'not valid'\n",
        "default_context_name: _tpl\n",
    ],
)
def test_load_settings_raises_for_invalid_schema(tmp_path: Path, content: str) -> None:
    path = tmp_path / "settings.yaml"
    path.write_text(content, encoding="utf-8")

    with pytest.raises(ValueError, match="Invalid settings schema"):
        load_settings(path)


def test_load_settings_from_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    path = tmp_path / "settings.yaml"
    path.write_text("missing_text: '?'\n", encoding="utf-8")
    monkeypatch.setenv(SETTINGS_ENV_VAR, str(path))

    assert load_settings_from_env().missing_text == "?"

    monkeypatch.delenv(SETTINGS_ENV_VAR)
    assert load_settings_from_env().missing_text == ""
