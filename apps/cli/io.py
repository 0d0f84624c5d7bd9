"""CLI I/O helpers: context loading and atomic output writing."""

from __future__ import annotations

import json
import tempfile
from pathlib import Path
from typing import Any

import yaml  # type: ignore[import-untyped]

_YAML_SUFFIXES = {".yaml", ".yml"}


def load_context(path: Path | None) -> Any:
    """Load a render context from a JSON or YAML file; ``None`` gives ``{}``."""

    if path is None:
        return {}

    raw_text = path.read_text(encoding="utf-8")
    if path.suffix.lower() in _YAML_SUFFIXES:
        try:
            return yaml.safe_load(raw_text)
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML in context file: {path}") from exc

    try:
        return json.loads(raw_text)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in context file: {path}") from exc


def read_template(text: str | None, path: Path | None) -> str:
    """Return template text from exactly one of ``text`` or ``path``."""

    if (text is None) == (path is None):
        raise ValueError("Provide exactly one of --template or --template-file")
    if path is not None:
        return path.read_text(encoding="utf-8")
    return text or ""


def write_text_atomic(path: Path, content: str) -> None:
    """Write rendered output atomically using a temporary file + replace."""

    path.parent.mkdir(parents=True, exist_ok=True)
    with tempfile.NamedTemporaryFile(
        mode="w",
        encoding="utf-8",
        dir=path.parent,
        delete=False,
        prefix=f"{path.name}.",
        suffix=".tmp",
    ) as tmp:
        tmp_path = Path(tmp.name)
        tmp.write(content)

    tmp_path.replace(path)


def dump_json(payload: dict[str, Any]) -> str:
    return json.dumps(payload, ensure_ascii=False, sort_keys=True, separators=(",", ":"))
