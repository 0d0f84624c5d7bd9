"""Typer CLI entrypoint for tmplpipe."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer

from apps.cli.io import dump_json, load_context, read_template, write_text_atomic
from core.config.models import EngineSettings
from core.config.settings_loader import load_settings
from core.filters.registry import list_filters
from core.formats.cache import FormatCache
from core.templates.engine import TemplateEngine
from core.utils.errors import TemplateError

app = typer.Typer(help="Template pipeline CLI", rich_markup_mode=None)

TemplateOption = Annotated[str | None, typer.Option("--template", help="Template text.")]
TemplateFileOption = Annotated[
    Path | None,
    typer.Option("--template-file", exists=True, dir_okay=False, file_okay=True),
]
SettingsOption = Annotated[
    Path | None,
    typer.Option("--settings", exists=True, dir_okay=False, file_okay=True),
]


@app.callback()
def cli_callback() -> None:
    """CLI root callback to keep subcommands explicit."""


@app.command("render")
def render_command(
    template: TemplateOption = None,
    template_file: TemplateFileOption = None,
    context: Annotated[
        Path | None,
        typer.Option("--context", exists=True, dir_okay=False, file_okay=True),
    ] = None,
    out: Annotated[Path | None, typer.Option("--out", help="Write output to a file.")] = None,
    settings: SettingsOption = None,
) -> None:
    """Render a template against a JSON or YAML context file."""

    engine = _build_engine(settings)
    text = _read_template_or_exit(template, template_file)

    try:
        context_value = load_context(context)
    except ValueError as exc:
        typer.echo(f"ERROR: {exc}")
        raise typer.Exit(code=1) from exc

    try:
        rendered = engine.render(text, context_value)
    except TemplateError as exc:
        typer.echo(f"ERROR: {type(exc).__name__}: {exc}")
        raise typer.Exit(code=3) from exc
    except ValueError as exc:
        typer.echo(f"ERROR: {type(exc).__name__}: {exc}")
        raise typer.Exit(code=1) from exc

    if out is None:
        typer.echo(rendered)
        return
    write_text_atomic(out, rendered)
    typer.echo(f"INFO: wrote {out}")


@app.command("source")
def source_command(
    template: TemplateOption = None,
    template_file: TemplateFileOption = None,
    context_name: Annotated[str | None, typer.Option("--context-name")] = None,
    settings: SettingsOption = None,
) -> None:
    """Print the generated source expression and the fields it reads."""

    engine = _build_engine(settings)
    text = _read_template_or_exit(template, template_file)

    fields: dict[str, bool] = {}
    try:
        source = engine.emit_source(text, context_name, fields)
    except TemplateError as exc:
        typer.echo(f"ERROR: {type(exc).__name__}: {exc}")
        raise typer.Exit(code=3) from exc
    except ValueError as exc:
        typer.echo(f"ERROR: {exc}")
        raise typer.Exit(code=1) from exc

    typer.echo(source)
    typer.echo(f"INFO: fields={','.join(sorted(fields))}")


@app.command("filters")
def filters_command(settings: SettingsOption = None) -> None:
    """List registered filters."""

    engine = _build_engine(settings)
    for name in list_filters(engine.registry):
        spec = engine.registry[name]
        params = ",".join(
            param.name if param.required else f"[{param.name}]" for param in spec.params
        )
        typer.echo(f"{name}\t{params}\t{spec.description}")


@app.command("cache")
def cache_command(
    template: Annotated[list[str], typer.Option("--template", help="Template text; repeatable.")],
    settings: SettingsOption = None,
) -> None:
    """Compile templates into a fresh cache and print the constructed formatters."""

    engine = _build_engine(settings, format_cache=FormatCache())
    for text in template:
        try:
            engine.compile(text)
        except TemplateError as exc:
            typer.echo(f"ERROR: {type(exc).__name__}: {exc}")
            raise typer.Exit(code=3) from exc

    for entry in engine.format_cache.entries():
        typer.echo(dump_json({"family": entry.family, "pattern": entry.pattern}))


def _build_engine(
    settings_path: Path | None, *, format_cache: FormatCache | None = None
) -> TemplateEngine:
    try:
        settings: EngineSettings = load_settings(settings_path)
    except ValueError as exc:
        typer.echo(f"ERROR: {exc}")
        raise typer.Exit(code=1) from exc
    return TemplateEngine(settings, format_cache=format_cache)


def _read_template_or_exit(text: str | None, path: Path | None) -> str:
    try:
        return read_template(text, path)
    except ValueError as exc:
        typer.echo(f"ERROR: {exc}")
        raise typer.Exit(code=1) from exc


def main() -> None:
    """Console script entrypoint."""

    app()


if __name__ == "__main__":
    main()
