"""CLI commands for validating, merging and rendering edit suggestions."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

import typer

from .config import DEFAULT_CONFIG_NAME, ConfigError, WritersRoomSettings, load_settings
from .edits import (
    EditPayload,
    EditPayloadError,
    find_edit,
    merge_edit_payloads,
    parse_ai_response,
    parse_edit_payload_from_string,
    resolve_edit,
)
from .markup import transform_inline_markup
from .store import EditStore

APP_HELP = "Writers Room edit suggestion tools."

app = typer.Typer(help=APP_HELP)

_CONFIG_OPTION = typer.Option(
    DEFAULT_CONFIG_NAME,
    "--config",
    "-c",
    help="Path to the writersroom configuration file.",
)
_OUTPUT_OPTION = typer.Option(
    None,
    "--output",
    "-o",
    help="Write the result to this file instead of stdout.",
)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    """Writers Room edit suggestion tools."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s %(levelname)s %(message)s")


def _settings(config: str) -> WritersRoomSettings:
    try:
        settings = load_settings(Path(config))
    except ConfigError as error:
        typer.echo(str(error), err=True)
        raise typer.Exit(code=1) from error
    logging.basicConfig(level=settings.log_level, format="%(levelname)s: %(message)s")
    return settings


def _read_text(path: Path) -> str:
    if not path.exists():
        raise typer.BadParameter(f"File not found: {path}")
    return path.read_text(encoding="utf-8")


def _load_payload(
    path: Path,
    *,
    lenient: bool = False,
    extensible_agents: bool = False,
    combine: bool = True,
) -> EditPayload:
    text = _read_text(path)
    try:
        if lenient:
            return parse_ai_response(text, extensible_agents=extensible_agents)
        return parse_edit_payload_from_string(text, extensible_agents=extensible_agents, combine=combine)
    except EditPayloadError as error:
        typer.echo(f"{path}: {error}", err=True)
        raise typer.Exit(code=1) from error


def _load_store(settings: WritersRoomSettings) -> EditStore:
    try:
        return EditStore.load(settings.store_path, extensible_agents=settings.extensible_agents)
    except json.JSONDecodeError as error:
        typer.echo(f"Failed to read edit store {settings.store_path}: {error}", err=True)
        raise typer.Exit(code=1) from error


def _emit(text: str, output: Optional[Path]) -> None:
    if output is None:
        typer.echo(text, nl=False)
        return
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(text, encoding="utf-8")
    typer.echo(f"Wrote {output}")


@app.command()
def validate(
    path: Path = typer.Argument(..., help="JSON payload or raw model response to validate."),
    lenient: bool = typer.Option(
        False,
        "--lenient",
        help="Treat the input as a model response and repair common mistakes first.",
    ),
    extensible_agents: Optional[bool] = typer.Option(
        None,
        "--extensible-agents/--editor-only",
        help="Accept category-named agents in addition to 'editor'.",
    ),
    output: Optional[Path] = _OUTPUT_OPTION,
    config: str = _CONFIG_OPTION,
) -> None:
    """Validate an edit payload and print its canonical form."""
    settings = _settings(config)
    extensible = settings.extensible_agents if extensible_agents is None else extensible_agents
    payload = _load_payload(path, lenient=lenient, extensible_agents=extensible)
    _emit(payload.to_json(), output)


@app.command()
def merge(
    existing: Path = typer.Argument(..., help="Previously stored payload."),
    incoming: Path = typer.Argument(..., help="Payload from the latest edit run."),
    output: Optional[Path] = _OUTPUT_OPTION,
    config: str = _CONFIG_OPTION,
) -> None:
    """Append the new edits of INCOMING to EXISTING."""
    settings = _settings(config)
    base = _load_payload(existing, extensible_agents=settings.extensible_agents, combine=False)
    update = _load_payload(incoming, extensible_agents=settings.extensible_agents)
    _emit(merge_edit_payloads(base, update).to_json(), output)


@app.command()
def resolve(
    path: Path = typer.Argument(..., help="Payload containing the edit."),
    anchor: str = typer.Argument(..., help="Anchor of the edit to remove."),
    output: Optional[Path] = _OUTPUT_OPTION,
    config: str = _CONFIG_OPTION,
) -> None:
    """Remove the edit identified by ANCHOR from a payload."""
    settings = _settings(config)
    payload = _load_payload(path, extensible_agents=settings.extensible_agents, combine=False)
    if find_edit(payload, anchor) is None:
        typer.echo(f"No edit with anchor {anchor} in {path}", err=True)
        raise typer.Exit(code=1)
    _emit(resolve_edit(payload, anchor).to_json(), output)


@app.command()
def markup(
    path: Path = typer.Argument(..., help="Markdown document with inline edit markup."),
    star_lines: Optional[bool] = typer.Option(
        None,
        "--star-lines/--no-star-lines",
        help="Wrap lines starting with a praise glyph in a star block.",
    ),
    output: Optional[Path] = _OUTPUT_OPTION,
    config: str = _CONFIG_OPTION,
) -> None:
    """Render inline edit markup as highlighted Markdown."""
    settings = _settings(config)
    highlight = settings.highlight_star_lines if star_lines is None else star_lines
    _emit(transform_inline_markup(_read_text(path), highlight_star_lines=highlight), output)


@app.command()
def record(
    source: str = typer.Argument(..., help="Path of the source document the edits belong to."),
    path: Path = typer.Argument(..., help="Edit payload to store."),
    replace: bool = typer.Option(
        False,
        "--replace",
        help="Replace stored edits instead of merging into them.",
    ),
    config: str = _CONFIG_OPTION,
) -> None:
    """Store an edit payload for SOURCE in the configured edit store."""
    settings = _settings(config)
    payload = _load_payload(path, extensible_agents=settings.extensible_agents)
    store = _load_store(settings)
    changed = store.put(source, payload, merge=settings.merge and not replace)
    if not changed:
        typer.echo(f"Edits for {source} unchanged.")
        return
    store.save(settings.store_path)
    stored = store.get(source)
    count = len(stored.payload.edits) if stored else 0
    typer.echo(f"Stored {count} edit(s) for {source}.")


@app.command()
def status(config: str = _CONFIG_OPTION) -> None:
    """List the source documents with stored edits."""
    settings = _settings(config)
    store = _load_store(settings)
    typer.echo(f"Store: {settings.store_path}")
    if not len(store):
        typer.echo("No stored edits.")
        return
    for source in store.sources():
        entry = store.get(source)
        if entry is None:
            continue
        typer.echo(f"- {source}: {len(entry.payload.edits)} edit(s)")


if __name__ == "__main__":
    app()
