from __future__ import annotations

import json
import sys
import uuid
from pathlib import Path
from typing import Any, NoReturn, Optional

import typer
from rich import print as rprint
from rich.console import Console
from rich.table import Table

from polyarch import __version__
from polyarch.config import AppConfig
from polyarch.dispatch import CommandDispatcher, build_dispatcher
from polyarch.errors import RelayError
from polyarch.log import configure_logging
from polyarch.models import Command


app = typer.Typer(help="polyarch CLI - natural language -> 3D map commands")
console = Console()

EXIT_WORDS = ("exit", "quit", ":q")


def _load(config: Optional[Path]) -> AppConfig:
    cfg = AppConfig.load(config)
    configure_logging(cfg.log_level)
    return cfg


def _dispatcher(config: Optional[Path]) -> CommandDispatcher:
    return build_dispatcher(_load(config))


def _report(exc: RelayError) -> None:
    console.print(f"[red]{exc.kind}[/red]: {exc.message}")
    for key, value in exc.detail.items():
        if value not in (None, ""):
            console.print(f"  [dim]{key}[/dim]: {value}")


def _fail(exc: RelayError) -> NoReturn:
    _report(exc)
    raise typer.Exit(code=1)


def _print_command(command: Command) -> None:
    console.print(f"[bold cyan]assistant[/bold cyan]> {command.reply}")
    if command.action == "chat":
        return
    table = Table(show_header=False, box=None)
    table.add_row("action", f"[green]{command.action}[/green]")
    if command.prompt is not None:
        table.add_row("prompt", command.prompt)
    if command.needs_confirm is not None:
        table.add_row("needs_confirm", str(command.needs_confirm).lower())
        table.add_row("confirm_text", command.confirm_text or "")
    if command.state is not None:
        table.add_row("polygons", str(len(command.state.get("polygons", []))))
    console.print(table)


def _read_state(path: Optional[Path]) -> Any:
    if path is None:
        return None
    return json.loads(path.read_text(encoding="utf-8"))


@app.command()
def version() -> None:
    """Show CLI version."""
    rprint(f"polyarch {__version__}")


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, help="Bind address (defaults to config/HOST)"),
    port: Optional[int] = typer.Option(None, help="Port (defaults to config/PORT, 8080)"),
    reload: bool = typer.Option(False, help="Auto-reload on code changes (dev only)"),
    config: Optional[Path] = typer.Option(None, help="Path to config.yaml"),
) -> None:
    """Run the HTTP API with uvicorn."""
    import uvicorn

    cfg = _load(config)
    bind_host = host or cfg.server.host
    bind_port = port or cfg.server.port
    console.print(f"[green]server running[/green] on http://{bind_host}:{bind_port}")
    uvicorn.run(
        "polyarch.main:app",
        host=bind_host,
        port=bind_port,
        reload=reload,
        log_level=cfg.log_level.lower(),
    )


@app.command()
def resolve(
    place: str = typer.Argument(..., help="Place name, e.g. '東京ドーム'"),
    config: Optional[Path] = typer.Option(None, help="Path to config.yaml"),
) -> None:
    """Resolve a place name to latitude/longitude."""
    dispatcher = _dispatcher(config)
    try:
        coords = dispatcher.resolve_place(place)
    except RelayError as exc:
        _fail(exc)
    typer.echo(json.dumps(coords.model_dump()))


@app.command()
def polygon(
    text: str = typer.Argument(..., help="Free-text description of the shape"),
    out: Optional[Path] = typer.Option(None, help="Write the polygon spec JSON to this file"),
    config: Optional[Path] = typer.Option(None, help="Path to config.yaml"),
) -> None:
    """Interpret a free-text description into a polygon spec."""
    dispatcher = _dispatcher(config)
    try:
        spec = dispatcher.interpret_polygon(text)
    except RelayError as exc:
        _fail(exc)

    body = json.dumps(spec, ensure_ascii=False, indent=2)
    if out:
        out = Path(out)
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(body, encoding="utf-8")
        console.print("[green]Polygon spec written[/green] ->", out)
        return
    typer.echo(body)


@app.command()
def chat(
    message: Optional[str] = typer.Argument(
        None, help="Single message; omit for an interactive session"
    ),
    state: Optional[Path] = typer.Option(None, help="JSON file with the current map state"),
    as_json: bool = typer.Option(False, "--json", help="Print the raw command JSON"),
    config: Optional[Path] = typer.Option(None, help="Path to config.yaml"),
) -> None:
    """Talk to the map assistant, one message or interactively."""
    dispatcher = _dispatcher(config)
    map_state = _read_state(state)
    sid = f"cli-{uuid.uuid4().hex}"

    def _send(text: str) -> None:
        nonlocal map_state
        command = dispatcher.chat(text, map_state, sid)
        if command.state is not None:
            map_state = command.state
        if as_json:
            typer.echo(json.dumps(command.to_payload(), ensure_ascii=False))
        else:
            _print_command(command)

    if message is not None:
        try:
            _send(message)
        except RelayError as exc:
            _fail(exc)
        return

    console.print("[dim]Type 'exit' to quit.[/dim]")
    while True:
        try:
            text = console.input("[bold]you[/bold]> ").strip()
        except EOFError:
            break
        if not text:
            continue
        if text.lower() in EXIT_WORDS:
            break
        try:
            _send(text)
        except RelayError as exc:
            _report(exc)


def _main(argv: list[str] | None = None) -> int:
    try:
        app()
        return 0
    except Exception as exc:  # noqa: BLE001
        console.print(f"[red]Error:[/red] {exc}")
        return 1


if __name__ == "__main__":
    raise SystemExit(_main(sys.argv[1:]))
