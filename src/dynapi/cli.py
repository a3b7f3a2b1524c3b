from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from dynapi.config import DynamicApiSettings, load_settings
from dynapi.discovery.reflection import discover_services
from dynapi.domain.models import RouteEntry
from dynapi.errors import DynapiError
from dynapi.orchestrator.compiler import compile_routes

app = typer.Typer(no_args_is_help=True, add_completion=False)

console = Console()
err_console = Console(stderr=True)


@app.callback()
def main_options(
    log_level: str = typer.Option("WARNING", help="Log level: DEBUG|INFO|WARNING|ERROR"),
) -> None:
    logging.basicConfig(
        level=log_level.upper(),
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def _settings(config: Optional[str]) -> DynamicApiSettings:
    path = None
    if config:
        path = Path(config).expanduser().resolve()
        if not path.is_file():
            raise typer.BadParameter(f"Config file does not exist: {path}")
    try:
        return load_settings(path)
    except (ValidationError, ValueError) as e:
        err_console.print(f"[bold red]invalid configuration[/bold red]\n{escape(str(e))}")
        raise typer.Exit(code=2)


def _compile(modules: List[str], config: Optional[str]) -> list[RouteEntry]:
    settings = _settings(config)
    # modules are usually importable from the working directory
    cwd = str(Path.cwd())
    if cwd not in sys.path:
        sys.path.insert(0, cwd)
    try:
        services = discover_services(modules)
        return compile_routes(services, settings)
    except ModuleNotFoundError as e:
        raise typer.BadParameter(f"Cannot import module: {e.name}")
    except DynapiError as e:
        err_console.print(f"[bold red]route compilation failed[/bold red]: {escape(str(e))}")
        raise typer.Exit(code=1)


@app.command()
def routes(
    modules: List[str] = typer.Argument(..., help="Modules to scan for services (dotted names)"),
    config: Optional[str] = typer.Option(None, help="Settings file (.toml or .json)"),
    format: str = typer.Option("table", help="Output format: table|json"),
) -> None:
    """Compile services and print the route table."""
    fmt = format.lower().strip()
    if fmt not in ("table", "json"):
        raise typer.BadParameter("format must be one of: table, json")

    entries = _compile(modules, config)

    if fmt == "json":
        payload = [e.model_dump(mode="json") for e in entries]
        # plain print: rich would re-wrap long lines
        typer.echo(json.dumps(payload, indent=2))
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("METHOD", no_wrap=True)
    table.add_column("TEMPLATE")
    table.add_column("HANDLER")
    table.add_column("BINDINGS")

    for e in entries:
        bindings = ", ".join(f"{p.name}:{p.source.value}" for p in e.parameters)
        table.add_row(e.http_method, escape(e.template), f"{e.service}.{e.action}", bindings or "-")

    console.print(table)
    console.print(f"Routes: [bold]{len(entries)}[/bold]")


@app.command()
def check(
    modules: List[str] = typer.Argument(..., help="Modules to scan for services (dotted names)"),
    config: Optional[str] = typer.Option(None, help="Settings file (.toml or .json)"),
) -> None:
    """Validate services without printing the table; exit 1 on the first error."""
    entries = _compile(modules, config)
    console.print(f"[bold green]ok[/bold green]: {len(entries)} route(s)")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
