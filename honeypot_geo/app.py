"""Typer CLI entrypoint for the honeypot geolocation pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import typer
import yaml
from pydantic import ValidationError
from rich import box
from rich.console import Console
from rich.table import Table

from .config import ConfigRepository, GlobalConfig
from .errors import GeolocateError, TransportError
from .infra import SQLiteManager
from .logging_conf import configure_logging, log_path, tail_log
from .pipeline import Pipeline, RunSummary

app = typer.Typer(
    help="Enrich honeypot attacker addresses with geolocation data.",
    no_args_is_help=True,
    rich_markup_mode=None,
)
config_app = typer.Typer(
    name="config",
    help="Inspect or change the stored configuration.",
    no_args_is_help=True,
    rich_markup_mode=None,
)
log_app = typer.Typer(
    name="log",
    help="Inspect run logs.",
    no_args_is_help=True,
    rich_markup_mode=None,
)

console = Console()


@dataclass
class AppState:
    repository: ConfigRepository
    verbose: bool = False


def build_state(verbose: bool) -> AppState:
    repository = ConfigRepository()
    configure_logging(verbose=verbose)
    return AppState(repository=repository, verbose=verbose)


def _get_state(ctx: typer.Context) -> AppState:
    state = ctx.obj
    if state is None:
        state = build_state(verbose=False)
        ctx.obj = state
    return state


def _apply_overrides(config: GlobalConfig, **overrides: object) -> GlobalConfig:
    payload = config.model_dump(mode="json")
    for dotted, value in overrides.items():
        if value is None:
            continue
        section, key = dotted.split("__", 1)
        payload[section][key] = value
    try:
        return GlobalConfig.model_validate(payload)
    except ValidationError as exc:
        raise typer.BadParameter(str(exc)) from exc


def _build_pipeline(state: AppState, config: GlobalConfig) -> tuple[Pipeline, SQLiteManager]:
    storage = SQLiteManager(
        max_open_connections=config.storage.max_open_connections,
        login_table=config.storage.login_table,
        geolocation_table=config.storage.geolocation_table,
    )
    pipeline = Pipeline(config, storage, base_dir=state.repository.locator.project_root)
    return pipeline, storage


def _render_summary(summary: RunSummary) -> Table:
    table = Table(title="Geolocation run", box=box.SIMPLE_HEAD, show_header=False)
    table.add_column("metric", style="cyan", no_wrap=True)
    table.add_column("value", style="green")
    table.add_row("login records", str(summary.records))
    table.add_row("unique addresses", str(summary.addresses))
    table.add_row("chunks", str(summary.chunks))
    table.add_row("throttled", str(summary.throttled))
    table.add_row("unfetched chunks", str(summary.unfetched))
    table.add_row("pacing pauses", str(summary.paced))
    table.add_row("results stored", str(summary.results))
    table.add_row("output", summary.output)
    return table


app.add_typer(config_app, name="config")
app.add_typer(log_app, name="log")


@app.callback()
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging."),
) -> None:
    ctx.obj = build_state(verbose)


@app.command("run", help="Geolocate every unique address in the login table.")
def run(
    ctx: typer.Context,
    database: Optional[str] = typer.Option(None, "--database", help="SQLite database path."),
    output_format: Optional[str] = typer.Option(
        None, "--format", help="Where results go: sqlite, json or csv."
    ),
    requests_per_minute: Optional[int] = typer.Option(
        None, "--requests-per-minute", help="Pause after this many chunks."
    ),
    no_progress: bool = typer.Option(False, "--no-progress", help="Hide the progress bar."),
) -> None:
    state = _get_state(ctx)
    config = _apply_overrides(
        state.repository.load_global_config(),
        storage__database_path=database,
        storage__output_format=output_format,
        api__requests_per_minute=requests_per_minute,
    )
    logger = configure_logging(state.verbose).bind(component="cli")
    pipeline, storage = _build_pipeline(state, config)
    try:
        summary = pipeline.run(progress_enabled=False if no_progress else None)
    except GeolocateError as exc:
        context: dict[str, object] = {"error": str(exc), "kind": type(exc).__name__}
        if isinstance(exc, TransportError):
            context.update(chunk_index=exc.chunk_index, status_code=exc.status_code)
        if exc.__cause__ is not None:
            context["cause"] = repr(exc.__cause__)
        logger.error("run_failed", **context)
        console.print(f"Run aborted: {exc}", style="red", markup=False)
        raise typer.Exit(code=1) from exc
    finally:
        storage.close_all()
    console.print(_render_summary(summary))


@app.command("addresses", help="List the unique addresses that would be queried.")
def addresses(
    ctx: typer.Context,
    database: Optional[str] = typer.Option(None, "--database", help="SQLite database path."),
    limit: int = typer.Option(0, "--limit", help="Show at most N addresses (0 = all)."),
) -> None:
    state = _get_state(ctx)
    config = _apply_overrides(
        state.repository.load_global_config(), storage__database_path=database
    )
    pipeline, storage = _build_pipeline(state, config)
    try:
        found = pipeline.preview()
    except GeolocateError as exc:
        console.print(f"Cannot read login records: {exc}", style="red", markup=False)
        raise typer.Exit(code=1) from exc
    finally:
        storage.close_all()
    shown = found[:limit] if limit > 0 else found
    for address in shown:
        console.print(address, highlight=False, markup=False)
    console.print(f"{len(found)} unique addresses", style="dim")


@config_app.command("show", help="Print the effective configuration.")
def config_show(ctx: typer.Context) -> None:
    state = _get_state(ctx)
    config = state.repository.load_global_config()
    console.print(f"# {state.repository.locator.global_config_path()}", style="dim")
    console.print(
        yaml.safe_dump(config.model_dump(mode="json"), sort_keys=False, allow_unicode=True),
        highlight=False,
    )


@config_app.command("set", help="Set a dotted key, e.g. api.requests_per_minute 10.")
def config_set(
    ctx: typer.Context,
    key: str = typer.Argument(..., help="Dotted configuration key."),
    value: str = typer.Argument(..., help="New value (YAML scalar)."),
) -> None:
    state = _get_state(ctx)
    try:
        parsed = yaml.safe_load(value)
        state.repository.update_value(key, parsed)
    except KeyError as exc:
        console.print(str(exc.args[0]), style="red", markup=False)
        raise typer.Exit(code=1) from exc
    except ValidationError as exc:
        console.print(f"Invalid value for {key}: {exc}", style="red", markup=False)
        raise typer.Exit(code=1) from exc
    console.print(f"{key} = {parsed!r}", style="green", markup=False)


@log_app.command("show", help="Show the most recent log lines.")
def log_show(
    error: bool = typer.Option(False, "--error", help="Show the error log instead."),
    rate: bool = typer.Option(False, "--rate", help="Show the rate controller log instead."),
    tail: int = typer.Option(100, "--tail", help="Number of lines to show."),
) -> None:
    if error and rate:
        raise typer.BadParameter("--error and --rate are mutually exclusive")
    path = log_path("error" if error else "rate" if rate else "run")
    lines = tail_log(path, tail)
    if not lines:
        console.print("No log entries yet.", style="dim")
        return
    console.print(f"{path.name} · last {len(lines)} lines", style="cyan")
    console.print("".join(lines), highlight=False, markup=False)


def cli() -> None:
    app()


if __name__ == "__main__":  # pragma: no cover
    cli()
