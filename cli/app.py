from __future__ import annotations

import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import typer
import uvicorn

from cli.client import ApiClient
from cli.config import CLIConfig, load_config
from cli.render import render_control, render_state
from models.records import SourceMode


@dataclass
class CLIState:
    config: CLIConfig
    client: ApiClient


app = typer.Typer(
    help="Control and inspect a running LiveDash telemetry service.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        typer.secho("CLI state is uninitialized.", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    return state


@app.callback()
def main(
    ctx: typer.Context,
    base_url: Optional[str] = typer.Option(
        None,
        "--base-url",
        "-b",
        help="Service base URL (defaults to LIVEDASH_API_URL env or http://localhost:8000).",
    ),
) -> None:
    """Entry point for the CLI."""
    config = load_config(base_url=base_url)
    client = ApiClient(config)
    ctx.obj = CLIState(config=config, client=client)
    ctx.call_on_close(client.close)


@app.command("status")
def status_command(
    ctx: typer.Context,
    history: bool = typer.Option(False, "--history/--no-history", help="Include recent readings."),
) -> None:
    """Show run state, latest value per sensor and row count."""
    state = _get_state(ctx)
    render_state(state.client.get_state(include_history=history))


@app.command("start")
def start_command(ctx: typer.Context) -> None:
    """Resume ticking."""
    state = _get_state(ctx)
    render_control(state.client.start())


@app.command("pause")
def pause_command(ctx: typer.Context) -> None:
    """Stop ticking; the history window is kept."""
    state = _get_state(ctx)
    render_control(state.client.pause())


@app.command("reset")
def reset_command(ctx: typer.Context) -> None:
    """Clear latest values, history and the sequence counter."""
    state = _get_state(ctx)
    payload = state.client.reset()
    typer.secho("State window cleared.", fg=typer.colors.YELLOW)
    render_control(payload)


@app.command("configure")
def configure_command(
    ctx: typer.Context,
    mode: Optional[SourceMode] = typer.Option(None, "--mode", "-m", help="Batch source."),
    interval: Optional[int] = typer.Option(
        None, "--interval", "-i", help="Tick period in milliseconds (clamped by the service)."
    ),
    endpoint: Optional[str] = typer.Option(None, "--endpoint", "-e", help="Remote endpoint URL."),
) -> None:
    """Change mode, interval or remote endpoint."""
    if mode is None and interval is None and endpoint is None:
        raise typer.BadParameter("Pass at least one of --mode, --interval or --endpoint.")
    state = _get_state(ctx)
    payload = state.client.configure(
        mode=mode.value if mode is not None else None,
        interval_ms=interval,
        endpoint_url=endpoint,
    )
    render_control(payload)


@app.command("export")
def export_command(
    ctx: typer.Context,
    output_dir: Optional[Path] = typer.Option(
        None,
        "--output-dir",
        "-o",
        file_okay=False,
        help="Directory to save the CSV into (defaults to CLI_EXPORT_DIR or the current directory).",
    ),
) -> None:
    """Save the history window as CSV, oldest reading first."""
    state = _get_state(ctx)
    filename, content = state.client.export_csv()
    directory = output_dir if output_dir is not None else state.config.export_dir
    directory.mkdir(parents=True, exist_ok=True)
    target = directory / filename
    target.write_text(content, encoding="utf-8")
    typer.secho(f"Exported to {target}", fg=typer.colors.GREEN)


@app.command("watch")
def watch_command(
    ctx: typer.Context,
    iterations: Optional[int] = typer.Option(
        None, "--iterations", "-n", min=1, help="Stop after this many refreshes."
    ),
    interval: Optional[float] = typer.Option(
        None, "--interval", help="Seconds between refreshes."
    ),
) -> None:
    """Poll the service and print the latest readings until interrupted."""
    state = _get_state(ctx)
    delay = interval if interval is not None else state.config.watch_interval
    count = 0
    while iterations is None or count < iterations:
        if count:
            time.sleep(delay)
            typer.echo()
        render_state(state.client.get_state())
        count += 1


@app.command("serve")
def serve_command(
    host: str = typer.Option("127.0.0.1", "--host", help="Interface to bind."),
    port: int = typer.Option(8000, "--port", help="Port to listen on."),
) -> None:
    """Run the dashboard service."""
    uvicorn.run("app.main:app", host=host, port=port, log_config=None, reload=False)
