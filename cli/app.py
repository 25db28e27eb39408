from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import typer

from cli.client import ApiClient
from cli.config import CLIConfig, load_config
from cli.render import (
    render_history,
    render_reading,
    render_readings,
    render_recommendation,
)


@dataclass
class CLIState:
    config: CLIConfig
    client: ApiClient


app = typer.Typer(
    help="Utilities for interacting with the tank telemetry service.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        raise typer.Exit(code=1)
    return state


@app.callback()
def main(
    ctx: typer.Context,
    base_url: Optional[str] = typer.Option(
        None,
        "--base-url",
        "-b",
        help="Service base URL (defaults to API_BASE_URL env or http://localhost:8000).",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="Seconds to wait for each HTTP request.",
    ),
) -> None:
    """Entry point for the CLI."""
    config = load_config(base_url=base_url, timeout=timeout)
    client = ApiClient(config)
    ctx.obj = CLIState(config=config, client=client)
    ctx.call_on_close(client.close)


@app.command("send")
def send_command(
    ctx: typer.Context,
    device_id: str = typer.Argument(..., help="Device identifier."),
    temperature: float = typer.Argument(..., help="Water temperature in °C."),
    oxygen: Optional[float] = typer.Option(None, "--oxygen", "-o", help="Dissolved oxygen (mg/L)."),
    ph: Optional[float] = typer.Option(None, "--ph", help="pH value."),
) -> None:
    """Send one reading to the service."""
    state = _get_state(ctx)
    payload = state.client.send_reading(device_id, temperature, oxygen=oxygen, ph=ph)
    typer.secho(f"Reading stored. id={payload.get('id')}", fg=typer.colors.GREEN)


@app.command("readings")
def readings_command(
    ctx: typer.Context,
    device_id: str = typer.Argument(..., help="Device identifier."),
    limit: int = typer.Option(50, "--limit", "-n", min=1, max=1000, help="Rows to fetch."),
) -> None:
    """List a device's most recent readings."""
    state = _get_state(ctx)
    render_readings(state.client.list_readings(device_id, limit))


@app.command("latest")
def latest_command(
    ctx: typer.Context,
    device_id: str = typer.Argument(..., help="Device identifier."),
) -> None:
    """Show a device's latest reading."""
    state = _get_state(ctx)
    render_reading(state.client.latest_reading(device_id))


@app.command("recommend")
def recommend_command(
    ctx: typer.Context,
    device_id: str = typer.Argument(..., help="Device identifier."),
    days: Optional[int] = typer.Option(None, "--days", "-d", help="Window in days (default 7)."),
    plain: bool = typer.Option(False, "--plain", help="Print the plain-text advisory."),
) -> None:
    """Fetch a recommendation for a device."""
    state = _get_state(ctx)
    payload = state.client.get_recommendation(device_id, days=days)
    if plain:
        typer.echo(payload.get("texto", ""))
        return
    render_recommendation(payload)


@app.command("history")
def history_command(
    ctx: typer.Context,
    device_id: str = typer.Argument(..., help="Device identifier."),
    limit: int = typer.Option(20, "--limit", "-n", min=1, max=1000, help="Records to fetch."),
) -> None:
    """Show recommendations previously generated for a device."""
    state = _get_state(ctx)
    render_history(state.client.get_history(device_id, limit))
