from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

import typer


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def _fmt(value: Optional[float], unit: str = "") -> str:
    if value is None:
        return "n/a"
    return f"{value:.2f}{unit}"


def render_reading(payload: Dict[str, Any]) -> None:
    echo_key_values(
        [
            ("id", payload.get("id")),
            ("dispositivo_id", payload.get("dispositivo_id")),
            ("temperatura", _fmt(payload.get("temperatura"), "°C")),
            ("oxigenio", _fmt(payload.get("oxigenio"), " mg/L")),
            ("ph", _fmt(payload.get("ph"))),
            ("data_hora", payload.get("data_hora")),
        ]
    )


def render_readings(readings: List[Dict[str, Any]]) -> None:
    echo_heading("Readings")
    if not readings:
        typer.echo("No readings recorded.")
        return
    for reading in readings:
        typer.echo(
            f"  - {reading.get('data_hora')}: "
            f"temp={_fmt(reading.get('temperatura'))} "
            f"ox={_fmt(reading.get('oxigenio'))} "
            f"ph={_fmt(reading.get('ph'))}"
        )


def render_recommendation(payload: Dict[str, Any]) -> None:
    echo_heading("Averages")
    echo_key_values(
        [
            ("temp_media", _fmt(payload.get("temp_media"), "°C")),
            ("ox_media", _fmt(payload.get("ox_media"), " mg/L")),
            ("ph_media", _fmt(payload.get("ph_media"))),
        ]
    )

    typer.echo()
    echo_heading("Recommendations")
    for item in payload.get("recomendacoes") or []:
        typer.echo(f"  - [{item.get('tipo')}] {item.get('texto')}")

    motives = payload.get("motivos") or []
    typer.echo()
    echo_heading("Motives")
    if motives:
        for motive in motives:
            typer.echo(f"  - {motive}")
    else:
        typer.echo("No out-of-range metrics.")


def render_history(records: List[Dict[str, Any]]) -> None:
    echo_heading("Recommendation History")
    if not records:
        typer.echo("No recommendations recorded.")
        return
    for record in records:
        kinds = ", ".join(item.get("tipo", "?") for item in record.get("recomendacao") or [])
        motive = record.get("motivo") or "-"
        typer.echo(f"  - {record.get('data_hora')}: {kinds} ({motive})")
