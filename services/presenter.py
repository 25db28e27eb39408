"""Rendering of an evaluation as a structured payload and a plain advisory."""

from __future__ import annotations

from typing import List, Sequence

from app.schemas import RecommendationItem, RecommendationResponse
from models.records import AggregateSnapshot, Recommendation

NO_SPECIFIC_RECOMMENDATIONS = "Sem recomendações específicas no momento."


def _metric_lines(snapshot: AggregateSnapshot) -> List[str]:
    lines: List[str] = []
    if snapshot.temperature is not None:
        lines.append(f"Temperatura média: {snapshot.temperature:.2f}°C")
    if snapshot.oxygen is not None:
        lines.append(f"Oxigênio médio: {snapshot.oxygen:.2f} mg/L")
    if snapshot.ph is not None:
        lines.append(f"pH médio: {snapshot.ph:.2f}")
    return lines


def render_advisory(
    snapshot: AggregateSnapshot, recommendations: Sequence[Recommendation]
) -> str:
    """Build the newline-joined advisory served as ``text/plain``."""
    lines = _metric_lines(snapshot)
    if lines:
        lines.append("")
    if recommendations:
        lines.extend(f"• {item.text}" for item in recommendations)
    else:
        lines.append(NO_SPECIFIC_RECOMMENDATIONS)
    return "\n".join(lines)


def present(
    snapshot: AggregateSnapshot,
    recommendations: Sequence[Recommendation],
    motives: Sequence[str],
) -> RecommendationResponse:
    return RecommendationResponse(
        temp_media=snapshot.temperature,
        ox_media=snapshot.oxygen,
        ph_media=snapshot.ph,
        recomendacoes=[
            RecommendationItem(tipo=item.category, texto=item.text)
            for item in recommendations
        ],
        motivos=list(motives),
        texto=render_advisory(snapshot, recommendations),
    )
