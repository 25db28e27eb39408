"""Fixed biological rule set evaluated against an aggregate snapshot."""

from __future__ import annotations

from typing import List, Tuple

from models.records import AggregateSnapshot, Category, Recommendation

TEMP_MIN_IDEAL = 24.0
TEMP_MAX_IDEAL = 30.0
OXYGEN_MIN = 5.0
PH_MIN = 6.5
PH_MAX = 9.0

LOW_TEMPERATURE_TEXT = "Temperatura baixa: reduzir a oferta de ração."
IDEAL_TEMPERATURE_TEXT = "Temperatura ideal: manter a rotina de alimentação."
HIGH_TEMPERATURE_TEXT = "Temperatura alta: aumentar a aeração e evitar excesso de ração."
LOW_OXYGEN_TEXT = "Oxigênio baixo: acionar os aeradores."
PH_OUT_OF_RANGE_TEXT = "pH fora da faixa: corrigir o pH ou fazer troca parcial de água."


def temperature_motive(value: float) -> str:
    return f"Temp média {value:.2f}°C"


def oxygen_motive(value: float) -> str:
    return f"O2 médio {value:.2f} mg/L"


def ph_motive(value: float) -> str:
    return f"pH médio {value:.2f}"


def evaluate(snapshot: AggregateSnapshot) -> Tuple[List[Recommendation], List[str]]:
    """Apply the rule table in order: temperature, oxygen, pH.

    Every condition is checked on its own, so several recommendations can
    fire together. Metrics without an average are skipped. Motives are only
    recorded for out-of-range values.
    """
    recommendations: List[Recommendation] = []
    motives: List[str] = []

    temperature = snapshot.temperature
    if temperature is not None:
        if temperature < TEMP_MIN_IDEAL:
            recommendations.append(Recommendation(Category.feeding, LOW_TEMPERATURE_TEXT))
            motives.append(temperature_motive(temperature))
        elif temperature > TEMP_MAX_IDEAL:
            recommendations.append(Recommendation(Category.aeration, HIGH_TEMPERATURE_TEXT))
            motives.append(temperature_motive(temperature))
        else:
            recommendations.append(Recommendation(Category.feeding, IDEAL_TEMPERATURE_TEXT))

    oxygen = snapshot.oxygen
    if oxygen is not None and oxygen < OXYGEN_MIN:
        recommendations.append(Recommendation(Category.aeration, LOW_OXYGEN_TEXT))
        motives.append(oxygen_motive(oxygen))

    ph = snapshot.ph
    if ph is not None and (ph < PH_MIN or ph > PH_MAX):
        recommendations.append(Recommendation(Category.water_quality, PH_OUT_OF_RANGE_TEXT))
        motives.append(ph_motive(ph))

    return recommendations, motives


def no_data_recommendation(window_days: int) -> Recommendation:
    """Informational recommendation used when the window holds no readings."""
    if window_days == 1:
        text = "Sem leituras no último dia."
    else:
        text = f"Sem leituras nos últimos {window_days} dias."
    return Recommendation(Category.informational, text)
