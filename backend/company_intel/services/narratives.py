"""
English / French narrative sentences for analysed series points.
"""
from __future__ import annotations

from typing import Dict, List

from .timeseries import SeriesPoint, Signal, Trend

SIGNAL_LABELS_FR: Dict[Signal, str] = {
    Signal.WEAK: "faible",
    Signal.MODERATE: "modéré",
    Signal.STRONG: "fort",
}


def _format_value_en(value: float) -> str:
    text = f"{value:,.2f}"
    return text[:-3] if text.endswith(".00") else text


def _format_value_fr(value: float) -> str:
    # 1 234 567,89 with a narrow no-break space as thousands separator
    return _format_value_en(value).replace(",", "\u202f").replace(".", ",")


def _format_pct_en(delta: float) -> str:
    return f"{abs(delta):.1f}%"


def _format_pct_fr(delta: float) -> str:
    return f"{abs(delta):.1f}".replace(".", ",") + "\u202f%"


def narrate_point(label: str, point: SeriesPoint) -> Dict[str, str]:
    """Return {"en": ..., "fr": ...} describing one point's change."""
    day = point.date.isoformat()
    value_en = _format_value_en(point.value)
    value_fr = _format_value_fr(point.value)

    if point.delta_pct is None:
        return {
            "en": f"{label} was {value_en} on {day}; no comparable prior period.",
            "fr": f"{label} : {value_fr} au {day}, pas de période antérieure comparable.",
        }

    if point.trend == Trend.FLAT:
        return {
            "en": f"{label} was unchanged period over period at {value_en} on {day}.",
            "fr": f"{label} stable sur la période, à {value_fr} au {day}.",
        }

    if point.trend == Trend.UP:
        verb_en, verb_fr = "rose", "en hausse"
    else:
        verb_en, verb_fr = "fell", "en baisse"

    en = f"{label} {verb_en} {_format_pct_en(point.delta_pct)} period over period to {value_en} on {day}"
    fr = f"{label} {verb_fr} de {_format_pct_fr(point.delta_pct)} sur la période, à {value_fr} au {day}"
    if point.signal != Signal.NONE:
        en += f" ({point.signal.value} signal)"
        fr += f" (signal {SIGNAL_LABELS_FR[point.signal]})"
    return {"en": en + ".", "fr": fr + "."}


def narrate_series(metric_key: str, label: str, points: List[SeriesPoint]) -> List[dict]:
    narratives: List[dict] = []
    for point in points:
        sentences = narrate_point(label, point)
        narratives.append({
            "date": point.date.isoformat(),
            "metric": metric_key,
            "en": sentences["en"],
            "fr": sentences["fr"],
            "delta_pct": point.delta_pct,
            "trend": point.trend.value,
            "signal": point.signal.value,
        })
    return narratives
