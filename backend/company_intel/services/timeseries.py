"""
Period-over-period analytics for a single metric series.

The change between two adjacent points is reported as `delta_pct` and
is a period-over-period figure: points are compared with their direct
predecessor whatever the calendar gap between them, so a series of annual
values yields annual changes and a mixed series yields mixed changes.
"""
from __future__ import annotations

import enum
import math
from dataclasses import dataclass
from datetime import date
from typing import Dict, Iterable, List, Optional, Tuple


class Trend(str, enum.Enum):
    UP = "up"
    DOWN = "down"
    FLAT = "flat"


class Signal(str, enum.Enum):
    NONE = "none"
    WEAK = "weak"
    MODERATE = "moderate"
    STRONG = "strong"


# Lower bounds on |delta_pct|, in percent, strongest first
SIGNAL_THRESHOLDS: List[Tuple[float, Signal]] = [
    (10.0, Signal.STRONG),
    (5.0, Signal.MODERATE),
    (2.0, Signal.WEAK),
]


@dataclass(frozen=True)
class SeriesPoint:
    date: date
    value: float
    delta_pct: Optional[float] = None
    trend: Trend = Trend.FLAT
    signal: Signal = Signal.NONE

    def as_dict(self) -> dict:
        return {
            "date": self.date.isoformat(),
            "value": self.value,
            "delta_pct": self.delta_pct,
            "trend": self.trend.value,
            "signal": self.signal.value,
        }


def dedupe_by_date(points: Iterable[Tuple[date, float]]) -> List[Tuple[date, float]]:
    """
    One value per exact date, last seen wins; result sorted by date.

    Callers pass rows in storage order so "last seen" is deterministic.
    """
    by_date: Dict[date, float] = {}
    for point_date, value in points:
        by_date[point_date] = value
    return sorted(by_date.items(), key=lambda item: item[0])


def compute_delta_pct(previous: Optional[float], current: Optional[float]) -> Optional[float]:
    if previous is None or current is None:
        return None
    if not math.isfinite(previous) or not math.isfinite(current) or previous == 0:
        return None
    return round(100.0 * (current - previous) / previous, 4)


def classify_trend(delta_pct: Optional[float]) -> Trend:
    if delta_pct is None or delta_pct == 0:
        return Trend.FLAT
    return Trend.UP if delta_pct > 0 else Trend.DOWN


def classify_signal(delta_pct: Optional[float]) -> Signal:
    if delta_pct is None:
        return Signal.NONE
    magnitude = abs(delta_pct)
    for threshold, signal in SIGNAL_THRESHOLDS:
        if magnitude >= threshold:
            return signal
    return Signal.NONE


def analyze_series(points: Iterable[Tuple[date, float]]) -> List[SeriesPoint]:
    """
    Annotate a metric series with delta / trend / signal per point.

    The first point has nothing to compare against: delta None, flat, no signal.
    """
    ordered = dedupe_by_date(points)
    analysed: List[SeriesPoint] = []
    previous: Optional[float] = None
    for index, (point_date, value) in enumerate(ordered):
        delta = compute_delta_pct(previous, value) if index > 0 else None
        analysed.append(
            SeriesPoint(
                date=point_date,
                value=value,
                delta_pct=delta,
                trend=classify_trend(delta),
                signal=classify_signal(delta),
            )
        )
        previous = value
    return analysed
