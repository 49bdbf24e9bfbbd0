"""
Tests for timeseries.py and narratives.py
"""
from datetime import date

import pytest

from company_intel.services.narratives import narrate_point, narrate_series
from company_intel.services.timeseries import (
    SeriesPoint,
    Signal,
    Trend,
    analyze_series,
    classify_signal,
    classify_trend,
    compute_delta_pct,
    dedupe_by_date,
)

D1, D2, D3 = date(2024, 12, 31), date(2025, 12, 31), date(2026, 12, 31)


class TestAnalyzeSeries:
    """Tests for analyze_series."""

    def test_reference_series(self):
        points = analyze_series([(D1, 100.0), (D2, 110.0), (D3, 99.0)])

        assert [p.delta_pct for p in points] == [None, 10.0, -10.0]
        assert [p.trend for p in points] == [Trend.FLAT, Trend.UP, Trend.DOWN]
        assert [p.signal for p in points] == [Signal.NONE, Signal.STRONG, Signal.STRONG]

    def test_input_order_does_not_matter(self):
        shuffled = analyze_series([(D3, 99.0), (D1, 100.0), (D2, 110.0)])
        assert [p.date for p in shuffled] == [D1, D2, D3]

    def test_zero_previous_gives_no_delta(self):
        points = analyze_series([(D1, 0.0), (D2, 5.0)])
        assert points[1].delta_pct is None
        assert points[1].trend == Trend.FLAT
        assert points[1].signal == Signal.NONE

    def test_empty_and_single(self):
        assert analyze_series([]) == []
        (only,) = analyze_series([(D1, 7.0)])
        assert only.delta_pct is None

    def test_as_dict(self):
        (_, second) = analyze_series([(D1, 100.0), (D2, 103.0)])
        assert second.as_dict() == {
            "date": "2025-12-31",
            "value": 103.0,
            "delta_pct": 3.0,
            "trend": "up",
            "signal": "weak",
        }


class TestHelpers:
    """Tests for the per-point helpers."""

    def test_dedupe_by_date_last_wins(self):
        assert dedupe_by_date([(D2, 1.0), (D1, 2.0), (D2, 3.0)]) == [(D1, 2.0), (D2, 3.0)]

    def test_delta_rounding(self):
        assert compute_delta_pct(3.0, 4.0) == 33.3333
        assert compute_delta_pct(None, 4.0) is None
        assert compute_delta_pct(float("nan"), 4.0) is None

    @pytest.mark.parametrize(
        "delta,expected",
        [
            (None, Signal.NONE),
            (0.0, Signal.NONE),
            (1.99, Signal.NONE),
            (2.0, Signal.WEAK),
            (-4.99, Signal.WEAK),
            (5.0, Signal.MODERATE),
            (9.99, Signal.MODERATE),
            (10.0, Signal.STRONG),
            (-35.0, Signal.STRONG),
        ],
    )
    def test_signal_thresholds(self, delta, expected):
        assert classify_signal(delta) == expected

    def test_trend(self):
        assert classify_trend(0.0) == Trend.FLAT
        assert classify_trend(0.5) == Trend.UP
        assert classify_trend(-0.5) == Trend.DOWN


class TestNarratives:
    """Tests for narrate_point / narrate_series."""

    def test_first_point(self):
        text = narrate_point("Revenue", SeriesPoint(date=D1, value=100.0))
        assert "no comparable prior period" in text["en"]
        assert "pas de période antérieure" in text["fr"]

    def test_rise_with_signal(self):
        point = SeriesPoint(D2, 110.0, 10.0, Trend.UP, Signal.STRONG)
        text = narrate_point("Revenue", point)
        assert text["en"] == "Revenue rose 10.0% period over period to 110 on 2025-12-31 (strong signal)."
        assert text["fr"] == "Revenue en hausse de 10,0\u202f% sur la période, à 110 au 2025-12-31 (signal fort)."

    def test_fall_without_signal(self):
        point = SeriesPoint(D2, 99.0, -1.0, Trend.DOWN, Signal.NONE)
        text = narrate_point("Revenue", point)
        assert "fell 1.0%" in text["en"]
        assert "signal" not in text["en"]
        assert "en baisse de 1,0\u202f%" in text["fr"]

    def test_french_number_format(self):
        point = SeriesPoint(D1, 1234567.5)
        assert "1\u202f234\u202f567,50" in narrate_point("CA", point)["fr"]
        assert "1,234,567.50" in narrate_point("CA", point)["en"]

    def test_narrate_series(self):
        points = analyze_series([(D1, 100.0), (D2, 110.0)])
        out = narrate_series("revenue", "Revenue", points)
        assert [n["date"] for n in out] == ["2024-12-31", "2025-12-31"]
        assert out[1]["signal"] == "strong"
        assert out[1]["metric"] == "revenue"
        assert set(out[1]) >= {"en", "fr", "delta_pct", "trend"}
