"""
Tests for read_model.py
"""
from datetime import datetime, timedelta

import pytest

from company_intel.core.errors import NotFoundError, ValidationError
from company_intel.schemas.ingest import validate_ingest_payload
from company_intel.services.ingestion import ingest_payload
from company_intel.services.read_model import (
    aggregate_insights,
    build_read_payload,
    rank_insights,
    resolve_company,
)
from tests.fixtures.ingest_fixtures import make_payload, series_facts


def _ingest(db, body):
    result = validate_ingest_payload(body)
    assert result.ok, result.errors
    return ingest_payload(db, result.payload)


@pytest.fixture
def acme(db):
    _ingest(db, make_payload(
        facts=series_facts(["100", "110", "99"], ["2024-12-31", "2025-12-31", "2026-12-31"])
        + [{"metric_key": "Headcount", "metric_value": "1,200", "as_of_date": "2026-12-31"}],
    ))
    # 0.9 * 0.90 (exchange) = 0.81
    _ingest(db, make_payload(
        url="https://www.euronext.com/acme",
        insights=[{"text": "Pricing power intact.", "theme": "moat", "confidence": 0.9}],
    ))
    # 0.5 * 0.95 (regulator) = 0.475, stored later
    _ingest(db, make_payload(
        url="https://www.sec.gov/acme-10k",
        insights=[{"text": "Litigation risk disclosed.", "theme": "risk", "confidence": 0.5}],
    ))
    return db


class TestResolveCompany:
    """Tests for resolve_company."""

    def test_by_slug_and_by_name(self, acme):
        assert resolve_company(acme, "acme").slug == "acme"
        assert resolve_company(acme, "ACME").slug == "acme"
        assert resolve_company(acme, "cm").slug == "acme"

    def test_like_wildcards_are_literal(self, acme):
        with pytest.raises(NotFoundError):
            resolve_company(acme, "%")

    def test_unknown(self, acme):
        with pytest.raises(NotFoundError):
            resolve_company(acme, "globex")


class TestRanking:
    """Tests for rank_insights / aggregate_insights."""

    def test_provenance_beats_recency(self):
        now = datetime(2026, 10, 1)
        older = {"id": 1, "provenance_score": 0.9 * 0.9, "created_at": now - timedelta(days=30), "publisher_type": "exchange"}
        newer = {"id": 2, "provenance_score": 0.5 * 0.95, "created_at": now, "publisher_type": "regulator"}

        assert [i["id"] for i in rank_insights([newer, older], limit=5)] == [1, 2]

    def test_ties_go_to_most_recent(self):
        now = datetime(2026, 10, 1)
        a = {"id": 1, "provenance_score": 0.5, "created_at": now - timedelta(days=1)}
        b = {"id": 2, "provenance_score": 0.5, "created_at": now}
        assert [i["id"] for i in rank_insights([a, b], limit=1)] == [2]

    def test_aggregates(self):
        top = [
            {"provenance_score": 0.81, "publisher_type": "exchange"},
            {"provenance_score": 0.475, "publisher_type": "regulator"},
        ]
        agg = aggregate_insights(top)
        assert agg["count"] == 2
        assert agg["mean_provenance_score"] == pytest.approx(0.6425)
        assert agg["by_publisher_type"] == {"exchange": 1, "regulator": 1}

    def test_aggregates_empty(self):
        assert aggregate_insights([]) == {
            "count": 0,
            "mean_provenance_score": None,
            "by_publisher_type": {},
        }


class TestBuildReadPayload:
    """Tests for build_read_payload."""

    def test_metric_series_and_narratives(self, acme):
        payload = build_read_payload(acme, "acme", metric="Revenue")

        assert list(payload["metrics"]) == ["revenue"]
        revenue = payload["metrics"]["revenue"]
        assert [p["delta_pct"] for p in revenue["series"]] == [None, 10.0, -10.0]
        assert [p["signal"] for p in revenue["series"]] == ["none", "strong", "strong"]
        assert revenue["last"]["date"] == "2026-12-31"
        assert revenue["last"]["trend"] == "down"

        assert len(payload["narratives"]) == 3
        assert payload["narratives"][1]["en"].startswith("revenue rose 10.0%")

    def test_all_metrics_without_narratives(self, acme):
        payload = build_read_payload(acme, "acme")
        assert sorted(payload["metrics"]) == ["headcount", "revenue"]
        assert payload["metrics"]["headcount"]["last"]["value"] == 1200.0
        assert payload["narratives"] == []

    def test_unknown_metric_is_empty_series(self, acme):
        payload = build_read_payload(acme, "acme", metric="ebitda")
        assert payload["metrics"] == {"ebitda": {"label": "ebitda", "bucket": None, "series": [], "last": None}}
        assert payload["narratives"] == []

    def test_insights_ranked_by_provenance(self, acme):
        payload = build_read_payload(acme, "acme")
        top = payload["insights"]["top"]

        assert [i["text"] for i in top] == ["Pricing power intact.", "Litigation risk disclosed."]
        assert top[0]["provenance_score"] == pytest.approx(0.81)
        assert top[1]["provenance_score"] == pytest.approx(0.475)
        assert payload["insights"]["aggregates"]["mean_provenance_score"] == pytest.approx(0.6425)

    def test_theme_filter_and_limit(self, acme):
        risk = build_read_payload(acme, "acme", theme="risques")
        assert [i["theme"] for i in risk["insights"]["top"]] == ["risk"]

        one = build_read_payload(acme, "acme", limit=1)
        assert one["insights"]["aggregates"]["count"] == 1

    def test_free_text_theme_matches_label(self, acme):
        _ingest(acme, make_payload(
            url="https://www.ft.com/acme",
            insights=[
                {"text": "Supplier concentration in one region.", "theme": "Supply chain"},
                {"text": "Unthemed remark."},
            ],
        ))

        supply = build_read_payload(acme, "acme", theme="supply CHAIN")
        assert [i["text"] for i in supply["insights"]["top"]] == ["Supplier concentration in one region."]

        assert build_read_payload(acme, "acme", theme="weather")["insights"]["top"] == []

        other = build_read_payload(acme, "acme", theme="other")
        assert sorted(i["text"] for i in other["insights"]["top"]) == [
            "Supplier concentration in one region.",
            "Unthemed remark.",
        ]

    def test_company_block(self, acme):
        assert build_read_payload(acme, "Acme")["company"] == {"slug": "acme", "name": "Acme", "domain": None}

    @pytest.mark.parametrize("limit", [0, 51, -1])
    def test_limit_out_of_range(self, acme, limit):
        with pytest.raises(ValidationError) as exc_info:
            build_read_payload(acme, "acme", limit=limit)
        assert exc_info.value.errors[0].field == "limit"

    def test_unknown_company(self, db):
        with pytest.raises(NotFoundError):
            build_read_payload(db, "nobody")
