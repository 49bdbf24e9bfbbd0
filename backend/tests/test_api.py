"""
HTTP tests for the ingest / read / ping endpoints.
"""
import pytest

from company_intel.api.routes_ingest import check_ingest_token
from company_intel.core.errors import AuthError
from tests.fixtures.ingest_fixtures import AUTH_HEADERS, acme_revenue_payload, full_payload


class TestCheckIngestToken:
    """Tests for check_ingest_token."""

    def test_match(self):
        check_ingest_token("secret", "secret")

    @pytest.mark.parametrize("provided", [None, "", "wrong", "secret "])
    def test_mismatch(self, provided):
        with pytest.raises(AuthError):
            check_ingest_token(provided, "secret")

    def test_unconfigured_rejects_everything(self):
        with pytest.raises(AuthError):
            check_ingest_token("anything", None)
        with pytest.raises(AuthError):
            check_ingest_token("", "")


class TestIngestEndpoint:
    """Tests for POST /api/ingest."""

    def test_missing_token_is_401(self, client):
        resp = client.post("/api/ingest", json=acme_revenue_payload())
        assert resp.status_code == 401

    def test_wrong_token_is_401_before_body_is_read(self, client):
        resp = client.post(
            "/api/ingest",
            content=b"{not json",
            headers={"Authorization": "Bearer nope", "Content-Type": "application/json"},
        )
        assert resp.status_code == 401

    def test_invalid_json_is_400(self, client):
        resp = client.post(
            "/api/ingest",
            content=b"{not json",
            headers={**AUTH_HEADERS, "Content-Type": "application/json"},
        )
        assert resp.status_code == 400
        assert "not valid JSON" in resp.json()["detail"]["error"]

    def test_empty_body_is_400(self, client):
        resp = client.post("/api/ingest", content=b"", headers=AUTH_HEADERS)
        assert resp.status_code == 400

    def test_validation_errors_name_fields(self, client):
        body = {"company": "", "source": {"url": "ftp://x", "title": "T"}, "facts": [{"metric_key": "revenue"}]}
        resp = client.post("/api/ingest", json=body, headers=AUTH_HEADERS)

        assert resp.status_code == 400
        fields = {e["field"] for e in resp.json()["detail"]["errors"]}
        assert {"company", "source.url", "facts.0.metric_value"} <= fields

    def test_non_object_body_is_400(self, client):
        resp = client.post("/api/ingest", json=[1, 2], headers=AUTH_HEADERS)
        assert resp.status_code == 400
        assert resp.json()["detail"]["errors"][0]["field"] == "body"

    def test_wrong_method_is_405(self, client):
        assert client.get("/api/ingest").status_code == 405

    def test_success_and_idempotent_replay(self, client):
        first = client.post("/api/ingest", json=full_payload(), headers=AUTH_HEADERS)
        assert first.status_code == 200
        body = first.json()
        assert body["ok"] is True
        assert body["company"] == "societe-generale"
        assert body["stats"]["facts"] == {"inserted": 2, "skipped": 1}

        second = client.post("/api/ingest", json=full_payload(), headers=AUTH_HEADERS)
        assert second.status_code == 200
        assert second.json()["source_id"] == body["source_id"]
        assert second.json()["stats"]["facts"] == {"inserted": 0, "skipped": 3}


class TestReadEndpoint:
    """Tests for GET /api/read."""

    def test_ingest_then_read(self, client):
        resp = client.post("/api/ingest", json=acme_revenue_payload(), headers=AUTH_HEADERS)
        assert resp.status_code == 200

        resp = client.get("/api/read", params={"company": "acme", "metric": "revenue"})
        assert resp.status_code == 200
        series = resp.json()["metrics"]["revenue"]["series"]
        assert len(series) == 1
        assert series[0]["value"] == 1_200_000_000

    def test_unknown_company_is_404(self, client):
        assert client.get("/api/read", params={"company": "nobody"}).status_code == 404

    def test_missing_company_is_400(self, client):
        resp = client.get("/api/read")
        assert resp.status_code == 400
        assert resp.json()["detail"]["errors"][0]["field"] == "company"

    @pytest.mark.parametrize("limit", ["0", "51", "many"])
    def test_bad_limit_is_400(self, client, limit):
        resp = client.get("/api/read", params={"company": "acme", "limit": limit})
        assert resp.status_code == 400

    def test_wrong_method_is_405(self, client):
        assert client.post("/api/read").status_code == 405


class TestPing:
    def test_ping(self, client):
        resp = client.get("/api/ping")
        assert resp.status_code == 200
        assert resp.text == "pong"
