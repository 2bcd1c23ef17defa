"""
Integration tests for the HTTP API.

External services are faked; the FastAPI app runs in-process
through TestClient.
"""

from io import BytesIO
from uuid import uuid4

import pytest
from pypdf import PdfReader

from spendwise.api.middleware import REQUEST_ID_HEADER
from spendwise.orchestrator import InsightFlow, ReportFlow
from spendwise.services.reports import ReportRenderer, ReportRenderingError

from tests.fakes import AUTH_HEADERS, FakeGeminiModel, FakeTokenVerifier


class BrokenRenderer(ReportRenderer):
    def render(self, request):
        raise ReportRenderingError("PDF generation failed: LayoutError")


class CrashingInsightFlow(InsightFlow):
    def __init__(self):
        pass

    async def generate_insights(self, request, user_id=None, correlation_id=None):
        raise RuntimeError("database exploded")


class TestHealth:
    def test_health_needs_no_auth(self, make_client, verifier):
        client = make_client(verifier=verifier)
        resp = client.get("/api/health")

        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "ok"
        assert body["timestamp"]
        assert verifier.calls == []


class TestAuthGate:
    """Unauthenticated requests never reach validation or handlers."""

    @pytest.mark.parametrize("path", ["/api/generate-insights", "/api/generate-report"])
    def test_missing_token(self, make_client, verifier, fake_model, path):
        client = make_client(model=fake_model, verifier=verifier)
        resp = client.post(path, json={"transactions": []})

        assert resp.status_code == 401
        assert resp.json() == {"error": "Unauthorized"}
        assert verifier.calls == []
        assert fake_model.prompts == []

    def test_invalid_token(self, make_client, verifier, fake_model):
        client = make_client(model=fake_model, verifier=verifier)
        resp = client.post(
            "/api/generate-insights",
            json={"transactions": [{"amount": 1}]},
            headers={"Authorization": "Bearer wrong"},
        )

        assert resp.status_code == 401
        assert resp.json() == {"error": "Unauthorized"}
        assert verifier.calls == ["wrong"]
        assert fake_model.prompts == []

    def test_non_bearer_scheme(self, make_client, verifier):
        client = make_client(verifier=verifier)
        resp = client.post(
            "/api/generate-insights",
            json={"transactions": []},
            headers={"Authorization": "Basic dXNlcjpwYXNz"},
        )
        assert resp.status_code == 401
        assert verifier.calls == []

    @pytest.mark.parametrize("path", ["/api/generate-insights", "/api/generate-report"])
    def test_malformed_body_without_token_is_401(self, make_client, path):
        client = make_client()
        resp = client.post(path, content=b"{not json", headers={"Content-Type": "application/json"})
        assert resp.status_code == 401

    def test_verifier_crash_is_401(self, make_client):
        client = make_client(verifier=FakeTokenVerifier(error=RuntimeError("boom")))
        resp = client.post("/api/generate-insights", json={"transactions": []}, headers=AUTH_HEADERS)
        assert resp.status_code == 401
        assert resp.json() == {"error": "Unauthorized"}


class TestGenerateInsights:
    """Tests for POST /api/generate-insights."""

    def test_live_insight(self, make_client, sample_transactions):
        model = FakeGeminiModel(text="## Overview\n- Rent is most of it.")
        client = make_client(model=model)
        resp = client.post(
            "/api/generate-insights",
            json={"transactions": sample_transactions, "month": "3", "year": 2025},
            headers=AUTH_HEADERS,
        )

        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        assert body["fallback"] is False
        assert "error" not in body
        assert body["insights"] == "## Overview\n- Rent is most of it."
        assert body["metadata"]["total"] == "52.50"
        assert body["metadata"]["transaction_count"] == 2
        assert body["metadata"]["top_categories"][0] == {
            "category": "Rent",
            "total": "40.00",
            "percentage": "76.2",
        }
        assert len(model.prompts) == 1
        assert "March 2025" in model.prompts[0]

    def test_empty_list_skips_provider(self, make_client, fake_model):
        client = make_client(model=fake_model)
        resp = client.post("/api/generate-insights", json={"transactions": []}, headers=AUTH_HEADERS)

        assert resp.status_code == 200
        body = resp.json()
        assert body["insights"] == "No transactions found for this period."
        assert body["success"] is True
        assert fake_model.prompts == []

    def test_provider_failure_falls_back(self, make_client, sample_transactions):
        model = FakeGeminiModel(error=TimeoutError("deadline exceeded"))
        client = make_client(model=model)
        resp = client.post(
            "/api/generate-insights",
            json={"transactions": sample_transactions},
            headers=AUTH_HEADERS,
        )

        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is False
        assert body["fallback"] is True
        assert body["error"]
        assert "deadline exceeded" not in body["error"]
        assert "**Rent**: $40.00 (76.2%)" in body["insights"]
        assert body["metadata"]["total"] == "52.50"

    def test_no_live_provider_configured(self, make_client, sample_transactions):
        client = make_client(model=None)
        resp = client.post(
            "/api/generate-insights",
            json={"transactions": sample_transactions},
            headers=AUTH_HEADERS,
        )
        assert resp.status_code == 200
        assert resp.json()["fallback"] is True

    def test_transactions_not_a_list(self, make_client, fake_model):
        client = make_client(model=fake_model)
        resp = client.post(
            "/api/generate-insights",
            json={"transactions": "lots"},
            headers=AUTH_HEADERS,
        )

        assert resp.status_code == 400
        body = resp.json()
        assert body["error"] == "Invalid request body"
        assert body["details"][0]["field"].startswith("transactions")
        assert fake_model.prompts == []

    def test_missing_transactions(self, make_client):
        resp = make_client().post("/api/generate-insights", json={}, headers=AUTH_HEADERS)
        assert resp.status_code == 400

    def test_invalid_json_with_token(self, make_client):
        resp = make_client().post(
            "/api/generate-insights",
            content=b"{not json",
            headers={**AUTH_HEADERS, "Content-Type": "application/json"},
        )
        assert resp.status_code == 400
        assert resp.json()["error"] == "Request body must be valid JSON"

    def test_invalid_amount(self, make_client):
        resp = make_client().post(
            "/api/generate-insights",
            json={"transactions": [{"amount": "lots", "category": "Food"}]},
            headers=AUTH_HEADERS,
        )
        assert resp.status_code == 400

    def test_long_description_is_accepted(self, make_client, fake_model):
        client = make_client(model=fake_model)
        resp = client.post(
            "/api/generate-insights",
            json={"transactions": [{"amount": 5, "category": "Food", "description": "x" * 5000}]},
            headers=AUTH_HEADERS,
        )

        assert resp.status_code == 200
        assert resp.json()["success"] is True
        assert "x" * 51 not in fake_model.prompts[0]


class TestGenerateReport:
    """Tests for POST /api/generate-report."""

    def test_pdf_download(self, make_client, sample_transactions):
        client = make_client()
        resp = client.post(
            "/api/generate-report",
            json={
                "transactions": sample_transactions,
                "month": "3",
                "year": 2025,
                "summary": "## Overview\n- Rent dominates",
                "total": 999,
            },
            headers=AUTH_HEADERS,
        )

        assert resp.status_code == 200
        assert resp.headers["content-type"] == "application/pdf"
        assert resp.headers["content-disposition"] == "attachment; filename=expense-report-3-2025.pdf"
        assert resp.content.startswith(b"%PDF")

        reader = PdfReader(BytesIO(resp.content))
        text = "\n".join(page.extract_text() or "" for page in reader.pages)
        assert "Total Expenses: $52.50" in text

    def test_month_and_year_required(self, make_client, sample_transactions):
        resp = make_client().post(
            "/api/generate-report",
            json={"transactions": sample_transactions},
            headers=AUTH_HEADERS,
        )
        assert resp.status_code == 400

    def test_render_failure(self, make_client, sample_transactions):
        client = make_client(report_flow=ReportFlow(renderer=BrokenRenderer()))
        resp = client.post(
            "/api/generate-report",
            json={"transactions": sample_transactions, "month": "3", "year": 2025},
            headers=AUTH_HEADERS,
        )

        assert resp.status_code == 500
        assert resp.json() == {"error": "Failed to generate PDF"}

    def test_localized_month_name(self, make_client, sample_transactions):
        resp = make_client().post(
            "/api/generate-report",
            json={"transactions": sample_transactions, "month": "三月", "year": 2025},
            headers=AUTH_HEADERS,
        )

        assert resp.status_code == 200
        assert resp.content.startswith(b"%PDF")
        assert resp.headers["content-disposition"] == (
            "attachment; filename=expense-report-2025.pdf; "
            "filename*=utf-8''expense-report-%E4%B8%89%E6%9C%88-2025.pdf"
        )

    def test_long_description_in_report(self, make_client):
        resp = make_client().post(
            "/api/generate-report",
            json={
                "transactions": [{"amount": 5, "category": "Food", "description": "word " * 2000}],
                "month": "3",
                "year": 2025,
            },
            headers=AUTH_HEADERS,
        )
        assert resp.status_code == 200


class TestUnhandledErrors:
    """Tests for the catch-all handler."""

    def test_detail_outside_production(self, make_client):
        client = make_client(
            insight_flow=CrashingInsightFlow(),
            raise_server_exceptions=False,
        )
        resp = client.post("/api/generate-insights", json={"transactions": []}, headers=AUTH_HEADERS)

        assert resp.status_code == 500
        body = resp.json()
        assert body["error"] == "Internal server error"
        assert body["detail"] == "database exploded"

    def test_no_detail_in_production(self, make_client):
        client = make_client(
            insight_flow=CrashingInsightFlow(),
            environment="production",
            raise_server_exceptions=False,
        )
        resp = client.post("/api/generate-insights", json={"transactions": []}, headers=AUTH_HEADERS)

        assert resp.status_code == 500
        assert resp.json() == {"error": "Internal server error"}

    def test_error_response_keeps_cors_and_request_id(self, make_client):
        client = make_client(
            insight_flow=CrashingInsightFlow(),
            raise_server_exceptions=False,
        )
        request_id = str(uuid4())
        resp = client.post(
            "/api/generate-insights",
            json={"transactions": []},
            headers={**AUTH_HEADERS, "Origin": "http://localhost:3000", REQUEST_ID_HEADER: request_id},
        )

        assert resp.status_code == 500
        assert resp.json()["error"] == "Internal server error"
        assert resp.headers["access-control-allow-origin"] == "http://localhost:3000"
        assert resp.headers[REQUEST_ID_HEADER] == request_id


class TestMiddleware:
    def test_request_id_is_echoed(self, make_client):
        request_id = str(uuid4())
        resp = make_client().get("/api/health", headers={REQUEST_ID_HEADER: request_id})
        assert resp.headers[REQUEST_ID_HEADER] == request_id

    def test_request_id_generated_when_missing(self, make_client):
        resp = make_client().get("/api/health", headers={REQUEST_ID_HEADER: "not-a-uuid"})
        assert resp.headers[REQUEST_ID_HEADER] != "not-a-uuid"

    def test_cors_preflight_allows_configured_origin(self, make_client):
        resp = make_client().options(
            "/api/generate-insights",
            headers={
                "Origin": "http://localhost:3000",
                "Access-Control-Request-Method": "POST",
                "Access-Control-Request-Headers": "Authorization, Content-Type",
            },
        )
        assert resp.status_code == 200
        assert resp.headers["access-control-allow-origin"] == "http://localhost:3000"

    def test_cors_rejects_other_origins(self, make_client):
        resp = make_client().get("/api/health", headers={"Origin": "http://evil.example"})
        assert "access-control-allow-origin" not in resp.headers


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
