"""HTTP-level tests for the analyze endpoint."""

import json

from conftest import signal_reply
from fastapi.testclient import TestClient

from call_signals.exceptions import GatewayError
from call_signals.llm import gateway as gateway_module
from call_signals.main import app

VALID_LABELS = {"STRONG BUY", "BUY", "HOLD", "AVOID"}


class TestAnalyzeEndpoint:
    def test_end_to_end_single_ticker(self, client, fake_gateway, sample_record):
        fake_gateway.replies = [
            json.dumps(
                {
                    "ticker": "AAPL",
                    "signal": "BUY",
                    "score": 8,
                    "recommendation": "Momentum and trend aligned; enter on a pullback.",
                    "risks": ["Earnings in 34 days", "Extended above 50 SMA"],
                }
            )
        ]

        response = client.post(
            "/api/analyze", json={"tickers": ["AAPL"], "technical_data": [sample_record]}
        )

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["model"] == "test-model"
        assert body["cost_estimate"] == "$0.02"
        assert len(body["signals"]) == 1
        signal = body["signals"][0]
        assert signal["ticker"] == "AAPL"
        assert signal["signal"] in VALID_LABELS
        assert signal["callOption"]["strikePrice"] == "220.00"
        assert signal["technicalScore"] == 80
        assert signal["company"] == "Apple Inc."
        assert "error" not in signal
        assert body["summary"] == {
            "total": 1,
            "strongBuy": 0,
            "buy": 1,
            "hold": 0,
            "avoid": 0,
            "errors": 0,
        }
        assert '"strikePrice": "220.00"' in fake_gateway.prompts[0]

    def test_error_signal_shape(self, client, fake_gateway, sample_record):
        fake_gateway.replies = [
            GatewayError("LLM request failed (auth): invalid key", kind="auth"),
            signal_reply("MSFT", signal="HOLD", score=5),
        ]

        response = client.post(
            "/api/analyze",
            json={"tickers": ["AAPL", "MSFT"], "technical_data": [sample_record] * 2},
        )

        assert response.status_code == 200
        body = response.json()
        assert [s["ticker"] for s in body["signals"]] == ["MSFT", "AAPL"]
        failed = body["signals"][1]
        assert failed["signal"] == "ERROR"
        assert failed["score"] == 0
        assert "invalid key" in failed["error"]
        assert "callOption" not in failed
        assert body["summary"]["errors"] == 1
        assert body["summary"]["total"] == len(body["signals"])

    def test_missing_tickers_rejected_without_gateway_call(
        self, client, fake_gateway, sample_record
    ):
        response = client.post("/api/analyze", json={"technical_data": [sample_record]})

        assert response.status_code == 400
        assert response.json() == {
            "error": "Invalid request",
            "message": "Please provide tickers array.",
        }
        assert fake_gateway.calls == 0

    def test_length_mismatch_rejected(self, client, fake_gateway, sample_record):
        response = client.post(
            "/api/analyze", json={"tickers": ["AAPL", "MSFT"], "technical_data": [sample_record]}
        )

        assert response.status_code == 400
        assert "same length" in response.json()["message"]
        assert fake_gateway.calls == 0

    def test_malformed_json_body(self, client, fake_gateway):
        response = client.post(
            "/api/analyze", content=b"{not json", headers={"Content-Type": "application/json"}
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid request"
        assert fake_gateway.calls == 0

    def test_empty_body(self, client, fake_gateway):
        response = client.post("/api/analyze")

        assert response.status_code == 400
        assert fake_gateway.calls == 0

    def test_batch_mode(self, client, fake_gateway, sample_record):
        fake_gateway.replies = [
            '{"signals": [{"ticker": "AAPL", "signal": "STRONG BUY", "score": 9}]}'
        ]

        response = client.post(
            "/api/analyze?mode=batch",
            json={"tickers": ["AAPL"], "technical_data": [sample_record]},
        )

        assert response.status_code == 200
        body = response.json()
        assert set(body) == {"signals", "analysis_timestamp", "model_used"}
        assert body["model_used"] == "test-model"
        assert body["signals"][0]["signal"] == "STRONG BUY"
        assert fake_gateway.calls == 1

    def test_batch_gateway_failure_is_500(self, client, fake_gateway, sample_record):
        fake_gateway.replies = [
            GatewayError("LLM request failed (timeout): timed out", kind="timeout")
        ]

        response = client.post(
            "/api/analyze?mode=batch",
            json={"tickers": ["AAPL"], "technical_data": [sample_record]},
        )

        assert response.status_code == 500
        body = response.json()
        assert body["error"] == "Analysis failed"
        assert "timed out" in body["message"]
        assert "timestamp" in body

    def test_unexpected_failure_is_500(self, client, fake_gateway, sample_record):
        fake_gateway.replies = [RuntimeError("unexpected")]

        response = client.post(
            "/api/analyze", json={"tickers": ["AAPL"], "technical_data": [sample_record]}
        )

        assert response.status_code == 500
        assert response.json()["error"] == "Analysis failed"
        assert response.json()["message"] == "unexpected"

    def test_invalid_mode(self, client, fake_gateway, sample_record):
        response = client.post(
            "/api/analyze?mode=fast",
            json={"tickers": ["AAPL"], "technical_data": [sample_record]},
        )

        assert response.status_code == 400
        assert fake_gateway.calls == 0


class TestHttpSurface:
    def test_options_returns_empty_200_with_cors_headers(self, client):
        response = client.options("/api/analyze")

        assert response.status_code == 200
        assert response.content == b""
        assert response.headers["access-control-allow-origin"] == "*"
        assert response.headers["access-control-allow-methods"] == "GET, POST, OPTIONS"
        assert response.headers["access-control-allow-headers"] == "Content-Type"

    def test_preflight_returns_empty_200_with_cors_headers(self, client):
        response = client.options(
            "/api/analyze",
            headers={
                "Origin": "https://dashboard.example.com",
                "Access-Control-Request-Method": "POST",
                "Access-Control-Request-Headers": "Content-Type",
            },
        )

        assert response.status_code == 200
        assert response.content == b""
        assert "text/plain" not in response.headers.get("content-type", "")
        assert response.headers["access-control-allow-origin"] == "*"
        assert response.headers["access-control-allow-methods"] == "GET, POST, OPTIONS"
        assert "Content-Type" in response.headers["access-control-allow-headers"]

    def test_disallowed_preflight_method_rejected(self, client):
        response = client.options(
            "/api/analyze",
            headers={
                "Origin": "https://dashboard.example.com",
                "Access-Control-Request-Method": "DELETE",
            },
        )

        assert response.status_code == 400

    def test_post_response_has_cors_header(self, client, fake_gateway, sample_record):
        fake_gateway.replies = [signal_reply("AAPL")]

        response = client.post(
            "/api/analyze",
            json={"tickers": ["AAPL"], "technical_data": [sample_record]},
            headers={"Origin": "https://dashboard.example.com"},
        )

        assert response.headers["access-control-allow-origin"] == "*"

    def test_other_methods_not_allowed(self, client):
        for method in ("get", "put", "delete"):
            response = getattr(client, method)("/api/analyze")
            assert response.status_code == 405
            assert response.json() == {"error": "Method not allowed"}

    def test_health(self, client):
        response = client.get("/api/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}

    def test_lifespan_configures_logging_and_releases_gateway(self):
        with TestClient(app) as client:
            assert client.get("/api/health").status_code == 200
            gateway_module.get_gateway()

        assert gateway_module._gateway is None
