from unittest.mock import AsyncMock, MagicMock

import pytest
from flask import Flask
from flask.testing import FlaskClient

from shared.enums import GateDecision

from push_sender.app import create_app
from push_sender.config import PushSenderConfig
from push_sender.errors import ConfigurationError, ValidationError
from push_sender.pipeline import PushPipeline, PushResult

PAYLOAD = {
    "userId": "user-1",
    "title": "Pothole reported",
    "message": "0.4 km from your home",
    "deviceEndpoints": ["tok-a", "tok-b"],
}


@pytest.fixture()
def mock_pipeline() -> MagicMock:
    pipeline = MagicMock(spec=PushPipeline)
    pipeline.is_configured = True
    pipeline.run = AsyncMock(return_value=PushResult(
        success=True, sent=2, failed=0, message="Delivered to 2 device(s)"
    ))
    return pipeline


@pytest.fixture()
def app(mock_pipeline: MagicMock) -> Flask:
    app = create_app(
        mock_pipeline, PushSenderConfig(cors_allow_origin="https://app.example")
    )
    app.config["TESTING"] = True
    return app


@pytest.fixture()
def client(app: Flask) -> FlaskClient:
    return app.test_client()


class TestSendPushNotification:
    """POST /send-push-notification endpoint."""

    def test_delivered_returns_200(
        self, client: FlaskClient, mock_pipeline: MagicMock
    ) -> None:
        resp = client.post("/send-push-notification", json=PAYLOAD)

        assert resp.status_code == 200
        assert resp.get_json() == {
            "success": True,
            "sent": 2,
            "failed": 0,
            "message": "Delivered to 2 device(s)",
            "invalidEndpoints": 0,
        }
        mock_pipeline.run.assert_awaited_once_with(PAYLOAD)

    def test_blocked_returns_200_with_reason(
        self, client: FlaskClient, mock_pipeline: MagicMock
    ) -> None:
        mock_pipeline.run.return_value = PushResult(
            success=False,
            sent=0,
            failed=0,
            message="Notification suppressed during quiet hours",
            decision=GateDecision.BLOCKED_QUIET_HOURS,
            extra={"resumeAt": "2026-01-15T06:01:00+00:00"},
        )

        resp = client.post("/send-push-notification", json=PAYLOAD)

        assert resp.status_code == 200
        data = resp.get_json()
        assert data["success"] is False
        assert data["blocked"] == "blocked_quiet_hours"
        assert data["resumeAt"] == "2026-01-15T06:01:00+00:00"

    def test_no_json_body_returns_400(
        self, client: FlaskClient, mock_pipeline: MagicMock
    ) -> None:
        resp = client.post(
            "/send-push-notification", data="not json", content_type="text/plain"
        )

        assert resp.status_code == 400
        assert "JSON" in resp.get_json()["error"]
        mock_pipeline.run.assert_not_awaited()

    def test_validation_error_returns_400(
        self, client: FlaskClient, mock_pipeline: MagicMock
    ) -> None:
        mock_pipeline.run.side_effect = ValidationError("userId is required")

        resp = client.post("/send-push-notification", json={"title": "x"})

        assert resp.status_code == 400
        assert resp.get_json() == {"success": False, "error": "userId is required"}

    def test_missing_configuration_returns_500(
        self, client: FlaskClient, mock_pipeline: MagicMock
    ) -> None:
        mock_pipeline.run.side_effect = ConfigurationError(
            "FCM server key is not configured"
        )

        resp = client.post("/send-push-notification", json=PAYLOAD)

        assert resp.status_code == 500
        data = resp.get_json()
        assert data["error"] == "Server configuration error"
        assert data["details"] == "FCM server key is not configured"

    def test_unexpected_error_returns_400(
        self, client: FlaskClient, mock_pipeline: MagicMock
    ) -> None:
        mock_pipeline.run.side_effect = RuntimeError("boom")

        resp = client.post("/send-push-notification", json=PAYLOAD)

        assert resp.status_code == 400
        assert resp.get_json() == {"success": False, "error": "boom"}


class TestCors:
    def test_preflight_returns_ok(
        self, client: FlaskClient, mock_pipeline: MagicMock
    ) -> None:
        resp = client.options("/send-push-notification")

        assert resp.status_code == 200
        assert resp.get_data(as_text=True) == "ok"
        assert resp.headers["Access-Control-Allow-Origin"] == "https://app.example"
        assert "apikey" in resp.headers["Access-Control-Allow-Headers"]
        mock_pipeline.run.assert_not_awaited()

    def test_headers_on_error_responses(self, client: FlaskClient) -> None:
        resp = client.post(
            "/send-push-notification", data="{", content_type="application/json"
        )

        assert resp.status_code == 400
        assert resp.headers["Access-Control-Allow-Origin"] == "https://app.example"


class TestHealth:
    """GET /health endpoint."""

    def test_configured_returns_200(self, client: FlaskClient) -> None:
        resp = client.get("/health")

        assert resp.status_code == 200
        assert resp.get_json()["status"] == "healthy"

    def test_unconfigured_returns_503(
        self, client: FlaskClient, mock_pipeline: MagicMock
    ) -> None:
        mock_pipeline.is_configured = False

        resp = client.get("/health")

        assert resp.status_code == 503
        data = resp.get_json()
        assert data["status"] == "unhealthy"
        assert data["checks"]["configuration"] == "missing"
