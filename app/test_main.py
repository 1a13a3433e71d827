"""Tests for the composed application: health, request logging and metrics."""
import json
import logging
from unittest.mock import Mock

import pytest
from fastapi.testclient import TestClient

from db import StudentPool
from main import create_app
from request_logging import JsonFormatter


class _ListHandler(logging.Handler):
    def __init__(self):
        super().__init__()
        self.records = []

    def emit(self, record):
        self.records.append(record)


@pytest.fixture
def access_records(client):
    handler = _ListHandler()
    logger = logging.getLogger("student_backend.access")
    logger.addHandler(handler)
    yield handler.records
    logger.removeHandler(handler)


class TestHealth:
    def test_healthz_ok(self, client):
        response = client.get("/healthz")

        assert response.status_code == 200
        assert response.json() == {"ok": True, "db": True}

    def test_healthz_db_down(self, app_settings):
        pool = Mock(spec=StudentPool)
        pool.ping.side_effect = RuntimeError("connection refused")
        app = create_app(app_settings, pool=pool)

        with TestClient(app) as client:
            response = client.get("/healthz")

        assert response.status_code == 500
        assert response.json() == {"ok": False, "error": "connection refused"}
        pool.close.assert_called_once()


class TestRequestLogging:
    def test_generates_request_id(self, client, access_records):
        response = client.get("/api/students")

        request_id = response.headers["X-Request-Id"]
        assert len(request_id) == 36
        assert access_records[-1].request_id == request_id

    def test_echoes_inbound_request_id(self, client, access_records):
        response = client.get("/api/students?q=Anna", headers={"X-Request-Id": "abc-123"})

        assert response.headers["X-Request-Id"] == "abc-123"
        record = access_records[-1]
        assert record.method == "GET"
        assert record.path == "/api/students?q=Anna"
        assert record.status == 200
        assert record.duration_ms >= 0

    def test_logs_error_status(self, client, access_records):
        client.get("/api/students/999")

        assert access_records[-1].status == 404

    def test_metrics_endpoint_not_logged(self, client, access_records):
        response = client.get("/metrics")

        assert "X-Request-Id" not in response.headers
        assert access_records == []

    def test_json_formatter_access_line(self):
        record = logging.makeLogRecord(
            {
                "name": "student_backend.access",
                "msg": "request completed",
                "request_id": "r-1",
                "method": "GET",
                "path": "/healthz",
                "status": 200,
                "duration_ms": 3,
            }
        )

        line = json.loads(JsonFormatter("student-backend").format(record))

        assert line["service"] == "student-backend"
        assert line["request_id"] == "r-1"
        assert line["status"] == 200
        assert line["time"].endswith("Z")
        assert "level" not in line

    def test_json_formatter_plain_line(self):
        record = logging.makeLogRecord(
            {"name": "student_backend.db", "msg": "pool %s", "args": ("closed",), "levelname": "INFO"}
        )

        line = json.loads(JsonFormatter("svc").format(record))

        assert line["message"] == "pool closed"
        assert line["logger"] == "student_backend.db"
        assert line["level"] == "INFO"


class TestMetrics:
    def test_exposition_format(self, client):
        response = client.get("/metrics")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")
        assert "python_info" in response.text
        assert "# TYPE http_request_duration_seconds histogram" in response.text

    def test_records_route_template(self, client):
        created = client.post(
            "/api/students", json={"student_code": "S1", "full_name": "Anna Lee"}
        ).json()
        client.get(f"/api/students/{created['id']}")
        client.get("/api/students/424242")

        text = client.get("/metrics").text

        assert (
            'http_request_duration_seconds_count{method="POST",route="/api/students",status_code="201"} 1.0'
            in text
        )
        assert (
            'http_request_duration_seconds_count{method="GET",route="/api/students/{student_id}",status_code="200"} 1.0'
            in text
        )
        assert (
            'http_request_duration_seconds_count{method="GET",route="/api/students/{student_id}",status_code="404"} 1.0'
            in text
        )

    def test_unmatched_route_uses_raw_path(self, client):
        client.get("/does-not-exist")

        text = client.get("/metrics").text

        assert 'route="/does-not-exist",status_code="404"' in text

    def test_metrics_requests_not_measured(self, client):
        client.get("/metrics")
        text = client.get("/metrics").text

        assert 'route="/metrics"' not in text

    def test_render_failure_returns_500(self, client):
        client.app.state.metrics.render = Mock(side_effect=RuntimeError("boom"))

        response = client.get("/metrics")

        assert response.status_code == 500
        assert response.text == "Error generating metrics"


class TestCors:
    def test_cors_headers(self, client):
        response = client.get("/healthz", headers={"Origin": "http://localhost:5173"})

        assert response.headers["access-control-allow-origin"] == "*"
