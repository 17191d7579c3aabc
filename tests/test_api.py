"""Tests for the REST API."""
import pytest
from fastapi.testclient import TestClient

from fitmerge.api.main import app

T0 = 1_700_000_000_000


@pytest.fixture
def client():
    return TestClient(app)


def _hr_source(name="watch"):
    return {
        "name": name,
        "samples": [
            {"timestamp": T0, "heart_rate": 100},
            {"timestamp": T0 + 10_000, "heart_rate": 140},
        ],
    }


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"

    def test_root(self, client):
        assert client.get("/").json()["docs"] == "/docs"


class TestMetrics:
    def test_lists_all_metrics(self, client):
        data = client.get("/metrics").json()
        assert data["total"] == 5
        by_name = {m["metric"]: m for m in data["metrics"]}
        assert by_name["heart_rate"]["hard_high"] == 220
        assert by_name["speed"]["smoothing_method"] == "median"
        assert by_name["altitude"]["hard_low"] is None


class TestCombine:
    def test_interpolated_heart_rate(self, client):
        response = client.post("/combine", json={"sources": [_hr_source()]})
        assert response.status_code == 200
        data = response.json()

        assert data["total_points"] == 11
        assert data["frames"][5]["heart_rate"] == 120.0
        assert data["frames"][5]["time"] == "0:05"
        assert data["summary"]["stats"]["heart_rate"] == {"avg": 120.0, "max": 140.0, "min": 100.0}
        assert data["sources"][0]["name"] == "watch"

    def test_empty_request(self, client):
        data = client.post("/combine", json={"sources": []}).json()
        assert data["frames"] == []
        assert data["total_points"] == 0
        assert data["summary"]["duration_seconds"] == 0
        assert data["summary"]["stats"] == {}

    def test_absent_values_are_null_not_zero(self, client):
        bike = {
            "name": "bike",
            "samples": [{"timestamp": T0 + s * 1000, "power": 210} for s in range(0, 61)],
        }
        watch = {
            "name": "watch",
            "samples": [{"timestamp": T0 + s * 1000, "heart_rate": 150} for s in range(200, 261)],
        }
        frames = client.post("/combine", json={"sources": [bike, watch]}).json()["frames"]

        gap = [f for f in frames if 100 <= f["elapsed_seconds"] <= 160]
        assert gap
        assert all(f["power"] is None and f["heart_rate"] is None for f in gap)
        assert all(f["power"] != 0 for f in frames)

    def test_iso_timestamps(self, client):
        source = {"samples": [
            {"timestamp": "2024-06-01T08:00:00Z", "cadence": 90},
            {"timestamp": "2024-06-01T08:00:04Z", "cadence": 94},
        ]}
        data = client.post("/combine", json={"sources": [source]}).json()
        assert data["frames"][0]["timestamp"] == 1_717_228_800_000
        assert data["summary"]["duration_seconds"] == 4.0

    def test_max_points_override(self, client):
        source = {"samples": [{"timestamp": T0 + s * 1000, "speed": 30.0} for s in range(600)]}
        body = {"sources": [source], "options": {"max_points": 20}}
        assert client.post("/combine", json=body).json()["total_points"] <= 20

    def test_reported_metrics_limit_output(self, client):
        source = {
            "samples": [{"timestamp": T0, "power": 200, "cadence": 90}],
            "available_metrics": ["power"],
        }
        frame = client.post("/combine", json={"sources": [source]}).json()["frames"][0]
        assert frame["power"] == 200.0
        assert "cadence" not in frame

    def test_smoothing_override(self, client):
        source = {"samples": [
            {"timestamp": T0 + s * 1000, "heart_rate": v}
            for s, v in enumerate([120, 121, 122, 180, 123, 124, 125])
        ]}
        body = {
            "sources": [source],
            "options": {"smoothing": {"heart_rate": {"method": "median", "window_size": 3}}},
        }
        frames = client.post("/combine", json=body).json()["frames"]
        # 180 is rejected; the gap at 3s interpolates between medians 122 and 123
        assert frames[3]["heart_rate"] == 122.5
        assert frames[0]["heart_rate"] == 120.5

    @pytest.mark.parametrize("body", [
        {"sources": [{"samples": [{"power": 100}]}]},
        {"sources": [], "options": {"max_points": 1}},
        {"sources": [], "options": {"smoothing": {"watts": {"method": "median"}}}},
        {"sources": [], "options": {"smoothing": {"power": {"method": "gaussian"}}}},
        {"sources": [{"samples": [], "available_metrics": ["torque"]}]},
    ])
    def test_invalid_requests_rejected(self, client, body):
        assert client.post("/combine", json=body).status_code == 422


class TestDemo:
    def test_demo_combine(self, client):
        body = {"duration_seconds": 600, "seed": 11}
        first = client.post("/demo/combine", json=body).json()
        second = client.post("/demo/combine", json=body).json()

        assert first["total_points"] <= 3600
        assert [s["name"] for s in first["sources"]] == ["Bike Computer", "Watch"]
        assert set(first["summary"]["available_metrics"]) == {
            "power", "heart_rate", "speed", "cadence", "altitude"
        }
        assert first["frames"] == second["frames"]

    def test_demo_duration_bounds(self, client):
        assert client.post("/demo/combine", json={"duration_seconds": 5}).status_code == 422
