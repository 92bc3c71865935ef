"""
Tests for the HTTP API.
"""

import time

import pytest
from fastapi.testclient import TestClient

from playoff_odds.main import app


@pytest.fixture
def client(monkeypatch):
    monkeypatch.setenv("PLAYOFF_ODDS_TRIALS", "300")
    monkeypatch.setenv("PLAYOFF_ODDS_CHUNK_SIZE", "100")
    monkeypatch.setenv("PLAYOFF_ODDS_SAMPLE_SIZE", "2")
    monkeypatch.setenv("PLAYOFF_ODDS_SEED", "3")
    monkeypatch.setenv("PLAYOFF_ODDS_DEBOUNCE_SECONDS", "0.05")
    monkeypatch.delenv("PLAYOFF_ODDS_LIVE_FEED_URL", raising=False)
    with TestClient(app) as client:
        yield client


@pytest.fixture
def loaded_client(client, league_payload):
    response = client.post("/api/league", json=league_payload())
    assert response.status_code == 201
    return client


def _wait_for_recompute(client, timeout=5.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        status = client.get("/api/updater/status").json()
        if status["recompute_count"]:
            return status
        time.sleep(0.05)
    raise AssertionError("updater never recomputed")


class TestLeagueEndpoints:
    """Tests for health and league loading."""

    def test_health(self, client):
        response = client.get("/api/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_load_league(self, client, league_payload):
        response = client.post("/api/league", json=league_payload())

        assert response.status_code == 201
        data = response.json()
        assert data["teams"] == ["A", "B", "C", "D"]
        assert data["playoff_spots"] == 2
        assert data["computed"] == 4

    def test_load_computes_from_one_snapshot(self, client, league_payload):
        """Test that every record from a league load is stamped after the load, at one instant."""
        client.post("/api/league", json=league_payload())
        service = client.app.state.service

        stamps = {record.computed_at for record in service.store.all()}
        assert len(stamps) == 1
        assert stamps.pop() >= service.loaded_at

    def test_invalid_league_lists_violations(self, client, league_payload):
        """Test that a rejected snapshot reports every problem at once."""
        payload = league_payload()
        payload["teams"][1]["wins"] = -1
        payload["settings"]["playoff_spots"] = 0

        response = client.post("/api/league", json=payload)

        assert response.status_code == 422
        detail = response.json()["detail"]
        assert detail["message"] == "Invalid league snapshot"
        assert len(detail["violations"]) >= 2


class TestProbabilityEndpoints:
    """Tests for probability and optimization endpoints."""

    def test_empty_before_load(self, client):
        response = client.get("/api/probabilities")
        assert response.status_code == 200
        assert response.json()["teams"] == []

    def test_list_probabilities(self, loaded_client):
        data = loaded_client.get("/api/probabilities").json()

        odds = [t["championship_probability"] for t in data["teams"]]
        assert len(odds) == 4
        assert odds == sorted(odds, reverse=True)
        assert sum(odds) == pytest.approx(1.0)
        assert sum(t["playoff_probability"] for t in data["teams"]) == pytest.approx(2.0)

    def test_get_team_probability(self, loaded_client):
        response = loaded_client.get("/api/probabilities/B")

        assert response.status_code == 200
        data = response.json()
        assert data["team_id"] == "B"
        assert 0.0 <= data["championship_probability"] <= 1.0
        assert data["optimal_path"]["rounds"]

    def test_unknown_team_probability(self, loaded_client):
        assert loaded_client.get("/api/probabilities/Z").status_code == 404

    def test_optimization(self, loaded_client):
        response = loaded_client.get("/api/optimization/C")

        assert response.status_code == 200
        data = response.json()
        assert data["team_id"] == "C"
        assert data["strategies"]
        assert len(data["scenarios"]) == 3

    def test_unknown_team_optimization(self, loaded_client):
        assert loaded_client.get("/api/optimization/Z").status_code == 404


class TestLiveEndpoints:
    """Tests for event intake and update history."""

    def test_updater_active(self, client):
        status = client.get("/api/updater/status").json()
        assert status["state"] == "active"
        assert status["connection"] == "connected"

    def test_submit_event(self, loaded_client):
        response = loaded_client.post(
            "/api/events", json={"kind": "score_update", "team_id": "A", "current_score": 40.5}
        )

        assert response.status_code == 202
        assert response.json()["kind"] == "score_update"
        assert response.json()["accepted"] is True

    def test_invalid_event(self, client):
        response = client.post("/api/events", json={"kind": "score_update", "team_id": "A"})

        assert response.status_code == 422
        detail = response.json()["detail"]
        assert detail["message"] == "Invalid live event"
        assert any("current_score" in v for v in detail["violations"])

    def test_final_score_produces_updates(self, loaded_client):
        """Test that a game end recomputes both teams and records the updates."""
        response = loaded_client.post(
            "/api/events",
            json={"kind": "game_end", "team_id": "A", "final_score": 131.0, "opponent_score": 84.0},
        )
        assert response.status_code == 202

        _wait_for_recompute(loaded_client)
        updates = loaded_client.get("/api/updates").json()["updates"]

        assert len(updates) == 2
        assert "A" in {u["team_id"] for u in updates}
        assert all(u["message"].startswith(f"Team {u['team_id']} championship probability") for u in updates)
        assert len(loaded_client.get("/api/updates?limit=1").json()["updates"]) == 1
