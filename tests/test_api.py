"""Tests for the HTTP API."""

import asyncio

import pytest


class TestHealth:
    def test_root(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert response.json()["status"] == "operational"

    def test_health(self, client):
        data = client.get("/api/health").json()
        assert data["ok"] is True
        assert data["sentimentProvider"] == "keyword"
        assert "timestamp" in data

    def test_metrics(self, client):
        client.post("/api/sentiment", json={"text": "great"})
        response = client.get("/metrics")
        assert response.status_code == 200
        assert "leadpulse_sentiment_requests_total" in response.text


class TestSentimentEndpoint:
    def test_analyze(self, client):
        response = client.post("/api/sentiment", json={"text": "I love this, please schedule a demo!"})
        assert response.status_code == 200
        data = response.json()
        assert data["sentiment"] == "positive"
        assert -1 <= data["score"] <= 1

    def test_missing_text(self, client):
        assert client.post("/api/sentiment", json={}).status_code == 400
        assert client.post("/api/sentiment", json={"text": 42}).status_code == 400

    def test_runs_off_event_loop(self, client, services, monkeypatch):
        loops = []
        analyze = services.sentiment.analyze

        def tracking(text):
            try:
                loops.append(asyncio.get_running_loop())
            except RuntimeError:
                loops.append(None)
            return analyze(text)

        monkeypatch.setattr(services.sentiment, "analyze", tracking)
        assert client.post("/api/sentiment", json={"text": "great"}).status_code == 200
        assert loops == [None]

    def test_empty_string_is_valid(self, client):
        response = client.post("/api/sentiment", json={"text": ""})
        assert response.status_code == 200
        assert response.json()["confidence"] == 0


class TestConfigEndpoints:
    def test_get_config(self, client):
        data = client.get("/api/config").json()
        assert data["version"] == 1
        assert data["scoringWeights"]["emailWeight"] == 1.2
        assert data["attributionMode"] == "time_decay"

    def test_patch_config(self, client):
        response = client.patch("/api/config", json={"attributionMode": "linear", "timeDecayLambda": 7})
        assert response.status_code == 200
        data = response.json()
        assert data["version"] == 2
        assert data["attributionMode"] == "linear"
        assert data["timeDecayLambda"] == 0.1

    def test_history_and_rollback(self, client):
        for mode in ("linear", "first_touch", "last_touch"):
            client.patch("/api/config", json={"attributionMode": mode})

        history = client.get("/api/agent/config/history").json()
        assert [h["version"] for h in history] == [1, 2, 3, 4]

        rolled = client.post("/api/agent/config/rollback", json={"version": 2})
        assert rolled.status_code == 200
        assert rolled.json()["attributionMode"] == "linear"
        assert client.get("/api/config").json()["version"] == 2

    def test_rollback_errors(self, client):
        assert client.post("/api/agent/config/rollback", json={}).status_code == 400
        assert client.post("/api/agent/config/rollback", json={"version": 99}).status_code == 404


class TestRecommendEndpoint:
    def test_requires_leads(self, client):
        assert client.post("/api/agent/recommend", json={}).status_code == 400
        assert client.post("/api/agent/recommend", json={"leads": []}).status_code == 400

    def test_rule_based_recommendations(self, client, raw_leads, raw_interactions):
        response = client.post("/api/agent/recommend", json={
            "leads": raw_leads,
            "interactions": raw_interactions,
            "teamMetrics": {"quota": 12},
        })
        assert response.status_code == 200
        data = response.json()
        assert set(data["prioritizedLeadIds"]) == {"lead1", "lead2", "lead3"}
        assert len(data["suggestions"]) == 3
        assert data["summary"].startswith("Top 3 leads")

    def test_cached_per_input(self, client, services, raw_leads):
        body = {"leads": raw_leads}
        first = client.post("/api/agent/recommend", json=body).json()
        second = client.post("/api/agent/recommend", json={"leads": list(reversed(raw_leads))}).json()
        assert first == second
        assert len(services.recommend_cache._entries) == 1

    def test_runs_off_event_loop(self, client, services, raw_leads, monkeypatch):
        loops = []
        recommend = services.recommender.recommend

        def tracking(*args, **kwargs):
            try:
                loops.append(asyncio.get_running_loop())
            except RuntimeError:
                loops.append(None)
            return recommend(*args, **kwargs)

        monkeypatch.setattr(services.recommender, "recommend", tracking)
        assert client.post("/api/agent/recommend", json={"leads": raw_leads}).status_code == 200
        assert loops == [None]

    def test_config_change_invalidates_cache(self, client, services, raw_leads):
        client.post("/api/agent/recommend", json={"leads": raw_leads})
        client.patch("/api/config", json={"sourceWeights": {"event": 0.5}})
        client.post("/api/agent/recommend", json={"leads": raw_leads})
        assert len(services.recommend_cache._entries) == 2


class TestFeedbackAndImprove:
    def test_feedback_created(self, client):
        response = client.post("/api/agent/feedback", json={
            "leadId": "lead1",
            "outcomeType": "helpful",
            "recommendationId": "rec-1",
            "metadata": {"stage": "qualified"},
        })
        assert response.status_code == 201
        data = response.json()
        assert data["leadId"] == "lead1"
        assert data["outcomeType"] == "helpful"
        assert data["metadata"] == {"stage": "qualified"}

    def test_feedback_validation(self, client):
        assert client.post("/api/agent/feedback", json={"outcomeType": "helpful"}).status_code == 400
        assert client.post("/api/agent/feedback", json={"leadId": "l", "outcomeType": "meh"}).status_code == 422

    def test_improve_without_feedback(self, client):
        data = client.post("/api/agent/improve").json()
        assert data == {"success": True, "message": "No recent feedback to improve from"}

    def test_improve_learns_weights(self, client):
        client.patch("/api/config", json={"stageWeights": {"customer": 1.3}})
        for outcome in ("helpful", "helpful", "not_helpful"):
            client.post("/api/agent/feedback", json={
                "leadId": "lead1",
                "outcomeType": outcome,
                "metadata": {"stage": "qualified", "source": "website"},
            })

        data = client.post("/api/agent/improve").json()
        assert data["success"] is True
        assert data["message"] == "Config updated"
        # delta = (2 - 1) / (3 + 2)
        assert data["config"]["stageWeights"]["qualified"] == pytest.approx(1.03)
        assert data["config"]["stageWeights"]["customer"] == 1.3
        assert data["learned"]["sourceWeights"]["website"] == pytest.approx(1.03)
        assert data["config"]["version"] == 3

    def test_improve_ignores_list_stage(self, client):
        client.post("/api/agent/feedback", json={
            "leadId": "lead1", "outcomeType": "helpful", "metadata": {"stage": ["qualified"], "source": "website"},
        })
        data = client.post("/api/agent/improve").json()
        assert data["config"]["stageWeights"] == {}
        assert "website" in data["config"]["sourceWeights"]

    def test_improve_ignores_contacted_only(self, client):
        client.post("/api/agent/feedback", json={"leadId": "lead1", "outcomeType": "contacted"})
        data = client.post("/api/agent/improve").json()
        assert "config" not in data


class TestLeadScoringEndpoints:
    def test_score_leads(self, client, raw_leads, raw_interactions):
        response = client.post("/api/leads/score", json={"leads": raw_leads, "interactions": raw_interactions})
        assert response.status_code == 200
        data = response.json()

        scores = [r["effectiveScore"] for r in data["leads"]]
        assert scores == sorted(scores, reverse=True)

        by_id = {r["leadId"]: r for r in data["leads"]}
        assert by_id["lead1"]["intent"]["topIntent"] == "demo_request"
        assert by_id["lead1"]["previousScore"] == 72
        assert by_id["lead3"]["engagementScore"] == 88
        assert by_id["lead3"]["trend"] == "stable"
        for result in data["leads"]:
            assert 0 <= result["engagementScore"] <= 100
            assert 0 <= result["mlScore"] <= 100
            assert set(result["contributions"]) >= {"recency", "intent"}

    def test_overflowing_numbers_still_scored(self, client):
        body = '{"leads": [{"id": "x", "totalInteractions": 1e400, "mlScore": 1e400, "engagementScore": 1e400}]}'
        response = client.post("/api/leads/score", content=body, headers={"Content-Type": "application/json"})
        assert response.status_code == 200
        lead = response.json()["leads"][0]
        assert lead["engagementScore"] == 50
        assert 0 <= lead["mlScore"] <= 100

    def test_score_requires_leads(self, client):
        assert client.post("/api/leads/score", json={"leads": []}).status_code == 400

    def test_intent(self, client):
        response = client.post("/api/intent", json={"interactions": [
            {"id": "1", "leadId": "l", "content": "Can we start a free trial?"},
        ]})
        assert response.status_code == 200
        assert response.json()["topIntent"] == "trial_signup"
