"""Tests for the logistic lead scoring model."""

from datetime import timedelta

import pytest

from lead_scoring.models import Interaction, Lead
from lead_scoring.scoring_model import (
    FEATURE_KEYS,
    LeadScoringModel,
    feature_importance,
    score_lead,
    score_leads_batch,
    sigmoid,
)


@pytest.fixture
def model():
    return LeadScoringModel()


def _hot_history(now, n=20):
    return [
        Interaction.from_dict({
            "id": str(i), "leadId": "hot", "content": "please schedule a demo",
            "sentimentScore": 1.0, "timestamp": (now - timedelta(hours=i)).isoformat(),
        })
        for i in range(n)
    ]


class TestFeatures:
    def test_feature_order(self, model, now):
        lead = Lead.from_dict({"id": "l", "stage": "opportunity", "lastInteraction": now.isoformat()})
        vec, keys = model.extract_features(lead, [], now)
        assert keys == FEATURE_KEYS
        assert vec[:4] == [0.0, 0.0, 1.0, 0.0]

    def test_recency_decays_over_thirty_days(self, model, now):
        lead = Lead.from_dict({"id": "l", "lastInteraction": (now - timedelta(days=30)).isoformat()})
        vec, _ = model.extract_features(lead, [], now)
        assert vec[4] == pytest.approx(0.5)

    def test_total_interactions_preferred_over_history(self, model, now):
        lead = Lead.from_dict({"id": "l", "totalInteractions": 10})
        vec, _ = model.extract_features(lead, [], now)
        assert vec[5] == 0.5

    def test_intent_from_lead_signals(self, model, now):
        lead = Lead.from_dict({
            "id": "l",
            "intentSignals": [{"intent": "pricing_view", "strength": "medium", "count": 2}],
        })
        vec, _ = model.extract_features(lead, [], now)
        assert vec[7] == 0.5

    def test_unknown_stage_excluded_from_one_hot(self, model, now):
        lead = Lead.from_dict({"id": "l", "stage": "churned"})
        vec, _ = model.extract_features(lead, [], now)
        assert vec[:4] == [0.0, 0.0, 0.0, 0.0]


class TestScore:
    def test_blank_lead(self, now):
        result = score_lead(Lead(id="blank"), [], now=now)
        # z = -0.8 + 0.6 (recency) + 0.25 (neutral sentiment)
        assert result.ml_score == 51
        assert result.contributions["recency"] == 0.6
        assert result.contributions["sentiment"] == 0.25

    def test_hot_customer(self, now):
        lead = Lead.from_dict({"id": "hot", "stage": "customer", "lastInteraction": now.isoformat()})
        result = score_lead(lead, _hot_history(now), now=now)
        assert result.ml_score == 87
        assert result.contributions["intent"] == 0.8

    def test_custom_weights_missing_bias(self, now):
        result = score_lead(Lead(id="x"), [], weights={"recency": 0.0}, now=now)
        assert result.ml_score == round(100 * sigmoid(-0.8))

    def test_extreme_weights_stay_bounded(self, now):
        lead = Lead.from_dict({"id": "hot", "stage": "customer"})
        high = score_lead(lead, _hot_history(now), weights={"bias": 1e6}, now=now)
        low = score_lead(lead, _hot_history(now), weights={"bias": -1e6}, now=now)
        assert high.ml_score == 100
        assert low.ml_score == 0

    def test_batch_matches_by_lead(self, leads, interactions, now):
        results = score_leads_batch(leads, interactions, now=now)
        assert [r.lead_id for r in results] == ["lead1", "lead2", "lead3"]
        assert all(0 <= r.ml_score <= 100 for r in results)

    def test_to_dict(self, model, now):
        data = model.score(Lead(id="x"), [], now).to_dict()
        assert data["leadId"] == "x"
        assert data["featureVector"] == FEATURE_KEYS

    def test_feature_importance(self):
        importance = feature_importance()
        assert importance["intent"] == 0.8
        assert importance["stage_prospect"] == 0.2
        assert "bias" not in importance


class TestLeadFromDict:
    @pytest.mark.parametrize("value", [float("inf"), float("-inf"), float("nan")])
    def test_non_finite_numbers_get_defaults(self, value):
        lead = Lead.from_dict({
            "id": "x",
            "engagementScore": value,
            "previousScore": value,
            "totalInteractions": value,
            "mlScore": value,
            "intentSignals": [{"intent": "demo_request", "strength": "high", "count": value}],
        })
        assert lead.engagement_score == 50.0
        assert lead.previous_score is None
        assert lead.total_interactions is None
        assert lead.ml_score is None
        assert lead.intent_signals[0].count == 1

    def test_non_finite_lead_still_scored(self, now):
        lead = Lead.from_dict({"id": "x", "totalInteractions": float("inf")})
        result = score_lead(lead, [], now=now)
        assert 0 <= result.ml_score <= 100
