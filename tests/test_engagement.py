"""Tests for engagement scoring and trends."""

import math

import pytest

from lead_scoring.engagement import (
    EngagementScorer,
    calculate_engagement_score,
    get_score_trend,
    score_lead_engagement,
)
from lead_scoring.models import Interaction, Lead, Trend
from lead_scoring.scoring_config import ScoringWeights


def _interaction(content, type_="email", ts=None, iid="x"):
    return Interaction.from_dict({
        "id": iid, "leadId": "lead1", "type": type_, "content": content, "timestamp": ts,
    })


class TestEngagementScore:
    def test_empty_history_is_neutral(self):
        assert calculate_engagement_score([]) == 50

    def test_single_positive_email(self):
        # score 1, confidence 1 -> value 100, plus bonus 2, clamped
        assert calculate_engagement_score([_interaction("great")]) == 100

    def test_single_negative_email(self):
        # value 0 plus bonus 2
        assert calculate_engagement_score([_interaction("terrible")]) == 2

    def test_zero_confidence_falls_back_to_neutral_average(self):
        score = calculate_engagement_score([_interaction("hello world", iid="a"), _interaction("ok then", iid="b")])
        # no keywords and no punctuation -> zero weights -> 50 + 2 * 2
        assert score == 54

    def test_bonus_is_capped(self):
        history = [_interaction("plain words", iid=str(i)) for i in range(30)]
        assert calculate_engagement_score(history) == 70

    def test_custom_bonus_cap(self):
        history = [_interaction("plain words", iid=str(i)) for i in range(30)]
        weights = ScoringWeights(engagement_bonus_cap=5)
        assert calculate_engagement_score(history, weights) == 55

    def test_recent_interactions_dominate(self):
        old_negative = _interaction("terrible", ts="2025-01-01T00:00:00Z", iid="a")
        new_positive = _interaction("great", ts="2025-02-01T00:00:00Z", iid="b")
        score = calculate_engagement_score([new_positive, old_negative])

        w_old = math.exp(-0.1)
        expected = (0 * w_old + 100 * 1.0) / (w_old + 1.0) + 4
        assert score == pytest.approx(expected)

    def test_channel_weights(self):
        scorer = EngagementScorer()
        assert scorer.channel_weight(_interaction("x", "email").type) == 1.2
        assert scorer.channel_weight(_interaction("x", "chat").type) == 1.0
        assert scorer.channel_weight(_interaction("x", "support_ticket").type) == 0.8
        assert scorer.channel_weight(_interaction("x", "call").type) == 0.8

    @pytest.mark.parametrize("texts", [
        ["great", "awesome", "love it"],
        ["terrible", "awful", "hate"],
        ["maybe", "okay?", "!!!"],
    ])
    def test_bounds(self, texts):
        history = [_interaction(t, iid=str(i)) for i, t in enumerate(texts)]
        assert 0 <= calculate_engagement_score(history) <= 100


class TestScoreTrend:
    @pytest.mark.parametrize("current,previous,expected", [
        (50, 50, Trend.STABLE),
        (52.9, 50, Trend.STABLE),
        (47.1, 50, Trend.STABLE),
        (53, 50, Trend.UP),
        (47, 50, Trend.DOWN),
        (50, None, Trend.STABLE),
    ])
    def test_three_point_threshold(self, current, previous, expected):
        assert get_score_trend(current, previous) == expected

    def test_score_lead_engagement_carries_previous(self):
        lead = Lead.from_dict({"id": "lead1", "engagementScore": 40})
        updated = score_lead_engagement(lead, [_interaction("great")])

        assert updated.previous_score == 40
        assert updated.engagement_score == 100
        assert updated.trend == Trend.UP
        assert lead.engagement_score == 40
