"""Tests for feedback-driven stage/source weights."""

import itertools

import pytest

from lead_scoring.feedback_learning import (
    FeedbackWeightLearner,
    compute_learned_weights,
    merge_weights,
)
from lead_scoring.models import FeedbackRecord, OutcomeType


def _fb(outcome, stage=None, source=None):
    metadata = {}
    if stage:
        metadata["stage"] = stage
    if source:
        metadata["source"] = source
    return FeedbackRecord(lead_id="lead1", outcome_type=OutcomeType(outcome), metadata=metadata)


class TestLearnedWeights:
    def test_cancelling_votes(self):
        learned = compute_learned_weights([
            _fb("helpful", stage="qualified"),
            _fb("not_helpful", stage="qualified"),
        ])
        assert learned.stage_weights["qualified"] == pytest.approx(1.0)
        assert learned.source_weights == {}

    def test_single_helpful_vote(self):
        learned = compute_learned_weights([_fb("helpful", stage="opportunity", source="website")])
        # delta = 1 / 3
        assert learned.stage_weights["opportunity"] == pytest.approx(1.05)
        assert learned.source_weights["website"] == pytest.approx(1.05)

    def test_no_votes_returns_none(self):
        assert compute_learned_weights([]) is None
        assert compute_learned_weights([_fb("contacted", stage="qualified"), _fb("dismissed")]) is None

    @pytest.mark.parametrize("pos,neg", list(itertools.product([0, 1, 5, 50], repeat=2)))
    def test_bounds(self, pos, neg):
        batch = [_fb("helpful", stage="s")] * pos + [_fb("not_helpful", stage="s")] * neg
        learned = FeedbackWeightLearner(learning_rate=10).compute(batch)
        if pos + neg == 0:
            assert learned is None
        else:
            assert 0.5 <= learned.stage_weights["s"] <= 1.5

    def test_to_dict_nulls_empty_maps(self):
        data = compute_learned_weights([_fb("helpful", stage="qualified")]).to_dict()
        assert data["sourceWeights"] is None
        assert "qualified" in data["stageWeights"]


class TestMergeWeights:
    def test_learned_keys_overwrite_others_persist(self):
        learned = compute_learned_weights([_fb("helpful", stage="qualified")])
        stage, source = merge_weights({"qualified": 0.7, "customer": 1.3}, {"event": 1.1}, learned)
        assert stage["qualified"] == pytest.approx(1.05)
        assert stage["customer"] == 1.3
        assert source == {"event": 1.1}

    def test_none_learned_keeps_existing(self):
        assert merge_weights({"a": 1.2}, None, None) == ({"a": 1.2}, {})
