"""
Tests for difficulty mastery, progress analysis and tier prediction.
"""

import pytest

from solvedsense.schemas.analytics import UserSnapshot
from solvedsense.services.difficulty import (
    analyze_difficulty_performance,
    find_struggling_levels,
    is_ready_for_next_level,
    level_mastery,
)
from solvedsense.services.progress import analyze_progress, track_learning_progress
from solvedsense.services.tier_predictor import predict_from_stats, predict_tier_achievement


class TestLevelMastery:
    """Test mastery of the current tier bucket"""

    @pytest.mark.unit
    def test_mastery_uses_minimum_attempts(self):
        assert level_mastery(5, {5: {"solved": 4, "total": 4}}) == pytest.approx(40.0)
        assert level_mastery(5, {5: {"solved": 16, "total": 20}}) == pytest.approx(80.0)

    @pytest.mark.unit
    def test_no_data_is_zero(self):
        assert level_mastery(5, {}) == 0.0
        assert level_mastery(5, None) == 0.0

    @pytest.mark.unit
    def test_monotonic_in_solved(self):
        values = [level_mastery(3, {3: {"solved": s, "total": 15}}) for s in range(16)]
        assert values == sorted(values)

    @pytest.mark.unit
    def test_readiness_needs_mastery_and_volume(self):
        assert is_ready_for_next_level(5, {5: {"solved": 10, "total": 14}})
        # 100% mastery is impossible below 10 attempts, and 9 solves is too few anyway
        assert not is_ready_for_next_level(5, {5: {"solved": 9, "total": 9}})
        assert not is_ready_for_next_level(5, {5: {"solved": 12, "total": 20}})

    @pytest.mark.unit
    def test_struggling_levels(self):
        by_level = {
            4: {"solved": 1, "total": 2},
            5: {"solved": 1, "total": 3},
            6: {"solved": 3, "total": 4},
        }
        assert find_struggling_levels(by_level) == [
            {"level": 5, "tier_name": "Bronze I", "mastery": 33.3},
        ]


class TestDifficultyPerformance:
    """Test the combined difficulty analysis"""

    @pytest.mark.unit
    def test_mastered_tier(self, level_stats):
        result = analyze_difficulty_performance(level_stats, 10)
        assert result["current_level_mastery"] == 80.0
        assert result["ready_for_next_level"] is True
        assert [s["level"] for s in result["struggling_levels"]] == [11]
        assert "Gold V" in result["recommendation"]

    @pytest.mark.unit
    def test_missing_input_is_zero_state(self):
        result = analyze_difficulty_performance(None, 7)
        assert result["current_level_mastery"] == 0.0
        assert result["ready_for_next_level"] is False
        assert result["struggling_levels"] == []
        assert "Silver IV" in result["recommendation"]

    @pytest.mark.unit
    def test_consolidate_band(self):
        result = analyze_difficulty_performance([{"level": 3, "solved": 6, "tried": 10}], 3)
        assert result["recommendation"] == "Consolidate your current tier before moving on"


class TestProgress:
    """Test progress summaries"""

    @pytest.mark.unit
    def test_analyze_progress(self, snapshot, level_stats):
        progress = analyze_progress(snapshot, level_stats)
        assert progress["current_tier"] == "Silver I"
        assert progress["next_tier_goal"] == "Gold V"
        assert progress["next_tier_level"] == 11
        assert progress["progress_to_next"] == 60.0
        assert progress["ready_for_promotion"] is True

    @pytest.mark.unit
    def test_next_tier_caps_at_top(self):
        progress = analyze_progress(UserSnapshot(handle="x", tier=30, rating=3200), None)
        assert progress["next_tier_level"] == 30
        assert progress["progress_to_next"] == 100.0

    @pytest.mark.unit
    def test_learning_progress_areas(self, snapshot, tag_stats, level_stats):
        result = track_learning_progress(snapshot, tag_stats, level_stats)
        assert [t["tag"] for t in result["strength_areas"]] == ["implementation"]
        assert [t["tag"] for t in result["improvement_areas"]] == ["math", "greedy"]
        types = [r["type"] for r in result["recommendations"]]
        assert types == ["strength_leverage", "improvement_focus"]

    @pytest.mark.unit
    def test_tier_advancement_recommended_near_promotion(self, tag_stats):
        snap = UserSnapshot(handle="x", tier=10, rating=770, solved_count=300)
        result = track_learning_progress(snap, tag_stats, None)
        assert "tier_advancement" in [r["type"] for r in result["recommendations"]]

    @pytest.mark.unit
    def test_empty_stats(self, snapshot):
        result = track_learning_progress(snapshot, None, None)
        assert result["strength_areas"] == []
        assert result["improvement_areas"] == []
        assert result["difficulty_progression"]["by_level"] == {}


class TestTierPrediction:
    """Test the tier prediction decision table"""

    @pytest.mark.unit
    def test_high_confidence(self):
        result = predict_tier_achievement(progress=85, weak_count=1, ready=True)
        assert result["confidence"] == "High"
        assert result["estimated_time"] == "1-2 weeks"
        assert result["blockers"] == []

    @pytest.mark.unit
    def test_low_confidence(self):
        result = predict_tier_achievement(progress=40, weak_count=5, ready=False)
        assert result["confidence"] == "Low"
        assert result["estimated_time"] == "2-3 months"
        assert "needs foundational improvement" in result["blockers"]

    @pytest.mark.unit
    def test_medium_lists_unmet_conditions(self):
        result = predict_tier_achievement(progress=90, weak_count=3, ready=False)
        assert result["confidence"] == "Medium"
        assert result["estimated_time"] == "1-2 months"
        assert result["blockers"] == ["weak tags need improvement", "current tier not yet mastered"]

    @pytest.mark.unit
    def test_medium_without_blockers(self):
        result = predict_tier_achievement(progress=60, weak_count=0, ready=True)
        assert result["confidence"] == "Medium"
        assert result["blockers"] == []

    @pytest.mark.unit
    def test_recommendation_strings(self):
        result = predict_tier_achievement(
            progress=10, weak_count=4, ready=False, solved_count=50, current_tier=6
        )
        recs = result["recommendations"]
        assert len(recs) == 4
        assert "Silver V" in recs[1]
        assert recs[-1] == "Study consistently every day (2-3 problems)"

    @pytest.mark.unit
    def test_always_recommends_consistency(self):
        recs = predict_tier_achievement(85, 0, True, solved_count=500)["recommendations"]
        assert recs == ["Study consistently every day (2-3 problems)"]

    @pytest.mark.unit
    def test_from_stats(self, snapshot, tag_stats, level_stats):
        result = predict_from_stats(snapshot, tag_stats, level_stats)
        assert result["next_tier"] == "Gold V"
        assert result["current_progress"] == 60.0
        assert result["confidence"] == "Medium"
        assert result["blockers"] == ["weak tags need improvement"]
