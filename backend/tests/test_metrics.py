"""
Tests for the metric primitives: tag accuracy, difficulty success,
activity pattern and tier helpers.
"""

import pytest

from solvedsense.schemas.analytics import TagStat, UserSnapshot
from solvedsense.services.metrics import (
    activity_pattern,
    coerce_tag_stats,
    difficulty_success,
    tag_accuracy,
    tier_name,
    tier_progress,
)


class TestTagAccuracy:
    """Test per-tag accuracy rows"""

    @pytest.mark.unit
    def test_one_row_per_tag(self, tag_stats):
        rows = tag_accuracy(tag_stats)
        assert len(rows) == len(tag_stats)
        assert all(r["solved"] <= r["tried"] for r in rows)

    @pytest.mark.unit
    def test_sorted_best_first(self, tag_stats):
        accuracies = [r["accuracy"] for r in tag_accuracy(tag_stats)]
        assert accuracies == sorted(accuracies, reverse=True)
        assert tag_accuracy(tag_stats)[0]["tag"] == "implementation"

    @pytest.mark.unit
    def test_success_rate_is_rounded_percent(self):
        rows = tag_accuracy([TagStat(tag="graphs", solved=1, tried=3)])
        assert rows[0]["success_rate"] == 33.3

    @pytest.mark.unit
    def test_zero_tried_has_zero_accuracy(self):
        rows = tag_accuracy([TagStat(tag="geometry", solved=0, tried=0)])
        assert rows[0]["accuracy"] == 0

    @pytest.mark.unit
    @pytest.mark.parametrize("bad_input", [None, [], "dp", 42, {"tag": "dp"}])
    def test_missing_or_non_list_input_is_empty(self, bad_input):
        assert tag_accuracy(bad_input) == []

    @pytest.mark.unit
    def test_malformed_items_are_skipped(self):
        rows = tag_accuracy([
            {"tag": "dp", "solved": 1, "tried": 4},
            {"solved": "many"},
            "not a record",
        ])
        assert [r["tag"] for r in rows] == ["dp"]

    @pytest.mark.unit
    def test_tried_is_raised_to_solved(self):
        stats = coerce_tag_stats([{"tag": "math", "solved": 5, "tried": 3}])
        assert stats[0].tried == 5
        assert stats[0].accuracy == 1.0


class TestDifficultySuccess:
    """Test grouping of solves by level"""

    @pytest.mark.unit
    def test_unrated_and_unsolved_levels_excluded(self, level_stats):
        result = difficulty_success(level_stats + [{"level": 12, "solved": 0, "tried": 4}])
        assert sorted(result["by_level"]) == [9, 10, 11]

    @pytest.mark.unit
    def test_total_is_attempted_count(self, level_stats):
        bucket = difficulty_success(level_stats)["by_level"][10]
        assert bucket == {"tier_name": "Silver I", "solved": 16, "total": 20}

    @pytest.mark.unit
    def test_summary(self, level_stats):
        summary = difficulty_success(level_stats)["summary"]
        assert summary["easiest"] == "Silver II"
        assert summary["hardest"] == "Gold V"
        assert summary["total_solved"] == 48
        # (9*30 + 10*16 + 11*2) / 48
        assert summary["average_level"] == 9.4

    @pytest.mark.unit
    @pytest.mark.parametrize("bad_input", [None, [], "levels"])
    def test_zero_state(self, bad_input):
        assert difficulty_success(bad_input) == {
            "by_level": {},
            "summary": {"easiest": "N/A", "hardest": "N/A", "average_level": 0.0, "total_solved": 0},
        }


class TestActivityPattern:
    """Test activity averages and labels"""

    @pytest.mark.unit
    def test_averages(self, snapshot):
        pattern = activity_pattern(snapshot)
        assert pattern["daily_avg"] == 0.3
        assert pattern["weekly_avg"] == 2.3
        assert pattern["monthly_avg"] == 10.0
        assert pattern["streak"] == 12
        assert pattern["activity_tier_label"] == "intermediate (3-12 months)"

    @pytest.mark.unit
    @pytest.mark.parametrize("solved,label", [
        (0, "new user"),
        (49, "beginner (< 3 months)"),
        (199, "intermediate (3-12 months)"),
        (499, "advanced (1-2 years)"),
        (500, "expert (2+ years)"),
    ])
    def test_label_buckets(self, solved, label):
        snap = UserSnapshot(handle="x", solved_count=solved)
        assert activity_pattern(snap)["activity_tier_label"] == label

    @pytest.mark.unit
    def test_none_snapshot(self):
        assert activity_pattern(None)["daily_avg"] == 0.0


class TestTierHelpers:
    """Test tier names and tier progress"""

    @pytest.mark.unit
    def test_tier_names(self):
        assert tier_name(0) == "Unrated"
        assert tier_name(6) == "Silver V"
        assert tier_name(30) == "Ruby I"
        assert tier_name(31) == "Unknown"
        assert tier_name(-1) == "Unknown"

    @pytest.mark.unit
    def test_progress_interpolates(self):
        # Silver I starts at 650, Gold V at 800
        assert tier_progress(740, 10) == pytest.approx(60.0)

    @pytest.mark.unit
    def test_progress_is_clamped(self):
        assert tier_progress(550, 10) == 0.0
        assert tier_progress(5000, 10) == 100.0

    @pytest.mark.unit
    def test_top_tier_reports_full(self):
        assert tier_progress(3000, 30) == 100.0
