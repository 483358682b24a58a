"""
Tests for the command line entry point.
"""

import json
from unittest.mock import patch

import pytest

from solvedsense.cli import build_parser, context_from_args, main
from solvedsense.services.solvedac_client import UpstreamNotFoundError, UpstreamRateLimitedError
from tests.mocks.solvedac_mocks import FakeSolvedAcClient


def run_cli(argv, fake=None):
    fake = fake or FakeSolvedAcClient()
    with patch("solvedsense.cli.SolvedAcClient", return_value=fake):
        return main(argv)


class TestParser:
    """Test argument parsing"""

    @pytest.mark.unit
    def test_context_options(self):
        args = build_parser().parse_args(
            ["recommend", "solver", "--urgency", "high", "--mood", "frustrated", "--time", "25", "--streak", "4"]
        )
        context = context_from_args(args)
        assert (context.urgency, context.mood) == ("high", "frustrated")
        assert (context.time_available_minutes, context.streak) == (25, 4)
        assert context.focus is None

    @pytest.mark.unit
    def test_unknown_command_exits_with_usage_error(self):
        with pytest.raises(SystemExit) as exc_info:
            build_parser().parse_args(["forecast", "solver"])
        assert exc_info.value.code == 2


class TestMain:
    """Test end-to-end runs against a fake solved.ac client"""

    @pytest.mark.integration
    def test_weakness_prints_json(self, capsys):
        assert run_cli(["weakness", "solver"]) == 0
        data = json.loads(capsys.readouterr().out)
        assert data["weakest_tags"][0]["tag"] == "dp"

    @pytest.mark.integration
    def test_recommend_applies_context(self, capsys):
        assert run_cli(["recommend", "solver", "--mood", "frustrated", "--indent", "0"]) == 0
        out = capsys.readouterr().out
        assert len(out.strip().splitlines()) == 1
        assert json.loads(out)["immediate"][0]["type"] == "confidence_boost"

    @pytest.mark.integration
    def test_predict(self, capsys):
        assert run_cli(["predict", "solver"]) == 0
        assert json.loads(capsys.readouterr().out)["next_tier"] == "Gold V"

    @pytest.mark.integration
    def test_upstream_error_exits_with_one(self, capsys):
        fake = FakeSolvedAcClient(error=UpstreamNotFoundError("User not found on solved.ac"))
        assert run_cli(["report", "ghost"], fake) == 1
        captured = capsys.readouterr()
        assert captured.out == ""
        assert "User not found" in captured.err

    @pytest.mark.integration
    def test_rate_limited_reports_retry_after(self, capsys):
        fake = FakeSolvedAcClient(error=UpstreamRateLimitedError("Too many requests", retry_after=12))
        assert run_cli(["progress", "solver"], fake) == 1
        assert "retry after 12s" in capsys.readouterr().err
