"""
Tests for the template and OpenAI explainers.
"""

import json
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import openai
import pytest

from solvedsense.schemas.analytics import AdaptiveWeights
from solvedsense.services.explainer import (
    OpenAIExplainer,
    TemplateExplainer,
    get_explainer,
)
from solvedsense.services.weakness import identify_weak_tags


def mock_completion(content: str) -> MagicMock:
    """Shape of openai ChatCompletion that the explainer reads"""
    completion = MagicMock()
    completion.choices = [MagicMock()]
    completion.choices[0].message.content = content
    return completion


def mock_async_client(result=None, error=None) -> MagicMock:
    client = MagicMock()
    client.chat.completions.create = AsyncMock(return_value=result, side_effect=error)
    return client


class TestTemplateExplainer:
    """Test fixed reasoning sentences"""

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_no_emphasis_no_sentences(self):
        assert await TemplateExplainer().reasoning(AdaptiveWeights(), "stable") == []

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_sentences_follow_thresholds(self):
        weights = AdaptiveWeights(weakness=0.6, progress=0.5)
        sentences = await TemplateExplainer().reasoning(weights, "declining")
        assert len(sentences) == 3
        assert "weak tags" in sentences[0]
        assert "next tier" in sentences[1]
        assert "dipped" in sentences[2]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_weakness_summary(self, tag_stats):
        summary = await TemplateExplainer().weakness_summary(identify_weak_tags(tag_stats))
        assert summary.startswith("Your weakest tag is dp at 20.0% accuracy")
        assert "graphs, greedy" in summary

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_weakness_summary_without_weak_tags(self):
        summary = await TemplateExplainer().weakness_summary([])
        assert summary.startswith("No weak tags found")


class TestOpenAIExplainer:
    """Test generative phrasing and its fallback"""

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_uses_generated_sentences(self):
        client = mock_async_client(mock_completion(json.dumps({"sentences": ["Work on your weak tags."]})))
        with patch("solvedsense.services.explainer.get_async_openai_client", return_value=client):
            sentences = await OpenAIExplainer(model="test-model").reasoning(
                AdaptiveWeights(weakness=0.6), "stable"
            )
        assert sentences == ["Work on your weak tags."]
        assert client.chat.completions.create.await_args.kwargs["model"] == "test-model"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_skips_call_when_nothing_to_say(self):
        client = mock_async_client()
        with patch("solvedsense.services.explainer.get_async_openai_client", return_value=client):
            assert await OpenAIExplainer().reasoning(AdaptiveWeights(), "stable") == []
        client.chat.completions.create.assert_not_awaited()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_falls_back_on_api_error(self):
        error = openai.APIConnectionError(request=httpx.Request("POST", "https://api.openai.com/v1"))
        client = mock_async_client(error=error)
        weights = AdaptiveWeights(weakness=0.6)
        with patch("solvedsense.services.explainer.get_async_openai_client", return_value=client):
            sentences = await OpenAIExplainer().reasoning(weights, "improving")
        assert sentences == TemplateExplainer.reasoning_sentences(weights, "improving")

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_falls_back_on_malformed_response(self):
        client = mock_async_client(mock_completion("not json"))
        with patch("solvedsense.services.explainer.get_async_openai_client", return_value=client):
            summary = await OpenAIExplainer().weakness_summary([])
        assert summary.startswith("No weak tags found")

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_falls_back_without_api_key(self, monkeypatch):
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        from solvedsense.utils.openai_client import reset_client
        reset_client()
        sentences = await OpenAIExplainer().reasoning(AdaptiveWeights(weakness=0.6), "stable")
        assert sentences == ["Shoring up your weak tags should come first."]


class TestExplainerSelection:
    """Test EXPLAINER_BACKEND selection"""

    @pytest.mark.unit
    @pytest.mark.parametrize("backend,expected", [
        ("template", TemplateExplainer),
        ("openai", OpenAIExplainer),
        ("OpenAI", OpenAIExplainer),
        ("something-else", TemplateExplainer),
    ])
    def test_backend_from_env(self, monkeypatch, backend, expected):
        monkeypatch.setenv("EXPLAINER_BACKEND", backend)
        assert type(get_explainer()) is expected
