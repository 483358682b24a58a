"""
Explainers

Natural-language text for recommendation reasoning and weakness summaries.

- TemplateExplainer: fixed sentences keyed off the same thresholds the
  recommendation generator uses. Always available.
- OpenAIExplainer: asks an OpenAI chat model to phrase the same facts and
  falls back to the template explainer whenever the call fails.

Usage:
    explainer = get_explainer()  # honours EXPLAINER_BACKEND=template|openai
    sentences = await explainer.reasoning(weights, "improving")
"""

import json
import logging
import os
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

from openai import OpenAIError

from solvedsense.schemas.analytics import AdaptiveWeights, WeakTag
from solvedsense.utils.openai_client import get_async_openai_client, get_explainer_model

logger = logging.getLogger(__name__)

EMPHASIS_THRESHOLD = 0.4


class Explainer(ABC):
    """Produces presentation text; never drives a recommendation decision."""

    @abstractmethod
    async def reasoning(self, weights: AdaptiveWeights, trend: str) -> List[str]:
        ...

    @abstractmethod
    async def weakness_summary(self, weak_tags: Sequence[WeakTag]) -> str:
        ...


class TemplateExplainer(Explainer):

    async def reasoning(self, weights: AdaptiveWeights, trend: str) -> List[str]:
        return self.reasoning_sentences(weights, trend)

    async def weakness_summary(self, weak_tags: Sequence[WeakTag]) -> str:
        return self.summary_sentence(weak_tags)

    @staticmethod
    def reasoning_sentences(weights: AdaptiveWeights, trend: str) -> List[str]:
        sentences = []

        if weights.weakness > EMPHASIS_THRESHOLD:
            sentences.append("Shoring up your weak tags should come first.")

        if weights.progress > EMPHASIS_THRESHOLD:
            sentences.append("You are close to the next tier, so more challenging problems are included.")

        if trend == "improving":
            sentences.append("Your recent results are improving, so the goals are more ambitious.")
        elif trend == "declining":
            sentences.append("Your recent results have dipped, so the plan starts from fundamentals.")

        return sentences

    @staticmethod
    def summary_sentence(weak_tags: Sequence[WeakTag]) -> str:
        if not weak_tags:
            return "No weak tags found. Keep practicing across a variety of tags."

        worst = weak_tags[0]
        others = ", ".join(t.tag for t in weak_tags[1:3])
        sentence = (
            f"Your weakest tag is {worst.tag} at {worst.success_rate}% accuracy "
            f"({worst.severity.lower()} severity)."
        )
        if others:
            sentence += f" Also work on {others}."
        return sentence


SYSTEM_PROMPT = (
    "You are a concise competitive-programming coach. Rephrase the facts you "
    "are given for the learner. Do not add new advice or numbers. "
    'Reply with JSON: {"sentences": ["..."]}.'
)


class OpenAIExplainer(Explainer):
    """Generative phrasing with a guaranteed template fallback."""

    def __init__(self, model: Optional[str] = None, fallback: Optional[TemplateExplainer] = None):
        self.model = model or get_explainer_model()
        self.fallback = fallback or TemplateExplainer()

    async def _rephrase(self, facts: List[str]) -> List[str]:
        client = get_async_openai_client()
        response = await client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": json.dumps({"facts": facts})},
            ],
            temperature=0.3,
            response_format={"type": "json_object"},
        )
        payload = json.loads(response.choices[0].message.content)
        sentences = payload["sentences"]
        if not isinstance(sentences, list) or not all(isinstance(s, str) for s in sentences):
            raise ValueError("Explainer response did not contain a list of sentences")
        return sentences

    async def reasoning(self, weights: AdaptiveWeights, trend: str) -> List[str]:
        facts = self.fallback.reasoning_sentences(weights, trend)
        if not facts:
            return facts
        try:
            return await self._rephrase(facts)
        except (OpenAIError, ValueError, KeyError, TypeError) as e:
            logger.warning("Generative reasoning failed, using templates: %s", e)
            return facts

    async def weakness_summary(self, weak_tags: Sequence[WeakTag]) -> str:
        fact = self.fallback.summary_sentence(weak_tags)
        try:
            return " ".join(await self._rephrase([fact]))
        except (OpenAIError, ValueError, KeyError, TypeError) as e:
            logger.warning("Generative summary failed, using template: %s", e)
            return fact


def get_explainer() -> Explainer:
    backend = os.getenv("EXPLAINER_BACKEND", "template").lower()
    if backend == "openai":
        return OpenAIExplainer()
    if backend != "template":
        logger.warning("Unknown EXPLAINER_BACKEND %r, using templates", backend)
    return TemplateExplainer()
