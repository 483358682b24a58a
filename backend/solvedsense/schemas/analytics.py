"""
Analytics Schemas for SolvedSense

Pydantic models shared by the analytics services, the HTTP routers and the CLI.

Features:
- Upstream records (TagStat, LevelStat, UserSnapshot) parsed from solved.ac
- Caller-supplied analysis context (urgency, focus, mood, time budget)
- Weak tag diagnostics
- Tiered recommendations as a tagged union on ``horizon``
"""

from typing import Optional, List, Dict, Literal, Any
from pydantic import BaseModel, Field, ConfigDict, model_validator


# =============================================================================
# UPSTREAM RECORDS
# =============================================================================

def _raise_tried_to_solved(data: Any) -> Any:
    """solved.ac occasionally reports tried < solved; tried never goes below solved."""
    if isinstance(data, dict):
        solved = data.get("solved") or 0
        tried = data.get("tried") or 0
        if isinstance(solved, int) and isinstance(tried, int) and tried < solved:
            data = {**data, "tried": solved}
    return data


class TagStat(BaseModel):
    """Per-tag solve statistics for one user."""
    model_config = ConfigDict(frozen=True)

    tag: str
    solved: int = Field(0, ge=0)
    tried: int = Field(0, ge=0)

    @model_validator(mode="before")
    @classmethod
    def _solved_within_tried(cls, data: Any) -> Any:
        return _raise_tried_to_solved(data)

    @property
    def accuracy(self) -> float:
        return self.solved / self.tried if self.tried > 0 else 0.0


class LevelStat(BaseModel):
    """Per-difficulty-level solve statistics for one user."""
    model_config = ConfigDict(frozen=True)

    level: int = Field(0, ge=0, le=30)
    solved: int = Field(0, ge=0)
    tried: int = Field(0, ge=0)

    @model_validator(mode="before")
    @classmethod
    def _solved_within_tried(cls, data: Any) -> Any:
        return _raise_tried_to_solved(data)


class UserSnapshot(BaseModel):
    """Point-in-time profile of a solved.ac user."""
    model_config = ConfigDict(frozen=True)

    handle: str
    tier: int = Field(0, ge=0, le=30)
    rating: int = 0
    solved_count: int = Field(0, ge=0)
    max_streak: int = Field(0, ge=0)


# =============================================================================
# REQUEST CONTEXT
# =============================================================================

class AnalysisContext(BaseModel):
    """Optional hints that tune the adaptive weights and enrichment."""
    model_config = ConfigDict(extra="ignore")

    urgency: Optional[Literal["high", "medium", "low"]] = None
    focus: Optional[Literal["weakness", "tier_up", "general"]] = None
    mood: Optional[Literal["motivated", "frustrated", "neutral"]] = None
    time_available_minutes: Optional[int] = Field(None, ge=0)
    streak: Optional[int] = Field(None, ge=0)


# =============================================================================
# DIAGNOSTICS
# =============================================================================

Severity = Literal["Critical", "High", "Medium", "Low"]
Potential = Literal["High", "Medium", "Low"]


class WeakTag(BaseModel):
    """A tag the user under-performs on, ranked worst-first."""
    model_config = ConfigDict(frozen=True)

    tag: str
    solved: int
    tried: int
    accuracy: float
    success_rate: float
    severity: Severity
    improvement_potential: Potential
    estimated_time: str


class AdaptiveWeights(BaseModel):
    """
    Relative emphasis across recommendation categories.

    The four values are compared against fixed thresholds; they are not a
    probability distribution and are never clamped or renormalized.
    """
    weakness: float = 0.4
    progress: float = 0.3
    preference: float = 0.2
    momentum: float = 0.1


# =============================================================================
# RECOMMENDATIONS
# =============================================================================

class ImmediateRecommendation(BaseModel):
    """Something to do today."""
    horizon: Literal["immediate"] = "immediate"
    type: str
    priority: Literal["high", "medium", "low"]
    action: str
    reason: str
    estimated_time: str
    difficulty: Optional[int] = None


class ShortTermRecommendation(BaseModel):
    """A goal for this week."""
    horizon: Literal["short_term"] = "short_term"
    type: str
    goal: str
    target_problems: Optional[int] = None
    current_accuracy: Optional[float] = None
    target_accuracy: Optional[float] = None
    breakdown: Optional[Dict[str, int]] = None
    timeline: str = "this week"


class LongTermRecommendation(BaseModel):
    """A goal for this month."""
    horizon: Literal["long_term"] = "long_term"
    type: str
    current_tier: Optional[int] = None
    target_tier: Optional[int] = None
    estimated_rating_gain: Optional[float] = None
    required_effort: Optional[int] = None
    area: Optional[str] = None
    current_level: Optional[float] = None
    target_level: Optional[float] = None
    learning_path: Optional[List[str]] = None
    timeline: str = "this month"


class RecommendationSet(BaseModel):
    """Full output of the recommendation generator."""
    immediate: List[ImmediateRecommendation] = Field(default_factory=list)
    short_term: List[ShortTermRecommendation] = Field(default_factory=list)
    long_term: List[LongTermRecommendation] = Field(default_factory=list)
    reasoning: List[str] = Field(default_factory=list)
    weights: AdaptiveWeights = Field(default_factory=AdaptiveWeights)
    trend: str = "insufficient_data"
    adaptive: bool = True
    personalized_message: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")
