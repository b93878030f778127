"""
Validation scorecard model.

The overall score and verdict are always derived from the four sub-scores;
whatever the model claims for them is ignored.
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from enum import Enum
from typing import List

from pydantic import BaseModel, ConfigDict, Field, computed_field, model_validator

from ideaforge.constants import (
    COMPETITION_WEIGHT,
    FEASIBILITY_WEIGHT,
    GO_THRESHOLD,
    MARKET_NEED_WEIGHT,
    MAYBE_THRESHOLD,
    MONETIZATION_WEIGHT,
    PIVOT_SUGGESTION_THRESHOLD,
)


class Verdict(str, Enum):
    GO = "GO"
    MAYBE = "MAYBE"
    PIVOT = "PIVOT"


def compute_overall(market_need, competition, monetization, feasibility) -> int:
    """round(10 * weighted sum of sub-scores), halves rounded up."""
    weighted = (
        Decimal(str(market_need)) * Decimal(MARKET_NEED_WEIGHT)
        + Decimal(str(competition)) * Decimal(COMPETITION_WEIGHT)
        + Decimal(str(monetization)) * Decimal(MONETIZATION_WEIGHT)
        + Decimal(str(feasibility)) * Decimal(FEASIBILITY_WEIGHT)
    )
    return int((weighted * 10).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def verdict_for(overall: int) -> Verdict:
    if overall >= GO_THRESHOLD:
        return Verdict.GO
    if overall >= MAYBE_THRESHOLD:
        return Verdict.MAYBE
    return Verdict.PIVOT


class ScoreDetail(BaseModel):
    model_config = ConfigDict(frozen=True)

    score: float = Field(..., ge=1, le=10)
    reason: str


class SubScores(BaseModel):
    model_config = ConfigDict(frozen=True)

    marketNeed: ScoreDetail
    competition: ScoreDetail = Field(..., description="Higher is better: 10 means blue ocean")
    monetization: ScoreDetail
    feasibility: ScoreDetail


class Competitor(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    url: str = ""
    pricing: str = ""
    weakness: str = ""
    description: str = ""


class ValidationScorecard(BaseModel):
    """Market viability scorecard produced by a single model call."""

    model_config = ConfigDict(frozen=True)

    scores: SubScores
    competitors: List[Competitor] = Field(default_factory=list)
    redditSignals: List[str] = Field(default_factory=list)
    marketTrends: List[str] = Field(default_factory=list)
    searchInsights: str = ""
    yourEdge: str
    biggestRisk: str
    quickWin: str
    pivotSuggestions: List[str] = Field(default_factory=list)

    @computed_field
    @property
    def overallScore(self) -> int:
        return compute_overall(
            self.scores.marketNeed.score,
            self.scores.competition.score,
            self.scores.monetization.score,
            self.scores.feasibility.score,
        )

    @computed_field
    @property
    def verdict(self) -> Verdict:
        return verdict_for(self.overallScore)

    @model_validator(mode="before")
    @classmethod
    def _drop_pivots_for_viable_ideas(cls, data):
        if not isinstance(data, dict):
            return data
        try:
            scores = data["scores"]
            overall = compute_overall(
                scores["marketNeed"]["score"],
                scores["competition"]["score"],
                scores["monetization"]["score"],
                scores["feasibility"]["score"],
            )
        except (KeyError, TypeError, InvalidOperation):
            # Field validation reports the broken shape
            return data
        if overall >= PIVOT_SUGGESTION_THRESHOLD and data.get("pivotSuggestions"):
            data = {**data, "pivotSuggestions": []}
        return data

    @model_validator(mode="after")
    def _require_pivots_for_weak_ideas(self):
        if self.overallScore < PIVOT_SUGGESTION_THRESHOLD and not self.pivotSuggestions:
            raise ValueError(
                f"pivotSuggestions must be provided when the overall score is below {PIVOT_SUGGESTION_THRESHOLD}"
            )
        return self
