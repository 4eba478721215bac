"""
Forecaster tier classification.

Tiers are defined by an ordered threshold table, lowest to highest. Each
step tightens all three requirements: a lower maximum Brier score, more
resolved forecasts and a higher skill score.
"""

from dataclasses import dataclass
from enum import Enum

from foresight.infrastructure.logging import get_logger

logger = get_logger(__name__)


class Tier(Enum):
    """Forecaster qualification tier."""
    APPRENTICE = "APPRENTICE"
    JOURNEYMAN = "JOURNEYMAN"
    ADEPT = "ADEPT"
    EXPERT = "EXPERT"
    GRANDMASTER = "GRANDMASTER"


@dataclass(frozen=True)
class TierRequirement:
    """Thresholds to qualify for a tier (all bounds inclusive)."""
    tier: Tier
    max_brier_score: float
    min_forecast_count: int
    min_skill_score: float

    def is_met(self, brier_score: float, forecast_count: int, skill_score: float) -> bool:
        return (
            brier_score <= self.max_brier_score
            and forecast_count >= self.min_forecast_count
            and skill_score >= self.min_skill_score
        )


# Skill is additive (0.25 - brier), so skill thresholds stay within [-0.75, 0.25]
TIER_LADDER: tuple[TierRequirement, ...] = (
    TierRequirement(Tier.APPRENTICE, max_brier_score=0.35, min_forecast_count=10, min_skill_score=-0.10),
    TierRequirement(Tier.JOURNEYMAN, max_brier_score=0.25, min_forecast_count=50, min_skill_score=0.00),
    TierRequirement(Tier.ADEPT, max_brier_score=0.20, min_forecast_count=100, min_skill_score=0.05),
    TierRequirement(Tier.EXPERT, max_brier_score=0.15, min_forecast_count=250, min_skill_score=0.10),
    TierRequirement(Tier.GRANDMASTER, max_brier_score=0.10, min_forecast_count=500, min_skill_score=0.15),
)


@dataclass
class TierProgress:
    """Progress toward the next tier, each axis in [0, 1]."""
    next_tier: Tier | None
    forecast_progress: float
    score_progress: float
    skill_progress: float

    @property
    def overall(self) -> float:
        """Progress on the furthest-behind axis."""
        return min(self.forecast_progress, self.score_progress, self.skill_progress)


def _clamp01(value: float) -> float:
    return max(0.0, min(1.0, value))


class TierClassifier:
    """
    Maps (brier score, forecast count, skill score) to a tier.

    The ladder is scanned from the top; the first tier whose thresholds are
    all met wins. Anything that meets none is the base tier, so
    classification never fails.

    Usage:
        classifier = TierClassifier()
        tier = classifier.classify(brier_score=0.14, forecast_count=300, skill_score=0.11)
        progress = classifier.progress(tier, 0.14, 300, 0.11)
    """

    def __init__(self, ladder: tuple[TierRequirement, ...] = TIER_LADDER):
        if not ladder:
            raise ValueError("tier ladder must not be empty")
        self.ladder = ladder
        self._index = {req.tier: i for i, req in enumerate(ladder)}

    @property
    def base_tier(self) -> Tier:
        return self.ladder[0].tier

    @property
    def top_tier(self) -> Tier:
        return self.ladder[-1].tier

    def requirement(self, tier: Tier) -> TierRequirement:
        """Thresholds for a tier."""
        return self.ladder[self._index[tier]]

    def next_tier(self, tier: Tier) -> Tier | None:
        """Tier immediately above, or None at the top."""
        i = self._index[tier]
        if i >= len(self.ladder) - 1:
            return None
        return self.ladder[i + 1].tier

    def classify(self, brier_score: float, forecast_count: int, skill_score: float) -> Tier:
        """Highest tier whose three thresholds are all satisfied."""
        for req in reversed(self.ladder):
            if req.is_met(brier_score, forecast_count, skill_score):
                logger.debug(
                    "Tier classified",
                    tier=req.tier.value,
                    brier_score=brier_score,
                    forecast_count=forecast_count,
                )
                return req.tier
        return self.base_tier

    def progress(
        self,
        current_tier: Tier,
        brier_score: float,
        forecast_count: int,
        skill_score: float,
    ) -> TierProgress:
        """
        Progress from current_tier toward the tier above it.

        Score and skill progress interpolate between the two tiers'
        thresholds; forecast progress is the fraction of the next tier's
        minimum count. All values are clamped to [0, 1].
        """
        next_tier = self.next_tier(current_tier)
        if next_tier is None:
            return TierProgress(
                next_tier=None,
                forecast_progress=1.0,
                score_progress=1.0,
                skill_progress=1.0,
            )

        current = self.requirement(current_tier)
        nxt = self.requirement(next_tier)

        return TierProgress(
            next_tier=next_tier,
            forecast_progress=min(1.0, forecast_count / nxt.min_forecast_count),
            score_progress=_clamp01(
                (current.max_brier_score - brier_score)
                / (current.max_brier_score - nxt.max_brier_score)
            ),
            skill_progress=_clamp01(
                (skill_score - current.min_skill_score)
                / (nxt.min_skill_score - current.min_skill_score)
            ),
        )
