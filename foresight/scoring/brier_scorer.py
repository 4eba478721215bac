"""Brier scoring and Murphy decomposition for forecast histories."""

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Iterable

import numpy as np

from foresight.infrastructure.logging import get_logger

logger = get_logger(__name__)


BASELINE_BRIER = 0.25  # Always forecasting 50%
UNCATEGORIZED = "uncategorized"
DEFAULT_HALF_LIFE_DAYS = 90.0
DEFAULT_NUM_BUCKETS = 10
DEFAULT_PERIOD = timedelta(days=30)

SECONDS_PER_DAY = 86400.0


@dataclass(frozen=True)
class Forecast:
    """A probability estimate and, once resolved, its outcome."""

    probability: float
    outcome: bool | None = None  # None = unresolved
    weight: float | None = None
    timestamp: datetime | None = None
    category: str | None = None
    market_id: str | None = None

    @property
    def is_resolved(self) -> bool:
        return self.outcome is not None

    @property
    def brier_contribution(self) -> float:
        """Contribution to Brier score (resolved forecasts only)."""
        if self.outcome is None:
            raise ValueError("unresolved forecast has no Brier contribution")
        return single_brier(self.probability, self.outcome)


@dataclass
class BrierScoreResult:
    """Brier score calculation result."""

    score: float
    count: int
    skill_score: float  # vs always forecasting 50%, positive = better
    weighted_score: float

    @classmethod
    def empty(cls) -> "BrierScoreResult":
        return cls(score=0.0, count=0, skill_score=0.0, weighted_score=0.0)

    @property
    def relative_skill(self) -> float:
        """Skill as a fraction of the baseline error."""
        return self.skill_score / BASELINE_BRIER

    @property
    def grade(self) -> str:
        """Letter grade for accuracy."""
        if self.count == 0:
            return "N/A"
        if self.score < 0.15:
            return "A"
        elif self.score < 0.20:
            return "B"
        elif self.score < 0.22:
            return "C"
        elif self.score < BASELINE_BRIER:
            return "D"
        else:
            return "F"


@dataclass
class CalibrationBucket:
    """One probability bin of a calibration curve."""

    bin_start: float
    bin_end: float
    bin_center: float
    forecast_count: int
    outcome_rate: float  # Observed frequency of positive outcomes
    avg_forecast: float

    @property
    def calibration_error(self) -> float:
        return abs(self.avg_forecast - self.outcome_rate)


@dataclass
class DecompositionResult:
    """Murphy decomposition of the Brier score."""

    brier_score: float
    calibration: float  # Reliability, lower is better
    resolution: float   # Discrimination, higher is better
    uncertainty: float  # Base rate uncertainty
    ece: float
    count: int = 0
    buckets: list[CalibrationBucket] = field(default_factory=list)

    @classmethod
    def empty(cls) -> "DecompositionResult":
        return cls(
            brier_score=0.0,
            calibration=0.0,
            resolution=0.0,
            uncertainty=0.0,
            ece=0.0,
        )

    @property
    def reconstructed_brier(self) -> float:
        """calibration - resolution + uncertainty (bucketed approximation)."""
        return self.calibration - self.resolution + self.uncertainty


@dataclass
class TimeSeriesScore:
    """Brier score for one time period."""

    period: str  # ISO date of period start
    period_start: datetime
    score: float
    count: int
    cumulative_score: float  # Running mean up to and including this period


def single_brier(probability: float, outcome: bool) -> float:
    """Squared error of a single forecast against a binary outcome."""
    o = 1.0 if outcome else 0.0
    return (probability - o) ** 2


def _as_utc(ts: datetime) -> datetime:
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts


def _resolved(forecasts: Iterable[Forecast]) -> list[Forecast]:
    return [f for f in forecasts if f.outcome is not None]


def _resolved_with_timestamp(forecasts: Iterable[Forecast]) -> list[Forecast]:
    return [f for f in forecasts if f.outcome is not None and f.timestamp is not None]


class BrierScorer:
    """
    Proper-scoring-rule accuracy for forecast histories.

    Brier Score = (1/N) Σ(p_i - o_i)²

    where p_i is the forecast probability and o_i the realized outcome (0 or 1).

    Interpretation:
    - 0.00 = Perfect prediction
    - 0.25 = Always forecasting 50%
    - 1.00 = Always wrong with full confidence

    Unresolved forecasts are ignored by every calculation. Empty or fully
    unresolved inputs produce zeroed results rather than errors.

    Usage:
        scorer = BrierScorer()
        result = scorer.score(forecasts)
        print(f"Brier: {result.score:.4f} skill: {result.skill_score:+.4f}")

        decomposition = scorer.calibration_decomposition(forecasts, num_buckets=10)
    """

    single_brier = staticmethod(single_brier)

    def score(self, forecasts: Iterable[Forecast]) -> BrierScoreResult:
        """
        Calculate mean and weighted Brier score.

        Args:
            forecasts: Forecast history, resolved or not

        Returns:
            BrierScoreResult. weighted_score uses each forecast's weight
            (missing weights count as 1) when any resolved forecast carries
            one, otherwise it equals score.
        """
        resolved = _resolved(forecasts)
        if not resolved:
            return BrierScoreResult.empty()

        contributions = [f.brier_contribution for f in resolved]
        mean_score = sum(contributions) / len(contributions)

        if any(f.weight is not None for f in resolved):
            weights = [1.0 if f.weight is None else f.weight for f in resolved]
            weighted_score = sum(c * w for c, w in zip(contributions, weights)) / sum(weights)
        else:
            weighted_score = mean_score

        logger.debug(
            "Brier score calculated",
            count=len(resolved),
            score=mean_score,
            weighted_score=weighted_score,
        )

        return BrierScoreResult(
            score=mean_score,
            count=len(resolved),
            skill_score=BASELINE_BRIER - mean_score,
            weighted_score=weighted_score,
        )

    def time_weighted(
        self,
        forecasts: Iterable[Forecast],
        half_life_days: float = DEFAULT_HALF_LIFE_DAYS,
        now: datetime | None = None,
    ) -> BrierScoreResult:
        """
        Calculate Brier score with exponential recency weighting.

        A forecast aged d days gets weight 2^(-d / half_life_days). Only
        resolved, timestamped forecasts participate.

        Args:
            forecasts: Forecast history
            half_life_days: Age at which a forecast counts half as much
            now: Reference instant for ageing (defaults to current UTC time)
        """
        eligible = _resolved_with_timestamp(forecasts)
        if not eligible:
            return BrierScoreResult.empty()

        reference = _as_utc(now) if now is not None else datetime.now(timezone.utc)

        total_weighted = 0.0
        total_weight = 0.0
        for forecast in eligible:
            age_days = (reference - _as_utc(forecast.timestamp)).total_seconds() / SECONDS_PER_DAY
            weight = 2.0 ** (-max(0.0, age_days) / half_life_days)
            total_weighted += forecast.brier_contribution * weight
            total_weight += weight

        weighted_score = total_weighted / total_weight

        logger.debug(
            "Time-weighted Brier score calculated",
            count=len(eligible),
            score=weighted_score,
            half_life_days=half_life_days,
        )

        return BrierScoreResult(
            score=weighted_score,
            count=len(eligible),
            skill_score=BASELINE_BRIER - weighted_score,
            weighted_score=weighted_score,
        )

    def calibration_decomposition(
        self,
        forecasts: Iterable[Forecast],
        num_buckets: int = DEFAULT_NUM_BUCKETS,
    ) -> DecompositionResult:
        """
        Decompose the Brier score into calibration, resolution and uncertainty.

        Brier ≈ Calibration - Resolution + Uncertainty

        Forecasts are binned into num_buckets equal-width probability bins;
        p = 1.0 falls into the top bin. The identity is only approximate
        because bins replace individual forecasts with their bin mean.

        Returns:
            DecompositionResult with non-empty buckets in ascending order
        """
        resolved = _resolved(forecasts)
        if not resolved:
            return DecompositionResult.empty()

        probs = np.asarray([f.probability for f in resolved], dtype=np.float64)
        outcomes = np.asarray([1.0 if f.outcome else 0.0 for f in resolved], dtype=np.float64)
        n = len(probs)

        base_rate = float(np.mean(outcomes))
        uncertainty = base_rate * (1 - base_rate)

        bin_indices = np.minimum((probs * num_buckets).astype(np.int64), num_buckets - 1)
        width = 1.0 / num_buckets

        buckets: list[CalibrationBucket] = []
        calibration = 0.0
        resolution = 0.0
        ece = 0.0

        for i in range(num_buckets):
            mask = bin_indices == i
            count = int(np.sum(mask))
            if count == 0:
                continue

            avg_forecast = float(np.mean(probs[mask]))
            outcome_rate = float(np.mean(outcomes[mask]))

            bucket = CalibrationBucket(
                bin_start=i * width,
                bin_end=(i + 1) * width,
                bin_center=(i + 0.5) * width,
                forecast_count=count,
                outcome_rate=outcome_rate,
                avg_forecast=avg_forecast,
            )
            buckets.append(bucket)

            calibration += count * (avg_forecast - outcome_rate) ** 2
            resolution += count * (outcome_rate - base_rate) ** 2
            ece += count * bucket.calibration_error

        brier_score = float(np.mean((probs - outcomes) ** 2))

        logger.debug(
            "Calibration decomposition calculated",
            count=n,
            buckets=len(buckets),
            brier_score=brier_score,
        )

        return DecompositionResult(
            brier_score=brier_score,
            calibration=calibration / n,
            resolution=resolution / n,
            uncertainty=uncertainty,
            ece=ece / n,
            count=n,
            buckets=buckets,
        )

    def by_category(self, forecasts: Iterable[Forecast]) -> dict[str, BrierScoreResult]:
        """
        Score each category separately.

        Forecasts without a category are grouped under "uncategorized".
        """
        groups: defaultdict[str, list[Forecast]] = defaultdict(list)
        for forecast in forecasts:
            groups[forecast.category or UNCATEGORIZED].append(forecast)

        return {category: self.score(group) for category, group in groups.items()}

    def time_series(
        self,
        forecasts: Iterable[Forecast],
        period: timedelta = DEFAULT_PERIOD,
    ) -> list[TimeSeriesScore]:
        """
        Score consecutive fixed-width time periods.

        Periods start at the earliest timestamp; only periods containing
        forecasts are reported. period must be positive.
        """
        eligible = sorted(
            _resolved_with_timestamp(forecasts),
            key=lambda f: _as_utc(f.timestamp),
        )
        if not eligible:
            return []

        origin = _as_utc(eligible[0].timestamp)
        periods: defaultdict[int, list[Forecast]] = defaultdict(list)
        for forecast in eligible:
            periods[(_as_utc(forecast.timestamp) - origin) // period].append(forecast)

        results: list[TimeSeriesScore] = []
        cumulative_sum = 0.0
        cumulative_count = 0

        for index in sorted(periods):
            period_result = self.score(periods[index])
            cumulative_sum += period_result.score * period_result.count
            cumulative_count += period_result.count
            period_start = origin + index * period

            results.append(
                TimeSeriesScore(
                    period=period_start.date().isoformat(),
                    period_start=period_start,
                    score=period_result.score,
                    count=period_result.count,
                    cumulative_score=cumulative_sum / cumulative_count,
                )
            )

        return results
