"""
Calibration analysis for forecasters.

Wraps the bucketed Murphy decomposition from BrierScorer and adds
confidence diagnostics:
- Maximum calibration error (worst bucket)
- Over/under-confidence signals
- Discretization gap between the exact and reconstructed Brier score
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable

from foresight.infrastructure.logging import get_logger
from foresight.scoring.brier_scorer import (
    DEFAULT_NUM_BUCKETS,
    BrierScorer,
    CalibrationBucket,
    Forecast,
)

logger = get_logger(__name__)


class ConfidenceBias(Enum):
    """Direction of systematic miscalibration."""
    WELL_CALIBRATED = "well_calibrated"
    OVERCONFIDENT = "overconfident"    # Forecasts too extreme
    UNDERCONFIDENT = "underconfident"  # Forecasts too timid


@dataclass
class CalibrationAnalysis:
    """Calibration curve and summary statistics."""

    brier_score: float
    calibration: float
    resolution: float
    uncertainty: float
    ece: float
    buckets: list[CalibrationBucket] = field(default_factory=list)

    # Diagnostics
    count: int = 0
    max_calibration_error: float = 0.0
    overconfidence: float = 0.0
    underconfidence: float = 0.0
    bias: ConfidenceBias = ConfidenceBias.WELL_CALIBRATED

    WELL_CALIBRATED_ECE = 0.05

    @property
    def decomposition_error(self) -> float:
        """Gap between exact Brier and the bucketed reconstruction."""
        return abs(self.brier_score - (self.calibration - self.resolution + self.uncertainty))

    @property
    def is_well_calibrated(self) -> bool:
        return self.ece < self.WELL_CALIBRATED_ECE


class CalibrationAnalyzer:
    """
    Calibration curve, ECE and confidence signals for a forecast history.

    A bucket is overconfident when its average forecast sits further from
    50% than the observed outcome rate (e.g. forecasting 90% for events
    that happen 70% of the time), and underconfident when it sits closer.
    Signals are count-weighted means of that distance over buckets.

    Usage:
        analyzer = CalibrationAnalyzer()
        analysis = analyzer.analyze(forecasts, num_buckets=10)
        if analysis.bias is ConfidenceBias.OVERCONFIDENT:
            ...
    """

    DEFAULT_BIAS_TOLERANCE = 0.02

    def __init__(
        self,
        scorer: BrierScorer | None = None,
        bias_tolerance: float = DEFAULT_BIAS_TOLERANCE,
    ):
        self.scorer = scorer or BrierScorer()
        self.bias_tolerance = bias_tolerance

    def analyze(
        self,
        forecasts: Iterable[Forecast],
        num_buckets: int = DEFAULT_NUM_BUCKETS,
    ) -> CalibrationAnalysis:
        """Build the calibration analysis for resolved forecasts."""
        decomposition = self.scorer.calibration_decomposition(forecasts, num_buckets)
        buckets = decomposition.buckets
        n = decomposition.count

        if n == 0:
            return CalibrationAnalysis(
                brier_score=0.0,
                calibration=0.0,
                resolution=0.0,
                uncertainty=0.0,
                ece=0.0,
            )

        overconfidence, underconfidence = self._confidence_signals(buckets, n)
        bias = self._classify_bias(overconfidence, underconfidence)

        analysis = CalibrationAnalysis(
            brier_score=decomposition.brier_score,
            calibration=decomposition.calibration,
            resolution=decomposition.resolution,
            uncertainty=decomposition.uncertainty,
            ece=decomposition.ece,
            buckets=buckets,
            count=n,
            max_calibration_error=max(b.calibration_error for b in buckets),
            overconfidence=overconfidence,
            underconfidence=underconfidence,
            bias=bias,
        )

        if bias is not ConfidenceBias.WELL_CALIBRATED:
            logger.info(
                "Calibration bias detected",
                bias=bias.value,
                overconfidence=f"{overconfidence:.4f}",
                underconfidence=f"{underconfidence:.4f}",
                count=n,
            )

        return analysis

    @staticmethod
    def _confidence_signals(
        buckets: list[CalibrationBucket],
        total: int,
    ) -> tuple[float, float]:
        over = 0.0
        under = 0.0
        for bucket in buckets:
            # Positive when forecasts are more extreme than outcomes
            gap = abs(bucket.avg_forecast - 0.5) - abs(bucket.outcome_rate - 0.5)
            if gap > 0:
                over += bucket.forecast_count * gap
            elif gap < 0:
                under += bucket.forecast_count * -gap
        return over / total, under / total

    def _classify_bias(self, overconfidence: float, underconfidence: float) -> ConfidenceBias:
        if max(overconfidence, underconfidence) <= self.bias_tolerance:
            return ConfidenceBias.WELL_CALIBRATED
        if overconfidence >= underconfidence:
            return ConfidenceBias.OVERCONFIDENT
        return ConfidenceBias.UNDERCONFIDENT
