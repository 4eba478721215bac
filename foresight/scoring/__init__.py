"""
Forecast scoring for forecaster histories.

Contains:
- brier_scorer: Brier score, recency weighting, decomposition, grouping
- calibration_analyzer: Calibration curve, ECE and confidence bias
- tier_classifier: Threshold-table tier ladder and progress
"""

from foresight.scoring.brier_scorer import (
    BASELINE_BRIER,
    UNCATEGORIZED,
    BrierScorer,
    BrierScoreResult,
    CalibrationBucket,
    DecompositionResult,
    Forecast,
    TimeSeriesScore,
    single_brier,
)
from foresight.scoring.calibration_analyzer import (
    CalibrationAnalysis,
    CalibrationAnalyzer,
    ConfidenceBias,
)
from foresight.scoring.tier_classifier import (
    TIER_LADDER,
    Tier,
    TierClassifier,
    TierProgress,
    TierRequirement,
)

__all__ = [
    # Brier scoring
    "BASELINE_BRIER",
    "UNCATEGORIZED",
    "BrierScorer",
    "BrierScoreResult",
    "CalibrationBucket",
    "DecompositionResult",
    "Forecast",
    "TimeSeriesScore",
    "single_brier",
    # Calibration
    "CalibrationAnalysis",
    "CalibrationAnalyzer",
    "ConfidenceBias",
    # Tiers
    "TIER_LADDER",
    "Tier",
    "TierClassifier",
    "TierProgress",
    "TierRequirement",
]
