"""
Forecaster scoring and allocation engine.

Contains:
- scoring: Brier scoring, calibration analysis and tier classification
- risk: Kelly sizing for single markets and simultaneous portfolios
- infrastructure: configuration and structured logging
"""

__version__ = "0.1.0"
