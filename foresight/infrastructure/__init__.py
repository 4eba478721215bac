"""Configuration and logging for the engine."""

from foresight.infrastructure.config import (
    EngineConfig,
    KellyConfig,
    ObservabilityConfig,
    PortfolioConfig,
    ScoringConfig,
    load_config,
)
from foresight.infrastructure.logging import (
    LogContext,
    configure_logging,
    get_logger,
)

__all__ = [
    # Config
    "EngineConfig",
    "KellyConfig",
    "ObservabilityConfig",
    "PortfolioConfig",
    "ScoringConfig",
    "load_config",
    # Logging
    "LogContext",
    "configure_logging",
    "get_logger",
]
