"""
Configuration loader with Pydantic validation.

Supports:
- YAML file loading
- Environment variable overrides (FORESIGHT_ prefix, "__" for nesting)

Configuration is never stored globally. Callers load an EngineConfig and
pass its values into the scoring and allocation calls explicitly.
"""

from datetime import timedelta
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _check_unit_interval(name: str, v: float) -> float:
    if not 0 < v <= 1:
        raise ValueError(f"{name} must be in (0, 1], got {v}")
    return v


class ScoringConfig(BaseModel):
    """Forecast scoring parameters."""

    num_buckets: int = Field(default=10, ge=1)
    half_life_days: float = 90.0
    period_days: float = 30.0

    @field_validator("half_life_days", "period_days")
    @classmethod
    def validate_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("must be positive")
        return v

    @property
    def period(self) -> timedelta:
        return timedelta(days=self.period_days)


class KellyConfig(BaseModel):
    """Single-market Kelly sizing parameters."""

    fraction_multiplier: float = 1.0  # Full Kelly
    max_position_size: float = 0.25  # 25% of bankroll

    @field_validator("fraction_multiplier")
    @classmethod
    def validate_multiplier(cls, v: float) -> float:
        return _check_unit_interval("fraction_multiplier", v)

    @field_validator("max_position_size")
    @classmethod
    def validate_max_position(cls, v: float) -> float:
        return _check_unit_interval("max_position_size", v)


class PortfolioConfig(BaseModel):
    """Simultaneous-bet sizing parameters."""

    fraction_multiplier: float = 0.5  # Half Kelly
    max_position_size: float = 0.15  # 15% per market
    max_total_allocation: float = 0.8  # 80% of bankroll

    @field_validator("fraction_multiplier")
    @classmethod
    def validate_multiplier(cls, v: float) -> float:
        return _check_unit_interval("fraction_multiplier", v)

    @field_validator("max_position_size")
    @classmethod
    def validate_max_position(cls, v: float) -> float:
        return _check_unit_interval("max_position_size", v)

    @field_validator("max_total_allocation")
    @classmethod
    def validate_max_total(cls, v: float) -> float:
        return _check_unit_interval("max_total_allocation", v)


class ObservabilityConfig(BaseModel):
    """Logging configuration."""

    log_level: str = "INFO"
    log_format: str = "json"  # json, text or clean

    @field_validator("log_level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"unknown log_level {v!r}")
        return level

    @field_validator("log_format")
    @classmethod
    def validate_format(cls, v: str) -> str:
        if v not in {"json", "text", "clean"}:
            raise ValueError("log_format must be json, text or clean")
        return v


class EngineConfig(BaseSettings):
    """Complete engine configuration."""

    model_config = SettingsConfigDict(
        env_prefix="FORESIGHT_",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    config_version: str = "1.0.0"

    scoring: ScoringConfig = Field(default_factory=ScoringConfig)
    kelly: KellyConfig = Field(default_factory=KellyConfig)
    portfolio: PortfolioConfig = Field(default_factory=PortfolioConfig)
    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        # Environment beats values read from YAML
        return env_settings, init_settings, dotenv_settings, file_secret_settings

    def diff_from_defaults(self) -> dict[str, Any]:
        """
        Get configuration differences from defaults.

        Useful for logging what's been customized.
        """
        defaults = EngineConfig.model_construct(
            scoring=ScoringConfig(),
            kelly=KellyConfig(),
            portfolio=PortfolioConfig(),
            observability=ObservabilityConfig(),
        )
        current = self.model_dump()
        default_dict = defaults.model_dump()

        def diff_dict(d1: dict, d2: dict, path: str = "") -> dict:
            differences = {}
            for key in set(d1.keys()) | set(d2.keys()):
                full_key = f"{path}.{key}" if path else key
                v1 = d1.get(key)
                v2 = d2.get(key)

                if isinstance(v1, dict) and isinstance(v2, dict):
                    nested = diff_dict(v1, v2, full_key)
                    if nested:
                        differences.update(nested)
                elif v1 != v2:
                    differences[full_key] = {"current": v1, "default": v2}

            return differences

        return diff_dict(current, default_dict)


def load_yaml_config(path: Path) -> dict[str, Any]:
    """Load configuration from YAML file."""
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path, "r") as f:
        return yaml.safe_load(f) or {}


def deep_merge(base: dict, override: dict) -> dict:
    """Deep merge two dictionaries."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def load_config(
    config_path: str | Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> EngineConfig:
    """
    Load configuration from YAML file with environment overrides.

    Priority (highest to lowest):
    1. Environment variables (FORESIGHT_PORTFOLIO__MAX_TOTAL_ALLOCATION=...)
    2. Explicit overrides
    3. Specified config file
    4. Defaults
    """
    config_dict: dict[str, Any] = {}

    if config_path:
        config_dict = load_yaml_config(Path(config_path))

    if overrides:
        config_dict = deep_merge(config_dict, overrides)

    return EngineConfig(**config_dict)
