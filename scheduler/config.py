"""
Centralized configuration with environment variable overrides.

Scheduling defaults and the annealing schedule live here so the engine
and optimizer never hardcode them. Values are read when a config object
is built, so tests can patch the environment before calling load_config().
"""

import logging
import os
from dataclasses import dataclass, field

import pytz
from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)


def _safe_int(env_var: str, default: str) -> int:
    """Parse an integer from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return int(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid integer for {env_var}: {raw!r}"
        ) from None


def _safe_float(env_var: str, default: str) -> float:
    """Parse a float from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return float(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid float for {env_var}: {raw!r}"
        ) from None


@dataclass(frozen=True)
class SchedulingConfig:
    """Slot generation settings."""

    business_timezone: str = field(
        default_factory=lambda: os.getenv("BUSINESS_TIMEZONE", "UTC")
    )
    slot_granularity_minutes: int = field(
        default_factory=lambda: _safe_int("SLOT_GRANULARITY_MINUTES", "15")
    )


@dataclass(frozen=True)
class AnnealingConfig:
    """Simulated annealing schedule for the route optimizer."""

    initial_temperature: float = field(
        default_factory=lambda: _safe_float("ANNEALING_INITIAL_TEMPERATURE", "10000")
    )
    cooling_rate: float = field(
        default_factory=lambda: _safe_float("ANNEALING_COOLING_RATE", "0.995")
    )
    min_temperature: float = field(
        default_factory=lambda: _safe_float("ANNEALING_MIN_TEMPERATURE", "0.1")
    )
    iterations_per_temperature: int = field(
        default_factory=lambda: _safe_int("ANNEALING_ITERATIONS_PER_TEMPERATURE", "100")
    )


@dataclass(frozen=True)
class AppConfig:
    """Root configuration aggregating all sub-configs."""

    scheduling: SchedulingConfig = field(default_factory=SchedulingConfig)
    annealing: AnnealingConfig = field(default_factory=AnnealingConfig)
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))


def _validate_config(config: AppConfig) -> None:
    """Validate configuration values are within acceptable ranges."""
    if config.scheduling.business_timezone not in pytz.all_timezones_set:
        raise ValueError(
            f"BUSINESS_TIMEZONE must be an IANA zone name, got {config.scheduling.business_timezone!r}"
        )
    if config.scheduling.slot_granularity_minutes < 1:
        raise ValueError(
            "SLOT_GRANULARITY_MINUTES must be >= 1, "
            f"got {config.scheduling.slot_granularity_minutes}"
        )

    annealing = config.annealing
    if annealing.initial_temperature <= 0:
        raise ValueError(
            f"ANNEALING_INITIAL_TEMPERATURE must be > 0, got {annealing.initial_temperature}"
        )
    if annealing.min_temperature <= 0:
        raise ValueError(
            f"ANNEALING_MIN_TEMPERATURE must be > 0, got {annealing.min_temperature}"
        )
    if not 0.0 < annealing.cooling_rate < 1.0:
        raise ValueError(
            f"ANNEALING_COOLING_RATE must be between 0.0 and 1.0 (exclusive), got {annealing.cooling_rate}"
        )
    if annealing.iterations_per_temperature < 1:
        raise ValueError(
            "ANNEALING_ITERATIONS_PER_TEMPERATURE must be >= 1, "
            f"got {annealing.iterations_per_temperature}"
        )


def load_config() -> AppConfig:
    """Load and validate configuration from the current environment."""
    config = AppConfig()
    _validate_config(config)
    logger.debug(f"Configuration loaded (timezone={config.scheduling.business_timezone})")
    return config
