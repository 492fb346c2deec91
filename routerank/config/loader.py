"""
Ranking Configuration Loader

Tuning values for a ranking run (segmentation limits, grid and route
divisions, result paging) travel on an explicit RankingConfig rather than
process-wide state, so concurrent runs with different tunings cannot
interfere.

Values can be loaded from config/ranking.yml:

    ranking:
      max_time_between_pings: 3600
      max_speed: 1000.0
      grid_divisions: 100
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from routerank.utils.constants import (
    DEFAULT_GRID_DIVISIONS,
    DEFAULT_MAX_RESULTS,
    DEFAULT_MAX_SPEED_MPS,
    DEFAULT_MAX_TURN_RATE_DEG_PER_S,
    DEFAULT_RANKING_CONFIG,
    DEFAULT_ROUTE_DIVISIONS,
    DEFAULT_SKIP_RESULTS,
    DEFAULT_SORT_FIELD,
    MAX_TIME_BETWEEN_PINGS_SECONDS,
    SORT_FIELDS,
)

logger = logging.getLogger(__name__)

CONFIG_DIR = Path("config")

_POSITIVE_FIELDS = ("max_time_between_pings", "max_speed", "max_turn_rate", "grid_divisions", "route_divisions")
_NON_NEGATIVE_FIELDS = ("skip_results", "max_results")
_INT_FIELDS = ("grid_divisions", "route_divisions", "skip_results", "max_results")


class RankingConfigError(ValueError):
    """Raised when a ranking configuration is missing fields or invalid."""


@dataclass(frozen=True)
class RankingConfig:
    """Configuration for one ranking run."""
    max_time_between_pings: float = MAX_TIME_BETWEEN_PINGS_SECONDS  # seconds
    max_speed: float = DEFAULT_MAX_SPEED_MPS  # m/s
    max_turn_rate: float = DEFAULT_MAX_TURN_RATE_DEG_PER_S  # degrees/s
    grid_divisions: int = DEFAULT_GRID_DIVISIONS
    route_divisions: int = DEFAULT_ROUTE_DIVISIONS
    skip_results: int = DEFAULT_SKIP_RESULTS
    max_results: int = DEFAULT_MAX_RESULTS
    sort_field: str = DEFAULT_SORT_FIELD

    def __post_init__(self):
        validate_ranking_config(self)

    def with_overrides(self, **overrides: Any) -> "RankingConfig":
        return replace(self, **overrides)


def validate_ranking_config(config: RankingConfig) -> None:
    """
    Raises:
        RankingConfigError: If a limit is non-positive, a paging value is
            negative, a count is not an integer, or sort_field names no score
    """
    for name in _INT_FIELDS:
        value = getattr(config, name)
        if isinstance(value, bool) or not isinstance(value, int):
            raise RankingConfigError(f"{name} must be an integer (got {value!r})")
    for name in _POSITIVE_FIELDS:
        value = getattr(config, name)
        if not math.isfinite(value) or value <= 0:
            raise RankingConfigError(f"{name} must be positive and finite (got {value!r})")
    for name in _NON_NEGATIVE_FIELDS:
        if getattr(config, name) < 0:
            raise RankingConfigError(f"{name} must not be negative (got {getattr(config, name)!r})")
    if config.sort_field not in SORT_FIELDS:
        raise RankingConfigError(
            f"sort_field must be one of {', '.join(sorted(SORT_FIELDS))} (got {config.sort_field!r})"
        )


def build_ranking_config(values: Optional[Dict[str, Any]]) -> RankingConfig:
    """Build a RankingConfig from a mapping, rejecting unknown keys."""
    if values is None:
        return RankingConfig()
    if not isinstance(values, dict):
        raise RankingConfigError(f"ranking section must be a mapping, got {type(values).__name__}")
    known = {f.name for f in fields(RankingConfig)}
    unknown = sorted(set(values) - known)
    if unknown:
        raise RankingConfigError(f"Unknown ranking config keys: {', '.join(unknown)}")
    return RankingConfig(**values)


def load_ranking_config(path: Optional[Union[str, Path]] = None) -> RankingConfig:
    """
    Load ranking.yml.

    Args:
        path: YAML file; defaults to config/ranking.yml under the working directory

    Returns:
        RankingConfig with file values over the defaults

    Raises:
        FileNotFoundError: If the file does not exist
        RankingConfigError: If the file content is invalid
        yaml.YAMLError: If YAML parsing fails
    """
    config_path = Path(path) if path is not None else CONFIG_DIR / DEFAULT_RANKING_CONFIG
    logger.info(f"Loading ranking config from: {config_path.absolute()}")

    if not config_path.exists():
        logger.error(f"ranking config not found at {config_path.absolute()}")
        raise FileNotFoundError(f"ranking config not found at {config_path}")

    with config_path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise RankingConfigError(f"{config_path} must contain a mapping at the top level")
    return build_ranking_config(data.get("ranking"))
