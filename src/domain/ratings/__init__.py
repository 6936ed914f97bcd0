"""Rating engine, its configuration and pre-rating validation."""

from domain.ratings.calculator import RatingEngine, calculate_expected_score
from domain.ratings.config import (
    RatingSystemConfig,
    load_rating_system_config,
    load_rating_system_configs,
)
from domain.ratings.validation import MatchValidator, ValidationResult

__all__ = [
    "MatchValidator",
    "RatingEngine",
    "RatingSystemConfig",
    "ValidationResult",
    "calculate_expected_score",
    "load_rating_system_config",
    "load_rating_system_configs",
]
