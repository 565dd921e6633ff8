"""Data loading utilities."""

from .loader import DataValidationError, load_seating_data, parse_seating_data
from .generator import (
    GeneratorConfig,
    generate_sample_cohort,
    generate_small_cohort,
    save_generated_cohort,
    get_generation_stats,
)

__all__ = [
    # Loader
    "DataValidationError",
    "load_seating_data",
    "parse_seating_data",
    # Generator
    "GeneratorConfig",
    "generate_sample_cohort",
    "generate_small_cohort",
    "save_generated_cohort",
    "get_generation_stats",
]
