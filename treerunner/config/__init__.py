"""Config module - runner settings parsing and validation."""

from .schema import RunnerConfig, ValidationError, ValidationResult
from .parser import load_config, parse_config, parse_config_data
from .validator import validate_config

__all__ = [
    "RunnerConfig",
    "ValidationError",
    "ValidationResult",
    "load_config",
    "parse_config",
    "parse_config_data",
    "validate_config",
]
