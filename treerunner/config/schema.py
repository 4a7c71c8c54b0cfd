"""Runner configuration models.

Defines the dataclasses for runner settings and their validation results.
"""

from dataclasses import dataclass, field, fields
from typing import Any, Optional


@dataclass
class RunnerConfig:
    """Settings that shape collection and execution."""
    task_timeout: Optional[float] = None  # seconds, per task callback
    hook_timeout: Optional[float] = None  # seconds, per hook callback
    run_timeout: Optional[float] = None  # seconds, whole execution
    hooks_on_empty_nodes: bool = True
    warn_duplicate_identifiers: bool = True
    root_identifier: str = ""

    @classmethod
    def field_names(cls) -> set[str]:
        return {f.name for f in fields(cls)}

    def to_dict(self) -> dict[str, Any]:
        """Convert config to dictionary for serialization."""
        return {f.name: getattr(self, f.name) for f in fields(self)}


@dataclass
class ValidationError:
    """A single validation error."""
    path: str
    message: str
    severity: str = "error"  # "error" or "warning"


@dataclass
class ValidationResult:
    """Result of config validation."""
    valid: bool
    errors: list[ValidationError] = field(default_factory=list)
    warnings: list[ValidationError] = field(default_factory=list)

    @property
    def error_count(self) -> int:
        return len(self.errors)

    @property
    def warning_count(self) -> int:
        return len(self.warnings)

    def __str__(self) -> str:
        if self.valid:
            msg = "Valid"
            if self.warnings:
                msg += f" ({self.warning_count} warnings)"
            return msg
        return f"Invalid: {self.error_count} errors, {self.warning_count} warnings"
