"""Config validator.

Validates RunnerConfig objects against value rules.
"""

from .schema import RunnerConfig, ValidationError, ValidationResult

TIMEOUT_FIELDS = ("task_timeout", "hook_timeout", "run_timeout")
FLAG_FIELDS = ("hooks_on_empty_nodes", "warn_duplicate_identifiers")


def validate_config(config: RunnerConfig) -> ValidationResult:
    """Validate a RunnerConfig.

    Checks:
    - Timeouts are positive numbers when set
    - Flags are booleans
    - root_identifier is a string
    - task/hook timeouts fit inside the run timeout (warning)

    Args:
        config: Config to validate.

    Returns:
        ValidationResult with errors and warnings.
    """
    errors: list[ValidationError] = []
    warnings: list[ValidationError] = []

    _validate_timeouts(config, errors, warnings)

    for name in FLAG_FIELDS:
        if not isinstance(getattr(config, name), bool):
            errors.append(ValidationError(
                path=name,
                message=f"'{name}' must be a boolean, got {getattr(config, name)!r}.",
            ))

    if not isinstance(config.root_identifier, str):
        errors.append(ValidationError(
            path="root_identifier",
            message="'root_identifier' must be a string.",
        ))

    return ValidationResult(
        valid=len(errors) == 0,
        errors=errors,
        warnings=warnings,
    )


def _validate_timeouts(
    config: RunnerConfig,
    errors: list[ValidationError],
    warnings: list[ValidationError],
) -> None:
    """Validate timeout settings."""
    valid_timeouts = {}

    for name in TIMEOUT_FIELDS:
        value = getattr(config, name)
        if value is None:
            continue

        if isinstance(value, bool) or not isinstance(value, (int, float)):
            errors.append(ValidationError(
                path=name,
                message=f"'{name}' must be a number of seconds, got {value!r}.",
            ))
        elif value <= 0:
            errors.append(ValidationError(
                path=name,
                message=f"'{name}' must be positive, got {value}.",
            ))
        else:
            valid_timeouts[name] = value

    run_timeout = valid_timeouts.get("run_timeout")
    if run_timeout is None:
        return

    for name in ("task_timeout", "hook_timeout"):
        value = valid_timeouts.get(name)
        if value is not None and value > run_timeout:
            warnings.append(ValidationError(
                path=name,
                message=f"'{name}' ({value}s) exceeds 'run_timeout' ({run_timeout}s) and will be cut short.",
                severity="warning",
            ))
