"""Config file parser.

Parses YAML or JSON runner config files into RunnerConfig objects.
"""

import re
from pathlib import Path
from typing import Any, Union

import yaml

from .schema import RunnerConfig
from .validator import validate_config

CONFIG_SUFFIXES = (".yaml", ".yml", ".json")

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


def parse_config(file_path: Union[str, Path]) -> RunnerConfig:
    """Parse a config file into a RunnerConfig.

    JSON files go through the YAML loader too, since YAML is a
    superset of JSON.

    Args:
        file_path: Path to a .yaml, .yml or .json file.

    Returns:
        Parsed RunnerConfig. An empty file yields the defaults.

    Raises:
        FileNotFoundError: If the config file doesn't exist.
        ValueError: If the file is malformed or has unknown fields.
    """
    file_path = Path(file_path)

    if not file_path.exists():
        raise FileNotFoundError(f"Config file not found: {file_path}")

    if file_path.suffix not in CONFIG_SUFFIXES:
        raise ValueError(
            f"Expected one of {', '.join(CONFIG_SUFFIXES)}, got: {file_path.suffix or '<none>'}"
        )

    with open(file_path, "r", encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Malformed config file {file_path}: {e}") from e

    if data is None:
        return RunnerConfig()

    return parse_config_data(data, source=str(file_path))


def parse_config_data(data: dict, source: str = "<inline>") -> RunnerConfig:
    """Parse a config from an already loaded mapping.

    Keys may be snake_case or camelCase (``taskTimeout``).

    Raises:
        ValueError: If the data is not a mapping or has unknown fields.
    """
    if not isinstance(data, dict):
        raise ValueError(f"Config must be a mapping, got {type(data).__name__} in {source}")

    known = RunnerConfig.field_names()
    values: dict[str, Any] = {}
    unknown: list[str] = []

    for key, value in data.items():
        name = _to_snake_case(str(key))
        if name not in known:
            unknown.append(str(key))
            continue
        values[name] = value

    if unknown:
        raise ValueError(
            f"Unknown config field(s) {', '.join(sorted(unknown))} in {source}"
        )

    return RunnerConfig(**values)


def load_config(file_path: Union[str, Path]) -> RunnerConfig:
    """Parse and validate a config file.

    Raises:
        ValueError: If parsing fails or validation reports errors.
    """
    config = parse_config(file_path)
    validation = validate_config(config)

    if not validation.valid:
        errors_str = "; ".join(f"{e.path}: {e.message}" for e in validation.errors)
        raise ValueError(f"Invalid config {file_path}: {errors_str}")

    return config


def _to_snake_case(key: str) -> str:
    return _CAMEL_BOUNDARY.sub("_", key).lower()
