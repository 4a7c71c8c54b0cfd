"""Tests for config file parsing."""

import json

import pytest

from treerunner.config import RunnerConfig, load_config, parse_config, parse_config_data


class TestParseConfig:
    def test_yaml_file(self, tmp_path):
        path = tmp_path / "runner.yaml"
        path.write_text(
            "task_timeout: 2.5\n"
            "hooks_on_empty_nodes: false\n"
            "root_identifier: math.test\n",
            encoding="utf-8",
        )

        config = parse_config(path)

        assert config.task_timeout == 2.5
        assert config.hooks_on_empty_nodes is False
        assert config.root_identifier == "math.test"
        assert config.run_timeout is None

    def test_json_file_with_camel_case_keys(self, tmp_path):
        path = tmp_path / "runner.json"
        path.write_text(
            json.dumps({"taskTimeout": 1, "warnDuplicateIdentifiers": False}),
            encoding="utf-8",
        )

        config = parse_config(path)

        assert config.task_timeout == 1
        assert config.warn_duplicate_identifiers is False

    def test_empty_file_gives_defaults(self, tmp_path):
        path = tmp_path / "runner.yml"
        path.write_text("", encoding="utf-8")

        assert parse_config(path) == RunnerConfig()

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            parse_config(tmp_path / "absent.yaml")

    def test_unsupported_extension(self, tmp_path):
        path = tmp_path / "runner.toml"
        path.write_text("task_timeout = 1", encoding="utf-8")

        with pytest.raises(ValueError, match="Expected one of"):
            parse_config(path)

    def test_malformed_yaml(self, tmp_path):
        path = tmp_path / "runner.yaml"
        path.write_text("task_timeout: [1, 2\n", encoding="utf-8")

        with pytest.raises(ValueError, match="Malformed config"):
            parse_config(path)


class TestParseConfigData:
    def test_unknown_fields_rejected(self):
        with pytest.raises(ValueError, match="parallel"):
            parse_config_data({"parallel": True, "task_timeout": 1})

    def test_non_mapping_rejected(self):
        with pytest.raises(ValueError, match="must be a mapping"):
            parse_config_data(["task_timeout"])


class TestLoadConfig:
    def test_invalid_values_raise(self, tmp_path):
        path = tmp_path / "runner.yaml"
        path.write_text("run_timeout: -1\n", encoding="utf-8")

        with pytest.raises(ValueError, match="run_timeout"):
            load_config(path)

    def test_valid_config_loads(self, tmp_path):
        path = tmp_path / "runner.yaml"
        path.write_text("hookTimeout: 0.5\n", encoding="utf-8")

        assert load_config(path).hook_timeout == 0.5
