# rerun - Go development rebuild/restart supervisor
# Copyright (C) 2026 rerun Authors
# SPDX-License-Identifier: Apache-2.0
"""Tests for RerunConfig loading and command-line overrides."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from rerun.config import RerunConfig, load_config, merge_cli_overrides
from rerun.exceptions import ConfigError


class TestRerunConfig:
    def test_defaults(self):
        config = RerunConfig()
        assert config.run_tests is False
        assert config.verify_build is False
        assert config.never_run is False
        assert config.race is False
        assert config.build_tags == ""
        assert config.source_extension == ".go"
        assert config.stop_timeout is None
        assert config.crash_relaunch_delay == 1.0
        assert config.log_level == "INFO"

    def test_extension_gets_leading_dot(self):
        assert RerunConfig(source_extension="templ").source_extension == ".templ"

    def test_empty_extension_rejected(self):
        with pytest.raises(ValidationError):
            RerunConfig(source_extension="")

    @pytest.mark.parametrize("timeout", [0, -1.5])
    def test_non_positive_stop_timeout_rejected(self, timeout):
        with pytest.raises(ValidationError):
            RerunConfig(stop_timeout=timeout)

    def test_log_level_uppercased(self):
        assert RerunConfig(log_level="debug").log_level == "DEBUG"


class TestLoadConfig:
    def test_missing_file_gives_defaults(self, tmp_path: Path):
        assert load_config(tmp_path / ".rerun.json") == RerunConfig()

    def test_reads_file(self, tmp_path: Path):
        path = tmp_path / ".rerun.json"
        path.write_text(json.dumps({"run_tests": True, "stop_timeout": 5}), encoding="utf-8")

        config = load_config(path)

        assert config.run_tests is True
        assert config.stop_timeout == 5.0

    def test_env_var_selects_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
        path = tmp_path / "custom.json"
        path.write_text(json.dumps({"race": True}), encoding="utf-8")
        monkeypatch.setenv("RERUN_CONFIG", str(path))

        assert load_config().race is True

    def test_default_file_in_cwd(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
        (tmp_path / ".rerun.json").write_text('{"build_tags": "integration"}', encoding="utf-8")
        monkeypatch.chdir(tmp_path)

        assert load_config().build_tags == "integration"

    def test_invalid_json(self, tmp_path: Path):
        path = tmp_path / ".rerun.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(ConfigError, match="Invalid config file"):
            load_config(path)

    def test_invalid_value(self, tmp_path: Path):
        path = tmp_path / ".rerun.json"
        path.write_text(json.dumps({"stop_timeout": -1}), encoding="utf-8")

        with pytest.raises(ConfigError):
            load_config(path)


class TestMergeCliOverrides:
    def test_unset_flags_keep_file_values(self):
        base = RerunConfig(run_tests=True, build_tags="e2e")

        merged = merge_cli_overrides(base, {"run_tests": False, "build_tags": None, "race": True})

        assert merged.run_tests is True
        assert merged.build_tags == "e2e"
        assert merged.race is True

    def test_values_are_validated(self):
        with pytest.raises(ConfigError):
            merge_cli_overrides(RerunConfig(), {"stop_timeout": -2.0})

    def test_returns_new_instance(self):
        base = RerunConfig()
        merged = merge_cli_overrides(base, {"never_run": True})

        assert merged is not base
        assert base.never_run is False
