# rerun - Go development rebuild/restart supervisor
# Copyright (C) 2026 rerun Authors
# SPDX-License-Identifier: Apache-2.0

"""Configuration model for a rerun session.

Defaults come from the model, then from an optional JSON file
(``.rerun.json`` or ``$RERUN_CONFIG``), then from command-line flags.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ValidationError, field_validator

from rerun.exceptions import ConfigError

logger = logging.getLogger(__name__)


class RerunConfig(BaseModel):
    """Flags driving the rebuild/test/restart cycle."""

    run_tests: bool = False
    verify_build: bool = False
    never_run: bool = False
    race: bool = False
    build_tags: str = ""
    source_extension: str = ".go"
    go_command: str = "go"
    stop_timeout: float | None = None  # None = wait for the child indefinitely
    crash_relaunch_delay: float = 1.0
    log_level: str = "INFO"

    @field_validator("source_extension")
    @classmethod
    def _dotted_extension(cls, v: str) -> str:
        if not v:
            raise ValueError("source_extension must not be empty")
        return v if v.startswith(".") else f".{v}"

    @field_validator("stop_timeout")
    @classmethod
    def _positive_timeout(cls, v: float | None) -> float | None:
        if v is not None and v <= 0:
            raise ValueError("stop_timeout must be positive")
        return v

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, v: str) -> str:
        return v.upper()


def load_config(path: Path | None = None) -> RerunConfig:
    """Load configuration from *path*, returning defaults when it is absent.

    Raises:
        ConfigError: The file exists but is not valid JSON or fails validation.
    """
    if path is None:
        from rerun.paths import get_config_path

        path = get_config_path()

    if not path.is_file():
        return RerunConfig()

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
        config = RerunConfig.model_validate(raw)
    except (json.JSONDecodeError, ValidationError) as e:
        raise ConfigError(f"Invalid config file {path}: {e}") from e

    logger.debug("Loaded config from %s", path)
    return config


def merge_cli_overrides(config: RerunConfig, overrides: dict[str, Any]) -> RerunConfig:
    """Return a copy of *config* with every non-None override applied.

    Boolean flags are only applied when True, so a ``--test`` flag that was
    not given does not switch off ``run_tests`` from the config file.
    """
    update: dict[str, Any] = {}
    for key, value in overrides.items():
        if value is None or value is False:
            continue
        update[key] = value
    try:
        return RerunConfig.model_validate({**config.model_dump(), **update})
    except ValidationError as e:
        raise ConfigError(str(e)) from e
