# rerun - Go development rebuild/restart supervisor
# Copyright (C) 2026 rerun Authors
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

from rerun.config.models import (
    RerunConfig,
    load_config,
    merge_cli_overrides,
)

__all__ = [
    "RerunConfig",
    "load_config",
    "merge_cli_overrides",
]
