# rerun - Go development rebuild/restart supervisor
# Copyright (C) 2026 rerun Authors
# SPDX-License-Identifier: Apache-2.0

"""Centralized path resolution for rerun.

Binary and log locations can be overridden through environment variables
(``GOBIN``, ``RERUN_LOG_DIR``, ``RERUN_CONFIG``).
"""

from __future__ import annotations

import os
from pathlib import Path

# Default config file looked up in the working directory
DEFAULT_CONFIG_NAME = ".rerun.json"


def get_bin_dir() -> Path | None:
    """Return the GOBIN override, or None when the toolchain default applies."""
    env_val = os.environ.get("GOBIN")
    if env_val:
        return Path(env_val).expanduser()
    return None


def get_log_dir() -> Path | None:
    env_val = os.environ.get("RERUN_LOG_DIR")
    if env_val:
        return Path(env_val).expanduser().resolve()
    return None


def get_config_path() -> Path:
    env_val = os.environ.get("RERUN_CONFIG")
    if env_val:
        return Path(env_val).expanduser()
    return Path.cwd() / DEFAULT_CONFIG_NAME
