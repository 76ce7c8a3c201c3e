# rerun - Go development rebuild/restart supervisor
# Copyright (C) 2026 rerun Authors
# SPDX-License-Identifier: Apache-2.0
"""Global test fixtures for rerun.

Provides environment isolation and ready-made program units that run a
short Python script in place of a compiled Go binary.
"""

from __future__ import annotations

from pathlib import Path

import pytest
import structlog

from rerun.toolchain.packages import ProgramUnit
from tests.helpers.processes import CRASHER, SLEEPER, STUBBORN, python_unit


# ── Fixtures ──────────────────────────────────────────────


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the developer's Go and rerun settings out of the tests."""
    for name in ("GOBIN", "RERUN_LOG_LEVEL", "RERUN_LOG_DIR", "RERUN_CONFIG"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture(autouse=True)
def _clear_log_context():
    structlog.contextvars.clear_contextvars()
    yield
    structlog.contextvars.clear_contextvars()


@pytest.fixture
def sleeper_unit(tmp_path: Path) -> ProgramUnit:
    return python_unit(SLEEPER, tmp_path)


@pytest.fixture
def crasher_unit(tmp_path: Path) -> ProgramUnit:
    return python_unit(CRASHER, tmp_path)


@pytest.fixture
def stubborn_unit(tmp_path: Path) -> ProgramUnit:
    return python_unit(STUBBORN, tmp_path, str(tmp_path / "armed"))
