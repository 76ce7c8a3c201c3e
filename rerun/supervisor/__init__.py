# rerun - Go development rebuild/restart supervisor
# Copyright (C) 2026 rerun Authors
# SPDX-License-Identifier: Apache-2.0
"""
Supervision of the program binary: at most one live instance at a time.
"""

from __future__ import annotations

from rerun.supervisor.process_handle import ProcessHandle, ProcessState, ProcessStats
from rerun.supervisor.manager import ProcessExited, ProcessSupervisor, RestartRequest

__all__ = [
    "ProcessExited",
    "ProcessHandle",
    "ProcessState",
    "ProcessStats",
    "ProcessSupervisor",
    "RestartRequest",
]
