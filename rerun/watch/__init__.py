# rerun - Go development rebuild/restart supervisor
# Copyright (C) 2026 rerun Authors
# SPDX-License-Identifier: Apache-2.0
"""
Watch-set resolution and filesystem watcher sessions.
"""

from __future__ import annotations

from rerun.watch.resolver import WatchSet, WatchSetResolver
from rerun.watch.session import WatcherSession

__all__ = [
    "WatchSet",
    "WatchSetResolver",
    "WatcherSession",
]
