# rerun - Go development rebuild/restart supervisor
# Copyright (C) 2026 rerun Authors
# SPDX-License-Identifier: Apache-2.0
"""
Rebuild, optionally test, and restart a Go program whenever its sources change.
"""

from __future__ import annotations

__version__ = "0.1.0"
