# rerun - Go development rebuild/restart supervisor
# Copyright (C) 2026 rerun Authors
# SPDX-License-Identifier: Apache-2.0
"""
Go toolchain gateway: install, test, build and package listing.
"""

from __future__ import annotations

from rerun.toolchain.gateway import BuildOutcome, GoToolchain
from rerun.toolchain.packages import GoPackage, PackageError, ProgramUnit

__all__ = [
    "BuildOutcome",
    "GoPackage",
    "GoToolchain",
    "PackageError",
    "ProgramUnit",
]
