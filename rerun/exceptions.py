from __future__ import annotations
# rerun - Go development rebuild/restart supervisor
# Copyright (C) 2026 rerun Authors
# SPDX-License-Identifier: Apache-2.0

"""Unified exception hierarchy for rerun.

All domain-specific exceptions derive from :class:`RerunError`.  Only
:class:`ResolutionError` (and a :class:`WatcherError` while opening the
very first session) ends a run; everything else is logged and the watch
loop keeps going::

    try:
        ...
    except ResolutionError as e:
        logger.error("fatal: %s", e)
"""


class RerunError(Exception):
    """Base exception for all rerun errors."""


# ── Resolution ───────────────────────────────────────────────


class ResolutionError(RerunError):
    """The target program unit cannot be used (fatal)."""


class PackageNotFoundError(ResolutionError):
    """A package could not be listed by the toolchain."""

    def __init__(self, import_path: str, detail: str = "") -> None:
        message = f"cannot resolve package {import_path!r}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
        self.import_path = import_path
        self.detail = detail


class NotExecutableError(ResolutionError):
    """The target package is a library, not a command."""

    def __init__(self, import_path: str, name: str) -> None:
        super().__init__(
            f"expected package {'main'!r}, got {name!r} ({import_path})"
        )
        self.import_path = import_path
        self.name = name


# ── Toolchain ────────────────────────────────────────────────


class ToolchainError(RerunError):
    """The go command produced output that could not be understood."""


# ── Process control ──────────────────────────────────────────


class ProcessControlError(RerunError):
    """Signal, kill or start failure for the supervised program."""


# ── Watching ─────────────────────────────────────────────────


class WatcherError(RerunError):
    """Filesystem watcher session could not be opened or was misused."""


# ── Configuration ────────────────────────────────────────────


class ConfigError(RerunError):
    """Configuration errors."""
