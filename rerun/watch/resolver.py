# rerun - Go development rebuild/restart supervisor
# Copyright (C) 2026 rerun Authors
# SPDX-License-Identifier: Apache-2.0

"""Dependency watch-set resolution.

Walks the import graph of the target package breadth-first, one
``go list`` call per frontier, and collects the source directory of every
package that is not part of the Go distribution.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from rerun.exceptions import (
    NotExecutableError,
    PackageNotFoundError,
    RerunError,
    ToolchainError,
)
from rerun.paths import get_bin_dir
from rerun.toolchain.packages import GoPackage, ProgramUnit

logger = logging.getLogger(__name__)

# cgo pseudo-import; there is nothing to list or watch
_PSEUDO_IMPORTS = frozenset({"C"})


class PackageLister(Protocol):
    def list_packages(self, paths: list[str]) -> list[GoPackage]: ...

    def list_package(self, path: str) -> GoPackage: ...

    def env(self, name: str) -> str: ...


@dataclass(frozen=True)
class WatchSet:
    """Directories to watch plus every import path visited to find them."""

    directories: frozenset[Path]
    visited: frozenset[str]

    def __len__(self) -> int:
        return len(self.directories)

    def __contains__(self, directory: object) -> bool:
        return directory in self.directories


class WatchSetResolver:
    """Resolve the target program unit and the directories it depends on."""

    def __init__(self, lister: PackageLister) -> None:
        self._lister = lister

    def resolve_unit(self, import_path: str, args: list[str] | tuple[str, ...] = ()) -> ProgramUnit:
        """Resolve the runnable target.

        Raises:
            PackageNotFoundError: The package cannot be listed, or its binary
                location cannot be determined.
            NotExecutableError: The package is not ``package main``.
        """
        pkg = self._lister.list_package(import_path)
        if not pkg.is_command:
            raise NotExecutableError(import_path, pkg.name)

        if pkg.target:
            bin_name = Path(pkg.target).name
        else:
            bin_name = pkg.import_path.rstrip("/").rsplit("/", 1)[-1]

        bin_dir = get_bin_dir()
        if bin_dir is not None:
            bin_path = bin_dir / bin_name
        elif pkg.target:
            bin_path = Path(pkg.target)
        else:
            try:
                gopath = self._lister.env("GOPATH").split(os.pathsep)[0]
            except ToolchainError as e:
                raise PackageNotFoundError(import_path, f"cannot locate binary: {e}") from e
            bin_path = Path(gopath) / "bin" / bin_name

        return ProgramUnit(
            import_path=import_path,
            bin_name=bin_name,
            bin_path=bin_path,
            args=tuple(args),
            dir=Path(pkg.dir) if pkg.dir else None,
        )

    def resolve(self, import_path: str) -> WatchSet:
        """Compute a fresh WatchSet rooted at *import_path*.

        Unresolvable imports are skipped; only the root is required.

        Raises:
            PackageNotFoundError: The root package cannot be listed.
        """
        root = self._lister.list_package(import_path)

        directories: set[Path] = set()
        visited: set[str] = {import_path, root.import_path}
        frontier = [root]

        while frontier:
            next_paths: list[str] = []
            for pkg in frontier:
                if pkg.is_platform:
                    continue
                if pkg.dir:
                    directories.add(Path(pkg.dir))
                for imp in pkg.imports:
                    if imp in visited or imp in _PSEUDO_IMPORTS:
                        continue
                    visited.add(imp)
                    next_paths.append(imp)
            frontier = self._load(next_paths) if next_paths else []
            for pkg in frontier:
                visited.add(pkg.import_path)

        logger.debug(
            "Watch set for %s: %d dirs, %d packages visited",
            import_path, len(directories), len(visited),
        )
        return WatchSet(directories=frozenset(directories), visited=frozenset(visited))

    def _load(self, paths: list[str]) -> list[GoPackage]:
        """List *paths*, dropping the ones that cannot be resolved."""
        try:
            listed = self._lister.list_packages(paths)
        except RerunError as e:
            if len(paths) == 1:
                logger.debug("Skipping unresolvable import %s: %s", paths[0], e)
                return []
            # Isolate the failing import(s)
            loaded: list[GoPackage] = []
            for path in paths:
                loaded.extend(self._load([path]))
            return loaded

        result: list[GoPackage] = []
        for pkg in listed:
            if not pkg.is_resolvable:
                logger.debug(
                    "Skipping unresolvable import %s: %s",
                    pkg.import_path, pkg.error.err if pkg.error else "",
                )
                continue
            result.append(pkg)
        return result
