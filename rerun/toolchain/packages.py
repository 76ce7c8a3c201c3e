# rerun - Go development rebuild/restart supervisor
# Copyright (C) 2026 rerun Authors
# SPDX-License-Identifier: Apache-2.0

"""Package metadata as reported by ``go list -json`` and the resolved target."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field


class PackageError(BaseModel):
    """The ``Error`` object attached to a package by ``go list -e``."""

    model_config = ConfigDict(extra="ignore")

    err: str = Field("", alias="Err")


class GoPackage(BaseModel):
    """Subset of the ``go list -json`` package record used by rerun."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    import_path: str = Field(alias="ImportPath")
    name: str = Field("", alias="Name")
    dir: str = Field("", alias="Dir")
    goroot: bool = Field(False, alias="Goroot")
    standard: bool = Field(False, alias="Standard")
    imports: list[str] = Field(default_factory=list, alias="Imports")
    target: str = Field("", alias="Target")
    error: PackageError | None = Field(None, alias="Error")

    @property
    def is_platform(self) -> bool:
        """Part of GOROOT / the standard library (never watched)."""
        return self.goroot or self.standard

    @property
    def is_command(self) -> bool:
        return self.name == "main"

    @property
    def is_resolvable(self) -> bool:
        """False for packages ``go list -e`` could not locate at all."""
        return not (self.error is not None and not self.dir)


@dataclass(frozen=True)
class ProgramUnit:
    """The runnable target: fixed for the lifetime of the supervisor."""

    import_path: str
    bin_name: str
    bin_path: Path
    args: tuple[str, ...] = field(default_factory=tuple)
    dir: Path | None = None

    @property
    def command(self) -> list[str]:
        return [str(self.bin_path), *self.args]
