# rerun - Go development rebuild/restart supervisor
# Copyright (C) 2026 rerun Authors
# SPDX-License-Identifier: Apache-2.0

"""rerun Go toolchain gateway: ``go`` CLI wrapper.

Every operation runs the ``go`` command to completion with stdout and
stderr captured into a single buffer.  There is no timeout: a compile is
allowed to take as long as it takes.
"""

from __future__ import annotations

import json
import logging
import subprocess
from dataclasses import dataclass

from pydantic import ValidationError

from rerun.exceptions import PackageNotFoundError, ToolchainError
from rerun.toolchain.packages import GoPackage

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BuildOutcome:
    """Result of one toolchain invocation."""

    success: bool
    output: str = ""
    repeated: bool = False  # failure text identical to the previous failure

    @property
    def produced_output(self) -> bool:
        return bool(self.output)


# ──────────────────────────────────────────────────────────────────────────────
# GoToolchain
# ──────────────────────────────────────────────────────────────────────────────

class GoToolchain:
    """Install/test/build/list operations via the ``go`` CLI."""

    def __init__(
        self,
        go_command: str = "go",
        race: bool = False,
        build_tags: str = "",
    ) -> None:
        """Initialise the gateway.

        Args:
            go_command: Name or path of the ``go`` executable.
            race: Pass ``-race`` to install, test and build.
            build_tags: Passed as ``-tags`` to the verification build only.
        """
        self.go_command = go_command
        self.race = race
        self.build_tags = build_tags

    # ── helpers ────────────────────────────────────────────────────────────

    def _run(self, args: list[str]) -> subprocess.CompletedProcess[str]:
        """Execute a ``go`` sub-command, combining stdout and stderr.

        Output is decoded as UTF-8; undecodable bytes from test binaries
        become U+FFFD.

        Raises:
            OSError: The go executable could not be started.
        """
        cmd = [self.go_command, *args]
        logger.debug("go command: %s", cmd)
        return subprocess.run(
            cmd,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            encoding="utf-8",
            errors="replace",
        )

    def _outcome(self, args: list[str], last_error: str = "") -> BuildOutcome:
        try:
            result = self._run(args)
        except OSError as e:
            output = f"{self.go_command}: {e}\n"
            return BuildOutcome(False, output, repeated=output == last_error)

        output = result.stdout or ""
        if result.returncode != 0:
            if not output:
                output = f"go {args[0]} exited with status {result.returncode}\n"
            return BuildOutcome(False, output, repeated=output == last_error)
        return BuildOutcome(True, output)

    def _race_flag(self) -> list[str]:
        return ["-race"] if self.race else []

    # ── compile / test / build ─────────────────────────────────────────────

    def install(self, import_path: str, last_error: str = "") -> BuildOutcome:
        """Compile and install the program binary.

        Args:
            import_path: Package to install.
            last_error: Diagnostic text of the previous failed install, used
                to flag a repeated failure.
        """
        outcome = self._outcome(
            ["install", *self._race_flag(), import_path], last_error,
        )
        if outcome.success and outcome.output:
            logger.debug("go install output: %s", outcome.output.strip())
        return outcome

    def test(self, import_path: str) -> BuildOutcome:
        """Run the package tests verbosely."""
        return self._outcome(["test", *self._race_flag(), "-v", import_path])

    def build(self, import_path: str) -> BuildOutcome:
        """Verification build, independent of the install step."""
        args = ["build"]
        if self.build_tags:
            args.extend(["-tags", self.build_tags])
        args.extend([*self._race_flag(), "-v", import_path])
        return self._outcome(args)

    # ── package metadata ───────────────────────────────────────────────────

    def list_packages(self, paths: list[str]) -> list[GoPackage]:
        """List *paths* with ``go list -e -json``.

        Packages that cannot be found are still returned, carrying an
        ``error`` and no ``dir``.

        Raises:
            PackageNotFoundError: go list itself failed or produced
                unreadable output.
        """
        joined = " ".join(paths)
        try:
            result = self._run(["list", "-e", "-json", *paths])
        except OSError as e:
            raise PackageNotFoundError(joined, str(e)) from e
        if result.returncode != 0:
            raise PackageNotFoundError(joined, (result.stdout or "").strip())

        packages: list[GoPackage] = []
        decoder = json.JSONDecoder()
        text = result.stdout or ""
        pos = 0
        try:
            while True:
                while pos < len(text) and text[pos].isspace():
                    pos += 1
                if pos >= len(text):
                    break
                obj, pos = decoder.raw_decode(text, pos)
                packages.append(GoPackage.model_validate(obj))
        except (json.JSONDecodeError, ValidationError) as e:
            raise PackageNotFoundError(joined, f"unreadable go list output: {e}") from e
        return packages

    def list_package(self, path: str) -> GoPackage:
        """List a single package, raising when it cannot be located."""
        packages = self.list_packages([path])
        if not packages:
            raise PackageNotFoundError(path, "no package listed")
        pkg = packages[0]
        if not pkg.is_resolvable:
            raise PackageNotFoundError(path, pkg.error.err if pkg.error else "")
        return pkg

    def env(self, name: str) -> str:
        """Return the value of a ``go env`` variable.

        Raises:
            ToolchainError: ``go env`` failed.
        """
        try:
            result = self._run(["env", name])
        except OSError as e:
            raise ToolchainError(f"go env {name} failed: {e}") from e
        if result.returncode != 0:
            raise ToolchainError(
                f"go env {name} failed: {(result.stdout or '').strip()}"
            )
        return (result.stdout or "").strip()
