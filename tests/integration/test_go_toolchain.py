# rerun - Go development rebuild/restart supervisor
# Copyright (C) 2026 rerun Authors
# SPDX-License-Identifier: Apache-2.0
"""Integration tests against a real ``go`` installation.

Builds a two-package module in a temporary directory; skipped when no go
toolchain is on PATH.
"""

from __future__ import annotations

import shutil
from pathlib import Path

import pytest

from rerun.toolchain.gateway import GoToolchain
from rerun.watch.resolver import WatchSetResolver

pytestmark = [
    pytest.mark.slow,
    pytest.mark.skipif(shutil.which("go") is None, reason="go toolchain not installed"),
]

MAIN_GO = """package main

import (
\t"fmt"

\t"example.com/hello/greet"
)

func main() { fmt.Println(greet.Hello()) }
"""

GREET_GO = """package greet

func Hello() string { return "hello" }
"""


@pytest.fixture
def go_module(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    mod = tmp_path / "hello"
    (mod / "greet").mkdir(parents=True)
    (mod / "go.mod").write_text("module example.com/hello\n\ngo 1.18\n", encoding="utf-8")
    (mod / "main.go").write_text(MAIN_GO, encoding="utf-8")
    (mod / "greet" / "greet.go").write_text(GREET_GO, encoding="utf-8")
    monkeypatch.chdir(mod)
    monkeypatch.setenv("GOBIN", str(tmp_path / "bin"))
    monkeypatch.setenv("GOTOOLCHAIN", "local")
    return mod


def test_watch_set_covers_module_packages(go_module: Path):
    ws = WatchSetResolver(GoToolchain()).resolve("example.com/hello")

    assert {d.resolve() for d in ws.directories} == {
        go_module.resolve(), (go_module / "greet").resolve(),
    }
    assert "fmt" in ws.visited


def test_install_produces_binary(go_module: Path, tmp_path: Path):
    tc = GoToolchain()
    unit = WatchSetResolver(tc).resolve_unit("example.com/hello")

    outcome = tc.install(unit.import_path)

    assert outcome.success, outcome.output
    assert unit.bin_path == tmp_path / "bin" / "hello"
    assert unit.bin_path.exists()


def test_compile_error_is_reported(go_module: Path):
    (go_module / "greet" / "greet.go").write_text(
        "package greet\n\nfunc Hello() string { return missing }\n", encoding="utf-8",
    )
    tc = GoToolchain()

    first = tc.install("example.com/hello")
    second = tc.install("example.com/hello", last_error=first.output)

    assert first.success is False
    assert "undefined: missing" in first.output
    assert second.repeated is True
