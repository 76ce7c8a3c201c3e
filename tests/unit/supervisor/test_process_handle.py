"""Unit tests for ProcessHandle: launch, interrupt/kill escalation and reaping."""

# rerun - Go development rebuild/restart supervisor
# Copyright (C) 2026 rerun Authors
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import signal
import sys
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from rerun.exceptions import ProcessControlError
from rerun.supervisor.process_handle import ProcessHandle, ProcessState
from rerun.toolchain.packages import ProgramUnit
from tests.helpers.fakes import wait_until


@pytest.fixture
def handle(sleeper_unit: ProgramUnit) -> ProcessHandle:
    """Create a ProcessHandle for a sleeping child."""
    return ProcessHandle(sleeper_unit.command, poll_interval=0.02)


class TestLaunch:

    @pytest.mark.asyncio
    async def test_launch_starts_running_instance(self, handle: ProcessHandle):
        generation = handle.launch()
        try:
            assert generation == 1
            assert handle.state == ProcessState.RUNNING
            assert handle.is_alive() is True
            assert handle.get_pid() is not None
            assert handle.stats.launch_count == 1
        finally:
            await handle.stop()

    @pytest.mark.asyncio
    async def test_launch_refuses_while_previous_alive(self, handle: ProcessHandle):
        handle.launch()
        try:
            with pytest.raises(ProcessControlError, match="still running"):
                handle.launch()
            assert handle.generation == 1
        finally:
            await handle.stop()

    def test_launch_failure_leaves_handle_absent(self, tmp_path: Path):
        h = ProcessHandle([str(tmp_path / "missing-binary")])

        with pytest.raises(ProcessControlError, match="error on starting process"):
            h.launch()

        assert h.state == ProcessState.ABSENT
        assert h.process is None
        assert h.generation == 0
        assert h.stats.launch_count == 0


class TestStop:

    @pytest.mark.asyncio
    async def test_stop_without_instance_returns_none(self, handle: ProcessHandle):
        assert await handle.stop() is None
        assert handle.state == ProcessState.ABSENT

    @pytest.mark.asyncio
    async def test_stop_interrupts_and_reaps(self, handle: ProcessHandle):
        handle.launch()
        process = handle.process

        exit_code = await handle.stop()

        assert exit_code is not None
        assert process.poll() is not None
        assert handle.process is None
        assert handle.state == ProcessState.ABSENT
        assert handle.stats.exit_code == exit_code
        assert handle.stats.stopped_at is not None

    @pytest.mark.asyncio
    async def test_stop_of_already_exited_instance(self, crasher_unit: ProgramUnit):
        h = ProcessHandle(crasher_unit.command, poll_interval=0.02)
        h.launch()
        await wait_until(lambda: h.process.poll() is not None)

        assert await h.stop() == 3
        assert h.state == ProcessState.ABSENT

    @pytest.mark.asyncio
    async def test_signal_failure_escalates_to_kill(self, handle: ProcessHandle):
        process = MagicMock()
        process.pid = 4242
        process.poll.side_effect = [None] + [-9] * 10
        process.returncode = -9
        process.send_signal.side_effect = ProcessLookupError("no such process")
        handle.process = process
        handle.state = ProcessState.RUNNING

        exit_code = await handle.stop()

        process.send_signal.assert_called_once_with(signal.SIGINT)
        process.kill.assert_called_once()
        assert exit_code == -9
        assert handle.process is None

    @pytest.mark.asyncio
    @pytest.mark.skipif(sys.platform == "win32", reason="POSIX signals")
    async def test_timeout_escalates_to_sigkill(self, stubborn_unit: ProgramUnit, tmp_path: Path):
        h = ProcessHandle(stubborn_unit.command, poll_interval=0.02)
        h.launch()
        await wait_until(lambda: (tmp_path / "armed").exists())

        exit_code = await h.stop(timeout=0.3)

        assert exit_code == -signal.SIGKILL
        assert h.is_alive() is False
