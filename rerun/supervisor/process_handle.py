"""
Process handle for the supervised program.
"""

# rerun - Go development rebuild/restart supervisor
# Copyright (C) 2026 rerun Authors
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import asyncio
import logging
import signal
import subprocess
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from rerun.exceptions import ProcessControlError

logger = logging.getLogger(__name__)


# ── Process State ──────────────────────────────────────────────────

class ProcessState(Enum):
    """Lifecycle of the child process."""
    ABSENT = "absent"            # No child (never started or confirmed exit)
    LAUNCHING = "launching"      # Popen in progress
    RUNNING = "running"          # Child alive
    STOPPING = "stopping"        # Interrupt sent, waiting for exit


@dataclass
class ProcessStats:
    """Process statistics."""
    started_at: datetime | None = None
    stopped_at: datetime | None = None
    launch_count: int = 0
    exit_code: int | None = None


# ── Process Handle ──────────────────────────────────────────────────

class ProcessHandle:
    """
    Handle for the child program.

    Owns the OS process object.  Each successful launch bumps
    ``generation`` so exit notices from earlier instances can be told
    apart from the current one.
    """

    def __init__(self, command: list[str], poll_interval: float = 0.1):
        self.command = command
        self.poll_interval = poll_interval

        self.state = ProcessState.ABSENT
        self.process: subprocess.Popen | None = None
        self.generation = 0
        self.stats = ProcessStats()

    def launch(self) -> int:
        """
        Start a new instance with stdout/stderr inherited from rerun.

        Returns:
            The generation number of the new instance.

        Raises:
            ProcessControlError: An instance is still alive, or the
                executable could not be started.
        """
        if self.is_alive():
            raise ProcessControlError(
                f"previous instance still running (PID {self.get_pid()})"
            )

        self.state = ProcessState.LAUNCHING
        logger.debug("Command: %s", " ".join(self.command))
        try:
            self.process = subprocess.Popen(self.command)
        except OSError as e:
            self.process = None
            self.state = ProcessState.ABSENT
            raise ProcessControlError(f"error on starting process: '{e}'") from e

        self.generation += 1
        self.stats.launch_count += 1
        self.stats.started_at = datetime.now()
        self.stats.stopped_at = None
        self.stats.exit_code = None
        self.state = ProcessState.RUNNING
        logger.info("Process started: %s (PID %s)", self.command[0], self.process.pid)
        return self.generation

    async def wait_for_exit(self, process: subprocess.Popen) -> int:
        """Poll *process* until it exits and return its exit status."""
        while process.poll() is None:
            await asyncio.sleep(self.poll_interval)
        return process.returncode

    async def stop(self, timeout: float | None = None) -> int | None:
        """
        Stop the current instance.

        Shutdown flow:
        1. Send SIGINT (on failure, SIGKILL straight away)
        2. Wait for exit; with *timeout* set, SIGKILL once it elapses
        3. Reap the exit status and clear the handle

        Args:
            timeout: Seconds to wait after the interrupt, None for no bound.

        Returns:
            The exit status, or None if there was no instance.
        """
        process = self.process
        if process is None:
            self.state = ProcessState.ABSENT
            return None

        self.state = ProcessState.STOPPING
        if process.poll() is None:
            try:
                process.send_signal(signal.SIGINT)
            except (OSError, ValueError) as e:
                logger.warning(
                    "error on sending signal to process: '%s', will now hard-kill the process", e,
                )
                self._kill(process)

        try:
            if timeout is None:
                await self.wait_for_exit(process)
            else:
                async with asyncio.timeout(timeout):
                    await self.wait_for_exit(process)
        except asyncio.TimeoutError:
            logger.warning(
                "Process did not exit within %.1fs, sending SIGKILL (PID %s)",
                timeout, process.pid,
            )
            self._kill(process)
            await self.wait_for_exit(process)

        self.mark_exited(process.returncode)
        logger.info("Process stopped (code=%s)", self.stats.exit_code)
        return self.stats.exit_code

    def _kill(self, process: subprocess.Popen) -> None:
        try:
            process.kill()
        except OSError as e:
            logger.error("Failed to kill process (PID %s): %s", process.pid, e)

    def mark_exited(self, exit_code: int | None) -> None:
        """Record the exit status and drop the OS handle."""
        self.stats.exit_code = exit_code
        self.stats.stopped_at = datetime.now()
        self.process = None
        self.state = ProcessState.ABSENT

    def is_alive(self) -> bool:
        """Check if process is alive."""
        if not self.process:
            return False
        if self.process.poll() is not None:
            return False
        return True

    def get_pid(self) -> int | None:
        """Get process PID."""
        return self.process.pid if self.process else None
