"""
Process Supervisor - keeps at most one instance of the program alive.
"""

# rerun - Go development rebuild/restart supervisor
# Copyright (C) 2026 rerun Authors
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import asyncio
import logging
import subprocess
from collections.abc import Callable
from dataclasses import dataclass

from rerun.exceptions import ProcessControlError
from rerun.supervisor.process_handle import ProcessHandle, ProcessState
from rerun.toolchain.packages import ProgramUnit

logger = logging.getLogger(__name__)


# ── Messages ───────────────────────────────────────────────────────

@dataclass(frozen=True)
class RestartRequest:
    """Stop the current instance, then start a new one if ``relaunch``."""
    relaunch: bool = True


@dataclass(frozen=True)
class ProcessExited:
    """Posted by the monitor task when an instance ends on its own."""
    generation: int
    exit_code: int | None


# ── Process Supervisor ─────────────────────────────────────────────

class ProcessSupervisor:
    """
    Single-task supervisor for the program binary.

    All mutable state (the process handle, the pending-request count and
    the restart-in-progress flag) is touched only by the actor task that
    consumes ``requests``, so the monitor and the rebuild loop never race
    on it.  They communicate with the actor purely through the queue.

    Responsibilities:
    - Stop-before-start restarts (SIGINT, then SIGKILL escalation)
    - Reaping every instance it started
    - Relaunching once after an unexpected exit
    """

    def __init__(
        self,
        unit: ProgramUnit,
        requests: asyncio.Queue | None = None,
        *,
        stop_timeout: float | None = None,
        crash_relaunch_delay: float = 1.0,
        poll_interval: float = 0.1,
        handle_factory: Callable[..., ProcessHandle] = ProcessHandle,
    ):
        self.unit = unit
        self.requests: asyncio.Queue = requests if requests is not None else asyncio.Queue()
        self.stop_timeout = stop_timeout
        self.crash_relaunch_delay = crash_relaunch_delay

        self.handle = handle_factory(unit.command, poll_interval=poll_interval)
        self._pending = 0
        self._restarting = False
        self._actor_task: asyncio.Task | None = None
        self._monitor_task: asyncio.Task | None = None
        self._relaunch_task: asyncio.Task | None = None

    @property
    def is_restarting(self) -> bool:
        return self._restarting

    @property
    def pending_requests(self) -> int:
        return self._pending

    def is_running(self) -> bool:
        """Whether the actor task is consuming requests."""
        return self._actor_task is not None and not self._actor_task.done()

    def is_alive(self) -> bool:
        """Whether an instance of the program is currently running."""
        return self.handle.is_alive()

    # ── Public API ─────────────────────────────────────────────────

    def start(self) -> None:
        """Spawn the actor task (the crash watchdog lives inside it)."""
        if self.is_running():
            return
        self._actor_task = asyncio.get_running_loop().create_task(
            self._run(), name="rerun-supervisor",
        )
        logger.debug("Supervisor started for %s", self.unit.bin_path)

    def request_restart(self, relaunch: bool = True) -> None:
        """Queue a stop (and, with ``relaunch``, a fresh start)."""
        self._pending += 1
        self.requests.put_nowait(RestartRequest(relaunch=relaunch))

    async def wait_idle(self) -> None:
        """Wait until every queued message has been handled."""
        await self.requests.join()

    async def shutdown(self) -> None:
        """Stop the program and the actor task."""
        if self._relaunch_task and not self._relaunch_task.done():
            self._relaunch_task.cancel()

        if self.is_running():
            self.request_restart(relaunch=False)
            await self.wait_idle()
            self._actor_task.cancel()
            try:
                await self._actor_task
            except asyncio.CancelledError:
                pass
        elif self.handle.process is not None:
            await self.handle.stop(timeout=self.stop_timeout)

        logger.info("Supervisor shut down")

    def status(self) -> dict:
        """Snapshot of the child process for logging and tests."""
        stats = self.handle.stats
        return {
            "state": self.handle.state.value,
            "pid": self.handle.get_pid(),
            "generation": self.handle.generation,
            "launch_count": stats.launch_count,
            "exit_code": stats.exit_code,
            "restarting": self._restarting,
            "pending_requests": self._pending,
        }

    # ── Actor ──────────────────────────────────────────────────────

    async def _run(self) -> None:
        while True:
            message = await self.requests.get()
            try:
                if isinstance(message, RestartRequest):
                    self._pending -= 1
                    await self._handle_restart(message.relaunch)
                elif isinstance(message, ProcessExited):
                    self._handle_exit(message)
                else:
                    logger.warning("Unknown supervisor message: %r", message)
            except Exception:
                logger.exception("Supervisor failed to handle %r", message)
            finally:
                self.requests.task_done()

    async def _handle_restart(self, relaunch: bool) -> None:
        self._restarting = True
        try:
            if self.handle.process is not None:
                await self._stop_current()
            if relaunch:
                self._launch()
        finally:
            self._restarting = False

    async def _stop_current(self) -> None:
        # The instance is being retired on purpose; its exit is not a crash.
        if self._monitor_task and not self._monitor_task.done():
            self._monitor_task.cancel()
        self._monitor_task = None
        await self.handle.stop(timeout=self.stop_timeout)

    def _launch(self) -> None:
        logger.info("launch %s", " ".join(self.unit.command))
        try:
            generation = self.handle.launch()
        except ProcessControlError as e:
            logger.error("%s", e)
            return
        self._monitor_task = asyncio.get_running_loop().create_task(
            self._monitor(generation, self.handle.process),
            name=f"rerun-monitor-{generation}",
        )

    async def _monitor(self, generation: int, process: subprocess.Popen) -> None:
        exit_code = await self.handle.wait_for_exit(process)
        self.requests.put_nowait(ProcessExited(generation, exit_code))

    def _handle_exit(self, message: ProcessExited) -> None:
        if message.generation != self.handle.generation or self.handle.state != ProcessState.RUNNING:
            logger.debug("Ignoring exit of retired instance %d", message.generation)
            return

        self.handle.mark_exited(message.exit_code)
        self._monitor_task = None
        logger.warning("Process exited unexpectedly (exit_code=%s)", message.exit_code)

        if self._pending > 0 or self._restarting:
            return
        if self._relaunch_task and not self._relaunch_task.done():
            return
        logger.info("process quit, relaunch")
        self._relaunch_task = asyncio.get_running_loop().create_task(
            self._relaunch_after_crash(), name="rerun-crash-relaunch",
        )

    async def _relaunch_after_crash(self) -> None:
        await asyncio.sleep(self.crash_relaunch_delay)
        # A rebuild may have queued its own restart in the meantime
        if self._pending == 0 and self.handle.process is None:
            self.request_restart(relaunch=True)
