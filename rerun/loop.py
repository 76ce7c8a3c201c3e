# rerun - Go development rebuild/restart supervisor
# Copyright (C) 2026 rerun Authors
# SPDX-License-Identifier: Apache-2.0

"""Rebuild/test/restart coordination loop.

One foreground task: wait for a source change, rescan the import graph,
recompile, optionally test and verify-build, then ask the supervisor to
restart the program.  Toolchain calls run in the default executor so the
supervisor keeps servicing crashes while a compile is in progress.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any, Protocol

from rerun.config import RerunConfig
from rerun.exceptions import RerunError, ResolutionError, WatcherError
from rerun.logging_config import bind_cycle
from rerun.supervisor import ProcessSupervisor
from rerun.toolchain.gateway import BuildOutcome, GoToolchain
from rerun.toolchain.packages import ProgramUnit
from rerun.watch.resolver import WatchSet, WatchSetResolver
from rerun.watch.session import WatcherSession

logger = logging.getLogger(__name__)

_MAX_REOPEN_DELAY = 30.0


class Gateway(Protocol):
    def install(self, import_path: str, last_error: str = "") -> BuildOutcome: ...

    def test(self, import_path: str) -> BuildOutcome: ...

    def build(self, import_path: str) -> BuildOutcome: ...


class Supervisor(Protocol):
    def start(self) -> None: ...

    def request_restart(self, relaunch: bool = True) -> None: ...

    async def shutdown(self) -> None: ...


def _print_report(text: str) -> None:
    print(text, end="" if text.endswith("\n") else "\n", flush=True)


# ── RerunLoop ───────────────────────────────────────────────────────


class RerunLoop:
    """Coordinator for one program unit."""

    def __init__(
        self,
        unit: ProgramUnit,
        config: RerunConfig,
        gateway: Gateway,
        resolver: WatchSetResolver,
        supervisor: Supervisor | None = None,
        *,
        session_factory: Callable[[WatchSet], WatcherSession] | None = None,
        report: Callable[[str], None] = _print_report,
        reopen_delay: float = 1.0,
    ) -> None:
        self.unit = unit
        self.config = config
        self.gateway = gateway
        self.resolver = resolver
        self.supervisor = None if config.never_run else supervisor
        self.report = report
        self.reopen_delay = reopen_delay
        self._session_factory = session_factory or (
            lambda ws: WatcherSession(ws, extension=config.source_extension)
        )

        self.session: WatcherSession | None = None
        self.watch_set: WatchSet | None = None
        self.cycle = 0
        self.compile_failures = 0
        self._last_error = ""

    # ── Entry point ─────────────────────────────────────────────────

    async def run(self) -> None:
        """Initial pass, then rebuild on every change until cancelled.

        Raises:
            ResolutionError: The import graph of the target cannot be listed.
            WatcherError: The first watcher session cannot be opened.
        """
        logger.info("setting up %s %s", self.unit.import_path, list(self.unit.args))
        if self.supervisor is not None:
            self.supervisor.start()

        try:
            await self.initial_pass()
            self.session = await self._open_session(initial=True)
            while True:
                await self.wait_and_rebuild()
        finally:
            if self.session is not None:
                self.session.close()
            if self.supervisor is not None:
                await self.supervisor.shutdown()

    async def wait_and_rebuild(self) -> None:
        """Block for one relevant change, swap sessions, then rebuild.

        A session that cannot be replaced does not stop the rebuild; it is
        retried with backoff before waiting for the next change.
        """
        if self.session is None:
            self.session = await self._reopen_session()

        path = await self.session.next_event()
        logger.info("change --> %s", path)

        self.session.close()
        self.session = None
        logger.info("rescanning")
        try:
            self.session = await self._open_session()
        except WatcherError as e:
            logger.error("cannot watch sources, will retry after rebuild: %s", e)

        await self.rebuild_cycle()

    # ── Passes ──────────────────────────────────────────────────────

    async def initial_pass(self) -> None:
        """First build: tests run even when the compile failed."""
        self._next_cycle()
        try:
            await self._initial_steps()
        except Exception:
            logger.exception("initial build failed unexpectedly")

    async def rebuild_cycle(self) -> None:
        """Compile, then test, then verify-build, stopping at the first failure."""
        self._next_cycle()
        try:
            await self._rebuild_steps()
        except Exception:
            logger.exception("rebuild cycle %d failed unexpectedly", self.cycle)

    async def _initial_steps(self) -> None:
        compiled = await self._compile()
        tests_ok = True
        if self.config.run_tests:
            tests_ok = await self._test()
        if self.config.verify_build and tests_ok:
            await self._build()
        if compiled and tests_ok:
            self._restart()

    async def _rebuild_steps(self) -> None:
        if not await self._compile():
            return
        if self.config.run_tests and not await self._test():
            return
        if self.config.verify_build:
            await self._build()
        self._restart()

    def _next_cycle(self) -> None:
        self.cycle += 1
        bind_cycle(self.cycle)

    # ── Steps ───────────────────────────────────────────────────────

    async def _call(self, fn: Callable[..., Any], *args: Any) -> Any:
        return await asyncio.get_running_loop().run_in_executor(None, fn, *args)

    async def _compile(self) -> bool:
        outcome: BuildOutcome = await self._call(
            self.gateway.install, self.unit.import_path, self._last_error,
        )
        if outcome.success:
            self._last_error = ""
            return True

        self.compile_failures += 1
        if outcome.repeated:
            logger.debug("compile error unchanged, not repeating it")
        else:
            self.report(outcome.output)
        self._last_error = outcome.output
        return False

    async def _test(self) -> bool:
        outcome: BuildOutcome = await self._call(self.gateway.test, self.unit.import_path)
        if not outcome.success:
            self.report(outcome.output)
            logger.warning("tests failed")
            return False
        logger.info("tests passed")
        return True

    async def _build(self) -> bool:
        outcome: BuildOutcome = await self._call(self.gateway.build, self.unit.import_path)
        if not outcome.success:
            self.report(outcome.output)
            logger.warning("build failed")
            return False
        logger.info("build passed")
        return True

    def _restart(self) -> None:
        if self.supervisor is not None:
            self.supervisor.request_restart(relaunch=True)

    # ── Watching ────────────────────────────────────────────────────

    async def _open_session(self, initial: bool = False) -> WatcherSession:
        """Resolve a fresh WatchSet and open a session on it.

        After the first session, failures fall back to the last WatchSet
        that worked; if that cannot be watched either, the WatcherError is
        left to the caller, which retries.
        """
        try:
            watch_set = await self._call(self.resolver.resolve, self.unit.import_path)
        except ResolutionError as e:
            if initial or self.watch_set is None:
                raise
            logger.error("rescan failed, keeping previous watch set: %s", e)
            watch_set = self.watch_set

        try:
            session = self._start_session(watch_set)
        except WatcherError as e:
            if initial or self.watch_set is None or watch_set is self.watch_set:
                raise
            logger.error("cannot watch new watch set, keeping previous one: %s", e)
            watch_set = self.watch_set
            session = self._start_session(watch_set)

        self._log_watch_set_change(watch_set)
        self.watch_set = watch_set
        return session

    async def _reopen_session(self) -> WatcherSession:
        delay = self.reopen_delay
        while True:
            try:
                return await self._open_session()
            except WatcherError as e:
                logger.error("cannot watch sources, retrying in %.1fs: %s", delay, e)
            await asyncio.sleep(delay)
            delay = min(delay * 2, _MAX_REOPEN_DELAY)

    def _start_session(self, watch_set: WatchSet) -> WatcherSession:
        session = self._session_factory(watch_set)
        try:
            session.open()
        except RerunError:
            session.close()
            raise
        return session

    def _log_watch_set_change(self, watch_set: WatchSet) -> None:
        previous = self.watch_set.directories if self.watch_set else frozenset()
        for added in sorted(watch_set.directories - previous):
            logger.debug("watching %s", added)
        for removed in sorted(previous - watch_set.directories):
            logger.debug("no longer watching %s", removed)


# ── Wiring ──────────────────────────────────────────────────────────


async def rerun(import_path: str, args: list[str], config: RerunConfig) -> None:
    """Resolve *import_path* and supervise it until cancelled.

    Raises:
        ResolutionError: The target cannot be listed or is not ``package main``.
        WatcherError: The first watcher session cannot be opened.
    """
    toolchain = GoToolchain(
        go_command=config.go_command,
        race=config.race,
        build_tags=config.build_tags,
    )
    resolver = WatchSetResolver(toolchain)
    loop = asyncio.get_running_loop()
    unit = await loop.run_in_executor(None, resolver.resolve_unit, import_path, args)

    supervisor = None
    if not config.never_run:
        supervisor = ProcessSupervisor(
            unit,
            asyncio.Queue(),
            stop_timeout=config.stop_timeout,
            crash_relaunch_delay=config.crash_relaunch_delay,
        )

    await RerunLoop(unit, config, toolchain, resolver, supervisor).run()
