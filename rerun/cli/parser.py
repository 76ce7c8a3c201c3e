# rerun - Go development rebuild/restart supervisor
# Copyright (C) 2026 rerun Authors
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys

logger = logging.getLogger("rerun")

USAGE = "rerun [--test] [--no-run] [--build] [--race] <import path> [arg]*"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rerun",
        usage=USAGE,
        description="Rebuild, test and restart a Go program when its sources change",
    )
    parser.add_argument(
        "--test", dest="run_tests", action="store_true",
        help="Run tests (before running program)",
    )
    parser.add_argument(
        "--build", dest="verify_build", action="store_true",
        help="Build program",
    )
    parser.add_argument(
        "--build-tags", default=None, metavar="TAGS",
        help="Build tags (verification build only)",
    )
    parser.add_argument(
        "--no-run", dest="never_run", action="store_true",
        help="Do not run",
    )
    parser.add_argument(
        "--race", action="store_true",
        help="Run program and tests with the race detector",
    )
    parser.add_argument(
        "--stop-timeout", type=float, default=None, metavar="SECONDS",
        help="SIGKILL the program if it has not exited this long after SIGINT "
             "(default: wait indefinitely)",
    )
    parser.add_argument(
        "--go", dest="go_command", default=None, metavar="PATH",
        help="go executable (default: go)",
    )
    parser.add_argument(
        "--log-level", default=None,
        help="Log level (default: INFO or RERUN_LOG_LEVEL)",
    )
    parser.add_argument("import_path", help="Import path of the main package")
    parser.add_argument(
        "args", nargs=argparse.REMAINDER,
        help="Arguments passed to the program",
    )
    return parser


def cli_main(argv: list[str] | None = None) -> None:
    from dotenv import load_dotenv

    load_dotenv()

    from rerun.config import load_config, merge_cli_overrides
    from rerun.exceptions import ConfigError, ResolutionError, WatcherError
    from rerun.logging_config import setup_logging
    from rerun.loop import rerun
    from rerun.paths import get_log_dir

    parser = build_parser()
    ns = parser.parse_args(argv)

    try:
        config = merge_cli_overrides(
            load_config(),
            {
                "run_tests": ns.run_tests,
                "verify_build": ns.verify_build,
                "never_run": ns.never_run,
                "race": ns.race,
                "build_tags": ns.build_tags,
                "stop_timeout": ns.stop_timeout,
                "go_command": ns.go_command,
                "log_level": ns.log_level or os.environ.get("RERUN_LOG_LEVEL"),
            },
        )
    except ConfigError as e:
        parser.error(str(e))

    setup_logging(level=config.log_level, log_dir=get_log_dir())

    try:
        asyncio.run(rerun(ns.import_path, ns.args, config))
    except KeyboardInterrupt:
        logger.info("interrupted, exiting")
    except (ResolutionError, WatcherError) as e:
        logger.error("%s", e)
        sys.exit(1)
