# rerun - Go development rebuild/restart supervisor
# Copyright (C) 2026 rerun Authors
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

from rerun.cli.parser import cli_main

if __name__ == "__main__":
    cli_main()
