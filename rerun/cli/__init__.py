# rerun - Go development rebuild/restart supervisor
# Copyright (C) 2026 rerun Authors
# SPDX-License-Identifier: Apache-2.0
