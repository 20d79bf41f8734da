# sqlshell — Interactive SQL and Host Command Shell
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
sqlshell core package.

An interactive shell for ad-hoc SQL and host commands: raw-key line editor,
command dispatcher, and a generic SQL execution engine with formatted,
windowed output.
"""
from .dispatcher import CommandDispatcher as CommandDispatcher  # noqa: F401 (re-export)
from .editor import KeyInputEngine as KeyInputEngine  # noqa: F401 (re-export)
from .engine import SQLExecutionEngine as SQLExecutionEngine  # noqa: F401 (re-export)
