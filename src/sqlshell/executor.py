# sqlshell — Interactive SQL and Host Command Shell
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
Subprocess-backed process runner for host commands.

Commands inherit stdin/stdout/stderr and the environment from the shell so
pagers and interactive programs keep working. Nothing is captured and there
is no timeout: the shell waits until the program exits.
"""

from __future__ import annotations

import subprocess
from dataclasses import dataclass


@dataclass(frozen=True)
class PassthroughResult:
    """Result from passthrough execution (no output capture)."""

    exit_code: int
    error: str = ""


class SubprocessExecutor:
    """Subprocess implementation of the ProcessRunner protocol."""

    def run(self, argv: list[str], cwd: str | None = None) -> PassthroughResult:
        """Run argv with full terminal control.

        Args:
            argv: program and its arguments (no shell involved)
            cwd: working directory for the command (default: current directory)

        Returns:
            PassthroughResult; ``error`` is set when the program could not
            be started
        """
        if not argv:
            return PassthroughResult(exit_code=1, error="empty command")

        try:
            proc = subprocess.Popen(
                argv,
                stdin=None,  # inherit from parent
                stdout=None,  # inherit from parent
                stderr=None,  # inherit from parent
                cwd=cwd,
            )
            exit_code = proc.wait()
        except FileNotFoundError:
            return PassthroughResult(
                exit_code=127, error=f"{argv[0]}: command not found"
            )
        except OSError as e:
            return PassthroughResult(
                exit_code=126, error=f"{argv[0]}: {e.strerror or e}"
            )

        return PassthroughResult(exit_code=exit_code)
