"""Command runner for executing shell commands.

This module provides the base command execution functionality used by
the Helm command layer.
"""

from __future__ import annotations

import subprocess
from collections.abc import Sequence
from pathlib import Path

from loguru import logger

from .types import CommandResult


class CommandRunner:
    """Low-level command executor with consistent result handling.

    Commands never raise on a non-zero exit code; callers inspect the
    returned CommandResult and translate failures into domain errors.
    """

    def __init__(self, working_dir: Path | None = None) -> None:
        """Initialize the command runner.

        Args:
            working_dir: Directory commands run from (None uses the
                         current process working directory)
        """
        self.working_dir = working_dir

    def run(
        self,
        cmd: Sequence[str],
        *,
        cwd: Path | None = None,
    ) -> CommandResult:
        """Execute a command and return a structured result.

        Args:
            cmd: Command and arguments as a sequence
            cwd: Working directory (defaults to working_dir)

        Returns:
            CommandResult with success status, output, and return code
        """
        logger.debug(f"Running: {' '.join(cmd)}")
        try:
            result = subprocess.run(
                list(cmd),
                cwd=cwd or self.working_dir,
                capture_output=True,
                text=True,
                check=False,
            )
        except FileNotFoundError as e:
            # Binary missing from PATH
            return CommandResult(
                success=False,
                stderr=f"{cmd[0]}: command not found ({e})",
                returncode=127,
            )
        return CommandResult(
            success=result.returncode == 0,
            stdout=result.stdout or "",
            stderr=result.stderr or "",
            returncode=result.returncode,
        )
