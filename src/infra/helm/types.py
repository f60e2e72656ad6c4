"""Data types for Helm command results.

This module contains the dataclasses shared by the Helm command layer
and the release backend built on top of it.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

__all__ = [
    "ClusterConnection",
    "CommandResult",
]


@dataclass
class CommandResult:
    """Result of a command execution."""

    success: bool
    stdout: str = ""
    stderr: str = ""
    returncode: int = 0

    @property
    def error_output(self) -> str:
        """Best available error text (stderr, falling back to stdout)."""
        return (self.stderr or self.stdout).strip()


@dataclass(frozen=True)
class ClusterConnection:
    """Already-authenticated cluster access handed to Helm.

    Attributes:
        kubeconfig: Path to a kubeconfig file (None uses Helm's default lookup)
        kube_context: Context name inside the kubeconfig (None uses current)
    """

    kubeconfig: Path | None = None
    kube_context: str | None = None

    def helm_flags(self) -> list[str]:
        """Global Helm flags selecting this cluster."""
        flags: list[str] = []
        if self.kubeconfig is not None:
            flags.extend(["--kubeconfig", str(self.kubeconfig)])
        if self.kube_context:
            flags.extend(["--kube-context", self.kube_context])
        return flags
