"""Helm CLI abstraction layer.

This package wraps the ``helm`` binary behind typed command methods so the
release backend and chart cache never build command lines themselves.

Example:
    from src.infra.helm import ClusterConnection, CommandRunner, HelmCommands

    helm = HelmCommands(CommandRunner(), ClusterConnection(kube_context="kind"))
    result = helm.get_metadata("universal-crossplane", "upbound-system")
"""

from .commands import OCI_SCHEME, HelmCommands
from .runner import CommandRunner
from .types import ClusterConnection, CommandResult

__all__ = [
    "HelmCommands",
    "CommandRunner",
    "ClusterConnection",
    "CommandResult",
    "OCI_SCHEME",
]
