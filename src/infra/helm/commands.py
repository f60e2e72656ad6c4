"""Helm command abstractions.

This module provides commands for Helm release management,
including chart pulls, installs, upgrades, rollbacks, uninstallation,
and release metadata queries.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from .types import ClusterConnection, CommandResult

if TYPE_CHECKING:
    from .runner import CommandRunner

OCI_SCHEME = "oci://"


class HelmCommands:
    """Helm-related shell commands.

    Provides operations for:
    - Chart retrieval (pull from HTTP repositories or OCI registries)
    - Release management (install, upgrade, rollback, uninstall)
    - Status queries (release metadata)
    """

    def __init__(
        self,
        runner: CommandRunner,
        connection: ClusterConnection | None = None,
        helm_bin: str = "helm",
    ) -> None:
        """Initialize Helm commands.

        Args:
            runner: Command runner for executing shell commands
            connection: Cluster selection flags appended to release commands
            helm_bin: Helm executable name or path
        """
        self._runner = runner
        self._connection = connection or ClusterConnection()
        self._helm_bin = helm_bin

    def _base_cmd(self, *args: str) -> list[str]:
        return [self._helm_bin, *args, *self._connection.helm_flags()]

    # =========================================================================
    # Chart Retrieval
    # =========================================================================

    def pull(
        self,
        chart_name: str,
        destination: Path,
        *,
        repo_url: str,
        version: str = "",
        devel: bool = False,
    ) -> CommandResult:
        """Download a packaged chart archive into a directory.

        HTTP(S) repositories are addressed with ``--repo``; ``oci://``
        registries are addressed by full reference.

        Args:
            chart_name: Chart to pull (e.g., "universal-crossplane")
            destination: Directory the archive is written to
            repo_url: Chart repository or OCI registry URL
            version: Exact chart version (empty pulls the latest)
            devel: Consider development (pre-release) versions

        Returns:
            CommandResult with pull status
        """
        if repo_url.startswith(OCI_SCHEME):
            cmd = [self._helm_bin, "pull", f"{repo_url.rstrip('/')}/{chart_name}"]
        else:
            cmd = [self._helm_bin, "pull", chart_name, "--repo", repo_url]

        cmd.extend(["--destination", str(destination)])
        if version:
            cmd.extend(["--version", version])
        if devel:
            cmd.append("--devel")
        return self._runner.run(cmd)

    # =========================================================================
    # Release Management
    # =========================================================================

    def install(
        self,
        release_name: str,
        chart_path: Path,
        namespace: str,
        *,
        value_files: list[Path] | None = None,
        wait: bool = False,
        timeout: str = "10m",
        disable_hooks: bool = False,
        create_namespace: bool = True,
    ) -> CommandResult:
        """Install a chart archive as a new release.

        Args:
            release_name: Name for the Helm release
            chart_path: Path to the chart archive or directory
            namespace: Kubernetes namespace for the release
            value_files: Optional list of values.yaml files
            wait: Whether to wait for resources to be ready
            timeout: Maximum time to wait for Kubernetes operations
            disable_hooks: Skip chart hooks
            create_namespace: Whether to create the namespace if missing

        Returns:
            CommandResult whose stdout holds the release as JSON
        """
        cmd = self._base_cmd(
            "install", release_name, str(chart_path), "--namespace", namespace
        )
        if create_namespace:
            cmd.append("--create-namespace")
        self._append_release_flags(cmd, value_files, wait, timeout, disable_hooks)
        return self._runner.run(cmd)

    def upgrade(
        self,
        release_name: str,
        chart_path: Path,
        namespace: str,
        *,
        value_files: list[Path] | None = None,
        wait: bool = False,
        timeout: str = "10m",
        disable_hooks: bool = False,
    ) -> CommandResult:
        """Upgrade an existing release to a chart archive.

        Unlike ``upgrade --install`` this fails when the release is absent.

        Args:
            release_name: Name of the release to upgrade
            chart_path: Path to the chart archive or directory
            namespace: Kubernetes namespace of the release
            value_files: Optional list of values.yaml files
            wait: Whether to wait for resources to be ready
            timeout: Maximum time to wait for Kubernetes operations
            disable_hooks: Skip chart hooks

        Returns:
            CommandResult whose stdout holds the release as JSON
        """
        cmd = self._base_cmd(
            "upgrade", release_name, str(chart_path), "--namespace", namespace
        )
        self._append_release_flags(cmd, value_files, wait, timeout, disable_hooks)
        return self._runner.run(cmd)

    def rollback(
        self,
        release_name: str,
        namespace: str,
        revision: int | None = None,
        *,
        wait: bool = False,
        timeout: str = "10m",
    ) -> CommandResult:
        """Rollback a Helm release to a previous revision.

        Args:
            release_name: Name of the release to rollback
            namespace: Kubernetes namespace
            revision: Specific revision to rollback to (default: previous revision)
            wait: Whether to wait for rollback to complete
            timeout: Maximum time to wait for rollback

        Returns:
            CommandResult with rollback status
        """
        cmd = self._base_cmd("rollback", release_name, "--namespace", namespace)
        if revision is not None:
            cmd.append(str(revision))
        if wait:
            cmd.append("--wait")
        cmd.extend(["--timeout", timeout])
        return self._runner.run(cmd)

    def uninstall(
        self,
        release_name: str,
        namespace: str,
        *,
        wait: bool = False,
        timeout: str = "10m",
        disable_hooks: bool = False,
    ) -> CommandResult:
        """Uninstall a Helm release.

        Args:
            release_name: Name of the release to uninstall
            namespace: Kubernetes namespace
            wait: Whether to wait for resources to be deleted
            timeout: Maximum time to wait for deletion
            disable_hooks: Skip chart hooks

        Returns:
            CommandResult with uninstall status
        """
        cmd = self._base_cmd("uninstall", release_name, "--namespace", namespace)
        if wait:
            cmd.append("--wait")
        if disable_hooks:
            cmd.append("--no-hooks")
        cmd.extend(["--timeout", timeout])
        return self._runner.run(cmd)

    # =========================================================================
    # Status Queries
    # =========================================================================

    def get_metadata(self, release_name: str, namespace: str) -> CommandResult:
        """Fetch metadata (chart, version, revision, status) of a release.

        Args:
            release_name: Name of the release
            namespace: Kubernetes namespace

        Returns:
            CommandResult whose stdout holds the metadata as JSON
        """
        cmd = self._base_cmd(
            "get", "metadata", release_name, "--namespace", namespace, "-o", "json"
        )
        return self._runner.run(cmd)

    @staticmethod
    def _append_release_flags(
        cmd: list[str],
        value_files: list[Path] | None,
        wait: bool,
        timeout: str,
        disable_hooks: bool,
    ) -> None:
        if wait:
            cmd.append("--wait")
        if disable_hooks:
            cmd.append("--no-hooks")
        cmd.extend(["--timeout", timeout])
        for vf in value_files or []:
            cmd.extend(["-f", str(vf)])
        cmd.extend(["-o", "json"])
