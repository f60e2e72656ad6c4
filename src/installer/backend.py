"""Release backend adapter.

A narrow capability set over the package manager's release primitives:
get, install, upgrade, rollback and uninstall. The installer only talks to
this interface, so tests substitute a fake and the Helm implementation can
change without touching the orchestration logic.
"""

from __future__ import annotations

import json
import os
import tempfile
from abc import ABC, abstractmethod
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

import yaml
from loguru import logger

from .errors import BackendError, ReleaseNotFoundError

if TYPE_CHECKING:
    from src.infra.helm import CommandResult, HelmCommands

RELEASE_NOT_FOUND_MARKER = "release: not found"


@dataclass
class Release:
    """Cluster-side state of an installed chart.

    Attributes:
        name: Release name
        namespace: Kubernetes namespace
        version: Installed chart version (None when metadata is missing)
        revision: Release revision number
        status: Release status (deployed, failed, pending-upgrade, ...)
        app_version: Application version declared by the chart
    """

    name: str
    namespace: str
    version: str | None = None
    revision: int | None = None
    status: str = ""
    app_version: str = ""


@dataclass
class UninstallResponse:
    """Outcome of an uninstall."""

    release_name: str
    info: str = ""


class ReleaseBackend(ABC):
    """Release primitives of the package manager."""

    @abstractmethod
    def get_release(self, name: str) -> Release:
        """Return the named release.

        Raises:
            ReleaseNotFoundError: If the release does not exist
            BackendError: For any other failure
        """

    @abstractmethod
    def install_release(self, artifact: Path, params: dict[str, Any]) -> Release:
        """Install a chart archive as a new release."""

    @abstractmethod
    def upgrade_release(
        self, name: str, artifact: Path, params: dict[str, Any]
    ) -> Release:
        """Upgrade an existing release to a chart archive."""

    @abstractmethod
    def rollback_release(self, name: str) -> None:
        """Roll a release back to its previous revision."""

    @abstractmethod
    def uninstall_release(self, name: str) -> UninstallResponse:
        """Remove a release."""


class HelmReleaseBackend(ReleaseBackend):
    """ReleaseBackend implemented with the ``helm`` CLI."""

    def __init__(
        self,
        helm: HelmCommands,
        namespace: str,
        release_name: str,
        *,
        wait: bool = False,
        timeout: str = "10m",
        disable_hooks: bool = False,
    ) -> None:
        """Initialize the backend.

        Args:
            helm: Helm command layer bound to the target cluster
            namespace: Namespace every release lives in
            release_name: Name given to newly installed releases
            wait: Wait for resources on install/upgrade/rollback/uninstall
            timeout: Timeout for Kubernetes operations
            disable_hooks: Skip chart hooks on install/upgrade/uninstall
        """
        self.helm = helm
        self.namespace = namespace
        self.release_name = release_name
        self.wait = wait
        self.timeout = timeout
        self.disable_hooks = disable_hooks

    def get_release(self, name: str) -> Release:
        result = self.helm.get_metadata(name, self.namespace)
        if not result.success:
            if RELEASE_NOT_FOUND_MARKER in result.error_output.lower():
                raise ReleaseNotFoundError(name, self.namespace)
            raise self._error("get release", result)

        try:
            metadata: dict[str, Any] = json.loads(result.stdout)
        except json.JSONDecodeError as e:
            raise BackendError("get release", f"unreadable metadata: {e}") from e

        return Release(
            name=metadata.get("name") or name,
            namespace=metadata.get("namespace") or self.namespace,
            version=metadata.get("version") or None,
            revision=metadata.get("revision"),
            status=metadata.get("status", ""),
            app_version=metadata.get("appVersion", ""),
        )

    def install_release(self, artifact: Path, params: dict[str, Any]) -> Release:
        logger.info(f"Installing {artifact.name} as {self.release_name} in {self.namespace}")
        with _values_file(params) as values:
            result = self.helm.install(
                self.release_name,
                artifact,
                self.namespace,
                value_files=[values],
                wait=self.wait,
                timeout=self.timeout,
                disable_hooks=self.disable_hooks,
            )
        if not result.success:
            raise self._error("install release", result)
        return self._release_from_output(self.release_name, result.stdout)

    def upgrade_release(
        self, name: str, artifact: Path, params: dict[str, Any]
    ) -> Release:
        logger.info(f"Upgrading {name} in {self.namespace} to {artifact.name}")
        with _values_file(params) as values:
            result = self.helm.upgrade(
                name,
                artifact,
                self.namespace,
                value_files=[values],
                wait=self.wait,
                timeout=self.timeout,
                disable_hooks=self.disable_hooks,
            )
        if not result.success:
            raise self._error("upgrade release", result)
        return self._release_from_output(name, result.stdout)

    def rollback_release(self, name: str) -> None:
        logger.info(f"Rolling back {name} in {self.namespace}")
        result = self.helm.rollback(
            name, self.namespace, wait=self.wait, timeout=self.timeout
        )
        if not result.success:
            raise self._error("rollback release", result)

    def uninstall_release(self, name: str) -> UninstallResponse:
        logger.info(f"Uninstalling {name} from {self.namespace}")
        result = self.helm.uninstall(
            name,
            self.namespace,
            wait=self.wait,
            timeout=self.timeout,
            disable_hooks=self.disable_hooks,
        )
        if not result.success:
            raise self._error("uninstall release", result)
        return UninstallResponse(release_name=name, info=result.stdout.strip())

    def _release_from_output(self, name: str, stdout: str) -> Release:
        """Build a Release from ``helm install/upgrade -o json`` output."""
        try:
            data: dict[str, Any] = json.loads(stdout)
        except json.JSONDecodeError:
            logger.debug(f"Helm returned non-JSON output for {name}")
            return Release(name=name, namespace=self.namespace)

        metadata = (data.get("chart") or {}).get("metadata") or {}
        return Release(
            name=data.get("name") or name,
            namespace=data.get("namespace") or self.namespace,
            version=metadata.get("version") or None,
            revision=data.get("version"),
            status=(data.get("info") or {}).get("status", ""),
            app_version=metadata.get("appVersion", ""),
        )

    @staticmethod
    def _error(operation: str, result: CommandResult) -> BackendError:
        return BackendError(
            operation, result.error_output or f"helm exited with code {result.returncode}"
        )


@contextmanager
def _values_file(params: dict[str, Any]) -> Iterator[Path]:
    """Write parameters to a temporary values file, removed on exit."""
    fd, name = tempfile.mkstemp(suffix=".yaml", prefix="helm-values-")
    path = Path(name)
    try:
        with os.fdopen(fd, "w") as f:
            yaml.safe_dump(params, f, default_flow_style=False)
        yield path
    finally:
        path.unlink(missing_ok=True)
