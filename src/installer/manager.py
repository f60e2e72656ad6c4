"""Release install, upgrade and uninstall orchestration.

States per (release, namespace): absent, or installed at a version.

    install   absent               -> installed(version)
    upgrade   installed(current)   -> installed(version), rolled back on failure
    uninstall installed            -> absent

Versions are opaque strings compared for equality only; an empty version
means "latest available".
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from loguru import logger

from src.infra.helm import ClusterConnection, CommandRunner, HelmCommands

from .backend import HelmReleaseBackend, ReleaseBackend
from .cache import ChartCache, HelmChartPuller, TempDirFactory, make_temp_dir
from .config import InstallerConfig
from .errors import (
    AlreadyInstalledError,
    BackendError,
    InstallerError,
    NotInstalledError,
    ReleaseNotFoundError,
    RollbackFailedError,
    RolledBackError,
    SameVersionError,
    VersionUnavailableError,
)


class InstallManager(ABC):
    """Operations exposed to CLI commands."""

    @abstractmethod
    def get_current_version(self) -> str:
        """Return the installed chart version."""

    @abstractmethod
    def install(self, version: str, parameters: dict[str, Any] | None = None) -> None:
        """Install the chart at a version (empty for latest)."""

    @abstractmethod
    def upgrade(self, version: str, parameters: dict[str, Any] | None = None) -> None:
        """Upgrade the installed release to a version (empty for latest)."""

    @abstractmethod
    def uninstall(self) -> None:
        """Remove the release."""


class Installer(InstallManager):
    """InstallManager composing a chart cache and a release backend.

    Not safe for concurrent use: callers serialize operations against the
    same release and namespace.
    """

    def __init__(
        self,
        config: InstallerConfig,
        backend: ReleaseBackend,
        cache: ChartCache,
    ) -> None:
        self.config = config
        self.backend = backend
        self.cache = cache

    @property
    def release_name(self) -> str:
        return self.config.effective_release_name

    def get_current_version(self) -> str:
        """Return the installed chart version.

        Raises:
            ReleaseNotFoundError: If no release exists
            VersionUnavailableError: If the release has no chart version
        """
        release = self.backend.get_release(self.release_name)
        if not release.version:
            raise VersionUnavailableError()
        return release.version

    def install(self, version: str, parameters: dict[str, Any] | None = None) -> None:
        """Install the chart.

        Raises:
            AlreadyInstalledError: If a release of any version exists
            BackendError: If the existing release cannot be queried
        """
        try:
            release = self.backend.get_release(self.release_name)
        except ReleaseNotFoundError:
            pass
        except InstallerError as e:
            raise BackendError(
                "could not verify that chart is not already installed", e.message
            ) from e
        else:
            raise AlreadyInstalledError(release.version or "unknown")

        artifact = self._load_chart(version)
        self.backend.install_release(artifact, parameters or {})
        logger.info(f"Installed {self.release_name} from {artifact.name}")

    def upgrade(self, version: str, parameters: dict[str, Any] | None = None) -> None:
        """Upgrade the installed release.

        Raises:
            NotInstalledError: If no release exists
            SameVersionError: If the target equals the installed version
            RolledBackError: If the upgrade failed and was rolled back
            RollbackFailedError: If the upgrade and the rollback both failed
        """
        try:
            current = self.get_current_version()
        except ReleaseNotFoundError as e:
            raise NotInstalledError(self.release_name, self.config.namespace) from e

        # A local bundle replaces the requested version entirely
        if version and version == current and self.config.chart_file is None:
            raise SameVersionError(version)

        artifact = self._load_chart(version)
        try:
            self.backend.upgrade_release(self.release_name, artifact, parameters or {})
        except InstallerError as upgrade_error:
            if not self.config.rollback_on_error:
                raise
            logger.warning(
                f"Upgrade of {self.release_name} failed, rolling back: {upgrade_error}"
            )
            try:
                self.backend.rollback_release(self.release_name)
            except InstallerError as rollback_error:
                raise RollbackFailedError(upgrade_error, rollback_error) from upgrade_error
            raise RolledBackError(upgrade_error) from upgrade_error

        logger.info(f"Upgraded {self.release_name} from {current} using {artifact.name}")

    def uninstall(self) -> None:
        self.backend.uninstall_release(self.release_name)
        logger.info(f"Uninstalled {self.release_name}")

    def _load_chart(self, version: str) -> Path:
        # A local bundle bypasses the cache and the requested version
        if self.config.chart_file is not None:
            return self.config.chart_file
        return self.cache.resolve(self.config.chart_name, version)


def new_installer(
    config: InstallerConfig,
    connection: ClusterConnection | None = None,
    *,
    runner: CommandRunner | None = None,
    temp_dir_factory: TempDirFactory = make_temp_dir,
) -> InstallManager:
    """Build a Helm-backed installer from a configuration value.

    Args:
        config: Installer configuration
        connection: Cluster the releases live in
        runner: Command runner (a fresh one by default)
        temp_dir_factory: Scratch directory factory for latest pulls

    Returns:
        An InstallManager ready for use
    """
    helm = HelmCommands(runner or CommandRunner(), connection)
    backend = HelmReleaseBackend(
        helm,
        config.namespace,
        config.effective_release_name,
        wait=config.wait,
        timeout=config.timeout,
        disable_hooks=config.disable_hooks,
    )
    puller = HelmChartPuller(helm, config.effective_repo_url, unstable=config.unstable)
    cache = ChartCache(config.effective_cache_dir, puller, temp_dir_factory)
    return Installer(config, backend, cache)
