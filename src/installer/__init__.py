"""Versioned chart install, upgrade and rollback manager.

Example:
    from src.installer import InstallerConfig, ParameterParser, new_installer

    installer = new_installer(InstallerConfig(rollback_on_error=True))
    params = ParameterParser({}, {"replicas": "2"}).parse()
    installer.upgrade("1.14.0", params)
"""

from .backend import HelmReleaseBackend, Release, ReleaseBackend, UninstallResponse
from .cache import ChartCache, ChartPuller, HelmChartPuller
from .config import CONSTANTS, InstallerConfig, InstallerConstants, load_parameters_file
from .errors import (
    AlreadyInstalledError,
    BackendError,
    CorruptFetchError,
    FetchError,
    InstallerError,
    MoveError,
    NotInstalledError,
    ParameterFileError,
    ParseError,
    ReleaseNotFoundError,
    RollbackFailedError,
    RolledBackError,
    SameVersionError,
    VersionUnavailableError,
)
from .manager import InstallManager, Installer, new_installer
from .params import ParameterParser, parse_set_values

__all__ = [
    # Orchestration
    "InstallManager",
    "Installer",
    "new_installer",
    # Collaborators
    "ChartCache",
    "ChartPuller",
    "HelmChartPuller",
    "ReleaseBackend",
    "HelmReleaseBackend",
    "Release",
    "UninstallResponse",
    "ParameterParser",
    "parse_set_values",
    # Configuration
    "CONSTANTS",
    "InstallerConfig",
    "InstallerConstants",
    "load_parameters_file",
    # Errors
    "InstallerError",
    "ReleaseNotFoundError",
    "AlreadyInstalledError",
    "NotInstalledError",
    "SameVersionError",
    "VersionUnavailableError",
    "BackendError",
    "FetchError",
    "CorruptFetchError",
    "MoveError",
    "RolledBackError",
    "RollbackFailedError",
    "ParseError",
    "ParameterFileError",
]
