"""Error taxonomy for the release installer.

Every error raised by the installer derives from InstallerError so the CLI
can render any failure the same way. Underlying causes are chained with
``raise ... from`` and kept in ``__cause__``.
"""

from __future__ import annotations

from pathlib import Path


class InstallerError(Exception):
    """Raised when an installer operation fails."""

    def __init__(self, message: str, details: str | None = None):
        self.message = message
        self.details = details
        super().__init__(message)


# Not-found signals


class ReleaseNotFoundError(InstallerError):
    """The release does not exist in the target namespace."""

    def __init__(self, release_name: str, namespace: str):
        self.release_name = release_name
        self.namespace = namespace
        super().__init__(
            f"release {release_name} not found in namespace {namespace}"
        )


# Precondition violations


class AlreadyInstalledError(InstallerError):
    """Install was requested while a release already exists."""

    def __init__(self, current_version: str):
        self.current_version = current_version
        super().__init__(f"chart already installed with version {current_version}")


class NotInstalledError(InstallerError):
    """Upgrade was requested but no release exists."""

    def __init__(self, release_name: str, namespace: str):
        self.release_name = release_name
        self.namespace = namespace
        super().__init__(
            f"could not identify installed release for {release_name} "
            f"in namespace {namespace}",
            details="Install the release first, then upgrade it.",
        )


class SameVersionError(InstallerError):
    """Upgrade target equals the installed version."""

    def __init__(self, version: str):
        self.version = version
        super().__init__(f"upgrade version is same as existing ({version})")


class VersionUnavailableError(InstallerError):
    """The release exists but carries no chart version metadata."""

    def __init__(self) -> None:
        super().__init__("could not identify current version")


# Backend and storage failures


class BackendError(InstallerError):
    """A release backend operation failed."""

    def __init__(self, operation: str, reason: str, details: str | None = None):
        self.operation = operation
        self.reason = reason
        super().__init__(f"{operation}: {reason}", details=details)


class FetchError(InstallerError):
    """Pulling a chart into the cache failed."""

    def __init__(self, reason: str, message: str = "could not pull chart"):
        self.reason = reason
        super().__init__(f"{message}: {reason}")


class CorruptFetchError(InstallerError):
    """The temporary pull directory did not hold exactly one archive."""

    def __init__(self, cache_dir: Path, file_count: int):
        self.cache_dir = cache_dir
        self.file_count = file_count
        super().__init__(
            f"corrupt chart tmp directory, consider removing cache ({cache_dir})",
            details=f"Expected exactly one pulled archive, found {file_count}.",
        )


class MoveError(InstallerError):
    """The pulled archive could not be renamed into the cache."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"could not move latest pulled chart to cache: {reason}")


# Composite upgrade outcomes


class RolledBackError(InstallerError):
    """The upgrade failed and the release was rolled back."""

    def __init__(self, upgrade_error: Exception):
        self.upgrade_error = upgrade_error
        super().__init__(f"failed upgrade was rolled back: {upgrade_error}")


class RollbackFailedError(InstallerError):
    """The upgrade failed and the following rollback failed too."""

    def __init__(self, upgrade_error: Exception, rollback_error: Exception):
        self.upgrade_error = upgrade_error
        self.rollback_error = rollback_error
        super().__init__(
            "failed upgrade resulted in a failed rollback: "
            f"{upgrade_error}; rollback: {rollback_error}",
            details="The release may be left in a failed state. "
            "Inspect it with: helm history <release> -n <namespace>",
        )


# Input errors


class ParseError(InstallerError):
    """A parameter override could not be applied."""


class ParameterFileError(InstallerError):
    """A parameters file could not be read or is not a mapping."""

    def __init__(self, path: Path, reason: str):
        self.path = path
        super().__init__(f"unable to read parameters file {path}: {reason}")
