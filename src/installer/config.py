"""Installer configuration and parameter file loading."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from loguru import logger
from pydantic import BaseModel, ConfigDict, Field

from .errors import ParameterFileError


@dataclass(frozen=True)
class InstallerConstants:
    """Defaults for the release installer.

    All attributes are class-level and immutable.
    """

    DEFAULT_CHART_NAME: str = "universal-crossplane"
    DEFAULT_NAMESPACE: str = "upbound-system"
    DEFAULT_REPO_URL: str = "https://charts.upbound.io/stable"
    DEFAULT_UNSTABLE_REPO_URL: str = "https://charts.upbound.io/main"

    # Relative to the user's home directory
    DEFAULT_CACHE_DIR: str = ".cache/uxpctl/charts"
    CHART_ARCHIVE_EXT: str = "tgz"

    HELM_TIMEOUT: str = "10m"


CONSTANTS = InstallerConstants()


class InstallerConfig(BaseModel):
    """Configuration passed once to the installer factory.

    Immutable after construction; build a new instance to change a value.
    """

    model_config = ConfigDict(frozen=True)

    chart_name: str = Field(
        default=CONSTANTS.DEFAULT_CHART_NAME, description="Chart to install"
    )
    release_name: str | None = Field(
        default=None, description="Release name (defaults to the chart name)"
    )
    namespace: str = Field(
        default=CONSTANTS.DEFAULT_NAMESPACE, description="Target namespace"
    )
    repo_url: str = Field(
        default=CONSTANTS.DEFAULT_REPO_URL,
        description="Chart repository or oci:// registry",
    )
    unstable: bool = Field(
        default=False, description="Allow development (pre-release) versions"
    )
    rollback_on_error: bool = Field(
        default=False, description="Roll back to the previous revision on failed upgrade"
    )
    cache_dir: Path | None = Field(
        default=None, description="Chart cache directory"
    )
    chart_file: Path | None = Field(
        default=None, description="Local chart archive used instead of the cache"
    )
    wait: bool = Field(default=False, description="Wait for resources to be ready")
    timeout: str = Field(
        default=CONSTANTS.HELM_TIMEOUT, description="Timeout for Helm operations"
    )
    disable_hooks: bool = Field(default=False, description="Skip chart hooks")

    @property
    def effective_release_name(self) -> str:
        return self.release_name or self.chart_name

    @property
    def effective_repo_url(self) -> str:
        """Repository to pull from.

        The unstable channel lives in a separate repository, used only when
        the stable default has not been overridden.
        """
        if self.unstable and self.repo_url == CONSTANTS.DEFAULT_REPO_URL:
            return CONSTANTS.DEFAULT_UNSTABLE_REPO_URL
        return self.repo_url

    @property
    def effective_cache_dir(self) -> Path:
        if self.cache_dir is not None:
            return self.cache_dir.expanduser()
        return Path.home() / CONSTANTS.DEFAULT_CACHE_DIR


def load_parameters_file(file_path: Path | None) -> dict[str, Any]:
    """Load a YAML parameters document.

    Args:
        file_path: Path to the YAML file (None yields an empty document)

    Returns:
        The parsed mapping (empty for an empty file)

    Raises:
        ParameterFileError: If the file cannot be read, is not valid YAML,
            or does not contain a mapping at the top level
    """
    if file_path is None:
        return {}

    try:
        content = file_path.read_text()
    except OSError as e:
        raise ParameterFileError(file_path, str(e)) from e

    try:
        loaded = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ParameterFileError(file_path, f"invalid YAML: {e}") from e

    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ParameterFileError(
            file_path, f"expected a mapping, got {type(loaded).__name__}"
        )

    logger.debug(f"Loaded {len(loaded)} top-level parameters from {file_path}")
    return loaded
