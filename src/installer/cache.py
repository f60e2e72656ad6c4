"""Local chart cache.

Maps (chart name, version) to a packaged chart archive on disk, pulling it
from the remote repository on a miss.

Layout:
    <cache_dir>/<chart_name>-<version>.tgz

Pinned versions are trusted by file presence alone. Unpinned ("latest")
pulls land in a temporary directory inside the cache root first and are
renamed into place only once the archive and its version are known, so a
partial pull never appears under a final name.
"""

from __future__ import annotations

import shutil
import tarfile
import tempfile
from abc import ABC, abstractmethod
from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING

import yaml
from loguru import logger

from .config import CONSTANTS
from .errors import CorruptFetchError, FetchError, MoveError

if TYPE_CHECKING:
    from src.infra.helm import HelmCommands

TempDirFactory = Callable[[Path], Path]


def make_temp_dir(parent: Path) -> Path:
    """Create a fresh temporary directory under ``parent``."""
    return Path(tempfile.mkdtemp(prefix=".pull-", dir=parent))


class ChartPuller(ABC):
    """Fetches a packaged chart archive into a directory."""

    @abstractmethod
    def pull(self, chart_name: str, version: str, destination: Path) -> None:
        """Pull a chart archive.

        Args:
            chart_name: Chart to pull
            version: Exact version, or empty for the latest available
            destination: Directory the archive is written to

        Raises:
            FetchError: If the pull fails
        """


class HelmChartPuller(ChartPuller):
    """ChartPuller backed by ``helm pull``."""

    def __init__(self, helm: HelmCommands, repo_url: str, unstable: bool = False):
        self.helm = helm
        self.repo_url = repo_url
        self.unstable = unstable

    def pull(self, chart_name: str, version: str, destination: Path) -> None:
        result = self.helm.pull(
            chart_name,
            destination,
            repo_url=self.repo_url,
            version=version,
            devel=self.unstable,
        )
        if not result.success:
            raise FetchError(result.error_output or f"exit code {result.returncode}")


def read_chart_version(archive: Path) -> str:
    """Read ``version`` from the Chart.yaml inside a packaged chart.

    Packaged charts hold a single top-level directory named after the chart,
    with Chart.yaml directly inside it.
    """
    with tarfile.open(archive, "r:gz") as tar:
        for member in tar.getmembers():
            parts = Path(member.name).parts
            if len(parts) == 2 and parts[1] == "Chart.yaml" and member.isfile():
                extracted = tar.extractfile(member)
                if extracted is None:
                    break
                metadata = yaml.safe_load(extracted.read())
                version = metadata.get("version") if isinstance(metadata, dict) else None
                if not version:
                    raise ValueError("Chart.yaml has no version")
                return str(version)
    raise ValueError(f"no Chart.yaml found in {archive.name}")


class ChartCache:
    """Resolves chart versions to cached archives."""

    def __init__(
        self,
        cache_dir: Path,
        puller: ChartPuller,
        temp_dir_factory: TempDirFactory = make_temp_dir,
    ) -> None:
        """Initialize the cache.

        The cache root is created on the first resolve, not here, so
        operations that never fetch a chart leave the filesystem alone.

        Args:
            cache_dir: Long-lived cache root
            puller: Fetches archives on a cache miss
            temp_dir_factory: Creates a scratch directory under a parent
        """
        self.cache_dir = cache_dir
        self.puller = puller
        self.temp_dir_factory = temp_dir_factory

    def entry_path(self, chart_name: str, version: str) -> Path:
        """Deterministic cache path for a chart version."""
        return self.cache_dir / f"{chart_name}-{version}.{CONSTANTS.CHART_ARCHIVE_EXT}"

    def resolve(self, chart_name: str, version: str) -> Path:
        """Return a local archive for the chart version, pulling on a miss.

        Args:
            chart_name: Chart to resolve
            version: Exact version, or empty for the latest available

        Returns:
            Path to the cached archive

        Raises:
            FetchError: If the cache root cannot be created, the pull fails,
                or the latest archive is unreadable
            CorruptFetchError: If a latest pull did not yield exactly one file
            MoveError: If the latest archive cannot be renamed into the cache
        """
        self._ensure_cache_dir()
        if version:
            return self._resolve_pinned(chart_name, version)
        return self._resolve_latest(chart_name)

    def _ensure_cache_dir(self) -> None:
        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise FetchError(
                str(e), message="could not create chart cache directory"
            ) from e

    def _resolve_pinned(self, chart_name: str, version: str) -> Path:
        entry = self.entry_path(chart_name, version)
        if entry.exists():
            logger.debug(f"Cache hit for {chart_name} {version}: {entry}")
            return entry

        logger.debug(f"Cache miss for {chart_name} {version}, pulling into {self.cache_dir}")
        self.puller.pull(chart_name, version, self.cache_dir)
        return entry

    def _resolve_latest(self, chart_name: str) -> Path:
        try:
            tmp = self.temp_dir_factory(self.cache_dir)
        except OSError as e:
            raise FetchError(
                str(e), message="could not create temporary pull directory"
            ) from e

        try:
            logger.debug(f"Pulling latest {chart_name} into {tmp}")
            self.puller.pull(chart_name, "", tmp)

            try:
                files = list(tmp.iterdir())
            except OSError as e:
                raise FetchError(
                    str(e), message="could not identify chart pulled as latest"
                ) from e
            if len(files) != 1:
                raise CorruptFetchError(self.cache_dir, len(files))
            pulled = files[0]

            try:
                version = read_chart_version(pulled)
            except (OSError, tarfile.TarError, yaml.YAMLError, ValueError) as e:
                raise FetchError(
                    str(e), message="could not identify chart pulled as latest"
                ) from e

            entry = self.entry_path(chart_name, version)
            try:
                pulled.replace(entry)
            except OSError as e:
                raise MoveError(str(e)) from e

            logger.debug(f"Cached latest {chart_name} as {version}: {entry}")
            return entry
        finally:
            self._remove_temp_dir(tmp)

    @staticmethod
    def _remove_temp_dir(tmp: Path) -> None:
        try:
            shutil.rmtree(tmp)
        except OSError as e:
            logger.warning(f"Failed to clean up temporary directory {tmp}: {e}")
