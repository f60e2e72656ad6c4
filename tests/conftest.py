"""Shared test fixtures."""

import io
import tarfile
from collections.abc import Callable
from pathlib import Path

import pytest
import yaml


def write_chart_archive(path: Path, chart_name: str, version: str) -> Path:
    """Write a minimal packaged chart (<name>/Chart.yaml) to ``path``."""
    chart_yaml = yaml.safe_dump(
        {"apiVersion": "v2", "name": chart_name, "version": version}
    ).encode()
    with tarfile.open(path, "w:gz") as tar:
        info = tarfile.TarInfo(f"{chart_name}/Chart.yaml")
        info.size = len(chart_yaml)
        tar.addfile(info, io.BytesIO(chart_yaml))
    return path


@pytest.fixture
def chart_archive_factory() -> Callable[[Path, str, str], Path]:
    """Factory writing minimal chart archives."""
    return write_chart_archive
