"""Tests for the Helm release backend."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import MagicMock

import pytest
import yaml

from src.infra.helm import CommandResult
from src.installer.backend import HelmReleaseBackend, UninstallResponse
from src.installer.errors import BackendError, ReleaseNotFoundError

NAMESPACE = "upbound-system"
RELEASE = "universal-crossplane"


@pytest.fixture
def helm() -> MagicMock:
    return MagicMock()


@pytest.fixture
def backend(helm: MagicMock) -> HelmReleaseBackend:
    return HelmReleaseBackend(helm, NAMESPACE, RELEASE, wait=True, timeout="5m")


def _ok(stdout: str = "") -> CommandResult:
    return CommandResult(success=True, stdout=stdout, returncode=0)


def _failed(stderr: str) -> CommandResult:
    return CommandResult(success=False, stderr=stderr, returncode=1)


class TestGetRelease:
    """Tests for get_release."""

    def test_parses_metadata(self, backend: HelmReleaseBackend, helm: MagicMock) -> None:
        helm.get_metadata.return_value = _ok(
            json.dumps(
                {
                    "name": RELEASE,
                    "chart": RELEASE,
                    "version": "1.14.0",
                    "appVersion": "1.14.0-up.1",
                    "namespace": NAMESPACE,
                    "revision": 3,
                    "status": "deployed",
                }
            )
        )

        release = backend.get_release(RELEASE)

        assert release.version == "1.14.0"
        assert release.revision == 3
        assert release.status == "deployed"
        assert release.app_version == "1.14.0-up.1"
        helm.get_metadata.assert_called_once_with(RELEASE, NAMESPACE)

    def test_missing_version_is_none(
        self, backend: HelmReleaseBackend, helm: MagicMock
    ) -> None:
        helm.get_metadata.return_value = _ok(json.dumps({"name": RELEASE}))

        assert backend.get_release(RELEASE).version is None

    def test_not_found_is_distinguished(
        self, backend: HelmReleaseBackend, helm: MagicMock
    ) -> None:
        helm.get_metadata.return_value = _failed("Error: release: not found\n")

        with pytest.raises(ReleaseNotFoundError) as excinfo:
            backend.get_release(RELEASE)

        assert excinfo.value.namespace == NAMESPACE

    def test_other_failures_are_backend_errors(
        self, backend: HelmReleaseBackend, helm: MagicMock
    ) -> None:
        helm.get_metadata.return_value = _failed(
            "Error: Kubernetes cluster unreachable"
        )

        with pytest.raises(BackendError, match="get release: Error: Kubernetes") as excinfo:
            backend.get_release(RELEASE)

        assert not isinstance(excinfo.value, ReleaseNotFoundError)
        assert excinfo.value.operation == "get release"

    def test_invalid_json_is_backend_error(
        self, backend: HelmReleaseBackend, helm: MagicMock
    ) -> None:
        helm.get_metadata.return_value = _ok("not json")

        with pytest.raises(BackendError, match="unreadable metadata"):
            backend.get_release(RELEASE)


class TestInstallRelease:
    """Tests for install_release."""

    def test_writes_values_file_and_parses_release(
        self, backend: HelmReleaseBackend, helm: MagicMock
    ) -> None:
        captured: dict[str, object] = {}

        def fake_install(name, chart, namespace, *, value_files, **kwargs):  # type: ignore[no-untyped-def]
            captured["values"] = yaml.safe_load(value_files[0].read_text())
            captured["path"] = value_files[0]
            captured["kwargs"] = kwargs
            return _ok(
                json.dumps(
                    {
                        "name": RELEASE,
                        "namespace": NAMESPACE,
                        "version": 1,
                        "info": {"status": "deployed"},
                        "chart": {"metadata": {"version": "1.14.0"}},
                    }
                )
            )

        helm.install.side_effect = fake_install

        release = backend.install_release(Path("/cache/c-1.14.0.tgz"), {"a": {"b": "y"}})

        assert captured["values"] == {"a": {"b": "y"}}
        assert not Path(str(captured["path"])).exists()
        assert captured["kwargs"] == {
            "wait": True,
            "timeout": "5m",
            "disable_hooks": False,
        }
        assert release.version == "1.14.0"
        assert release.revision == 1
        assert release.status == "deployed"

    def test_failure_names_operation(
        self, backend: HelmReleaseBackend, helm: MagicMock
    ) -> None:
        helm.install.return_value = _failed("Error: INSTALLATION FAILED: boom")

        with pytest.raises(BackendError, match="^install release: "):
            backend.install_release(Path("/cache/c.tgz"), {})

    def test_non_json_output_still_returns_release(
        self, backend: HelmReleaseBackend, helm: MagicMock
    ) -> None:
        helm.install.return_value = _ok("NAME: universal-crossplane")

        release = backend.install_release(Path("/cache/c.tgz"), {})

        assert release.name == RELEASE
        assert release.version is None


class TestUpgradeRollbackUninstall:
    """Tests for upgrade_release, rollback_release and uninstall_release."""

    def test_upgrade_uses_release_name(
        self, backend: HelmReleaseBackend, helm: MagicMock
    ) -> None:
        helm.upgrade.return_value = _ok("{}")

        backend.upgrade_release("uxp", Path("/cache/c.tgz"), {})

        assert helm.upgrade.call_args[0][:3] == ("uxp", Path("/cache/c.tgz"), NAMESPACE)

    def test_upgrade_failure(self, backend: HelmReleaseBackend, helm: MagicMock) -> None:
        helm.upgrade.return_value = _failed("Error: UPGRADE FAILED: timed out")

        with pytest.raises(BackendError, match="upgrade release"):
            backend.upgrade_release(RELEASE, Path("/cache/c.tgz"), {})

    def test_rollback(self, backend: HelmReleaseBackend, helm: MagicMock) -> None:
        helm.rollback.return_value = _ok("Rollback was a success!")

        backend.rollback_release(RELEASE)

        helm.rollback.assert_called_once_with(RELEASE, NAMESPACE, wait=True, timeout="5m")

    def test_rollback_failure(self, backend: HelmReleaseBackend, helm: MagicMock) -> None:
        helm.rollback.return_value = _failed("")

        with pytest.raises(BackendError, match="rollback release: helm exited with code 1"):
            backend.rollback_release(RELEASE)

    def test_uninstall_returns_response(
        self, backend: HelmReleaseBackend, helm: MagicMock
    ) -> None:
        helm.uninstall.return_value = _ok('release "universal-crossplane" uninstalled\n')

        response = backend.uninstall_release(RELEASE)

        assert response == UninstallResponse(
            release_name=RELEASE, info='release "universal-crossplane" uninstalled'
        )

    def test_uninstall_failure(self, backend: HelmReleaseBackend, helm: MagicMock) -> None:
        helm.uninstall.return_value = _failed("Error: uninstall: Release not loaded")

        with pytest.raises(BackendError, match="uninstall release"):
            backend.uninstall_release(RELEASE)
