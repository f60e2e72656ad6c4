"""Tests for Helm command construction."""

import subprocess
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from src.infra.helm import ClusterConnection, CommandResult, CommandRunner, HelmCommands


@pytest.fixture
def mock_runner() -> MagicMock:
    """Create a mock command runner."""
    runner = MagicMock()
    runner.run.return_value = CommandResult(success=True, stdout="", returncode=0)
    return runner


@pytest.fixture
def helm_commands(mock_runner: MagicMock) -> HelmCommands:
    """Create HelmCommands instance with mock runner."""
    return HelmCommands(mock_runner)


def _cmd(mock_runner: MagicMock) -> list[str]:
    return mock_runner.run.call_args[0][0]


class TestHelmPull:
    """Tests for Helm pull command."""

    def test_pull_from_http_repository(
        self, helm_commands: HelmCommands, mock_runner: MagicMock
    ) -> None:
        helm_commands.pull(
            "universal-crossplane",
            Path("/cache"),
            repo_url="https://charts.upbound.io/stable",
            version="1.14.0",
        )

        assert _cmd(mock_runner) == [
            "helm",
            "pull",
            "universal-crossplane",
            "--repo",
            "https://charts.upbound.io/stable",
            "--destination",
            "/cache",
            "--version",
            "1.14.0",
        ]

    def test_pull_latest_devel(
        self, helm_commands: HelmCommands, mock_runner: MagicMock
    ) -> None:
        """Latest pulls omit --version; unstable adds --devel."""
        helm_commands.pull(
            "universal-crossplane",
            Path("/tmp/pull"),
            repo_url="https://charts.upbound.io/main",
            devel=True,
        )

        cmd = _cmd(mock_runner)
        assert "--version" not in cmd
        assert cmd[-1] == "--devel"

    def test_pull_from_oci_registry(
        self, helm_commands: HelmCommands, mock_runner: MagicMock
    ) -> None:
        helm_commands.pull(
            "universal-crossplane",
            Path("/cache"),
            repo_url="oci://xpkg.upbound.io/charts/",
            version="1.14.0",
        )

        cmd = _cmd(mock_runner)
        assert cmd[:3] == ["helm", "pull", "oci://xpkg.upbound.io/charts/universal-crossplane"]
        assert "--repo" not in cmd

    def test_pull_ignores_cluster_flags(self, mock_runner: MagicMock) -> None:
        helm = HelmCommands(mock_runner, ClusterConnection(kube_context="kind"))

        helm.pull("c", Path("/cache"), repo_url="https://example.com")

        assert "--kube-context" not in _cmd(mock_runner)


class TestHelmReleaseCommands:
    """Tests for install, upgrade, rollback, uninstall and metadata."""

    def test_install_command_format(
        self, helm_commands: HelmCommands, mock_runner: MagicMock
    ) -> None:
        helm_commands.install(
            "uxp",
            Path("/cache/c.tgz"),
            "upbound-system",
            value_files=[Path("/tmp/values.yaml")],
        )

        assert _cmd(mock_runner) == [
            "helm",
            "install",
            "uxp",
            "/cache/c.tgz",
            "--namespace",
            "upbound-system",
            "--create-namespace",
            "--timeout",
            "10m",
            "-f",
            "/tmp/values.yaml",
            "-o",
            "json",
        ]

    def test_install_with_wait_and_no_hooks(
        self, helm_commands: HelmCommands, mock_runner: MagicMock
    ) -> None:
        helm_commands.install(
            "uxp",
            Path("/cache/c.tgz"),
            "ns",
            wait=True,
            disable_hooks=True,
            create_namespace=False,
        )

        cmd = _cmd(mock_runner)
        assert "--wait" in cmd
        assert "--no-hooks" in cmd
        assert "--create-namespace" not in cmd

    def test_upgrade_does_not_install(
        self, helm_commands: HelmCommands, mock_runner: MagicMock
    ) -> None:
        """Upgrade must fail on a missing release, so --install is never passed."""
        helm_commands.upgrade("uxp", Path("/cache/c.tgz"), "ns", timeout="5m")

        cmd = _cmd(mock_runner)
        assert cmd[:4] == ["helm", "upgrade", "uxp", "/cache/c.tgz"]
        assert "--install" not in cmd
        assert "5m" in cmd

    def test_rollback_to_previous_revision(
        self, helm_commands: HelmCommands, mock_runner: MagicMock
    ) -> None:
        """Rollback without revision should rollback to previous."""
        mock_runner.run.return_value = CommandResult(
            success=True, stdout="Rollback was a success!", stderr="", returncode=0
        )

        result = helm_commands.rollback("my-release", "my-namespace")

        assert result.success
        assert _cmd(mock_runner) == [
            "helm",
            "rollback",
            "my-release",
            "--namespace",
            "my-namespace",
            "--timeout",
            "10m",
        ]

    def test_rollback_to_specific_revision(
        self, helm_commands: HelmCommands, mock_runner: MagicMock
    ) -> None:
        helm_commands.rollback("my-release", "my-namespace", revision=3, wait=True)

        cmd = _cmd(mock_runner)
        assert "3" in cmd
        assert "--wait" in cmd

    def test_uninstall(self, helm_commands: HelmCommands, mock_runner: MagicMock) -> None:
        helm_commands.uninstall("uxp", "ns", disable_hooks=True)

        assert _cmd(mock_runner) == [
            "helm",
            "uninstall",
            "uxp",
            "--namespace",
            "ns",
            "--no-hooks",
            "--timeout",
            "10m",
        ]

    def test_get_metadata_with_cluster_flags(self, mock_runner: MagicMock) -> None:
        helm = HelmCommands(
            mock_runner,
            ClusterConnection(kubeconfig=Path("/home/me/.kube/config"), kube_context="kind"),
        )

        helm.get_metadata("uxp", "ns")

        assert _cmd(mock_runner) == [
            "helm",
            "get",
            "metadata",
            "uxp",
            "--namespace",
            "ns",
            "-o",
            "json",
            "--kubeconfig",
            "/home/me/.kube/config",
            "--kube-context",
            "kind",
        ]


class TestCommandRunner:
    """Tests for CommandRunner."""

    @patch("subprocess.run")
    def test_run_returns_structured_result(self, mock_run: MagicMock) -> None:
        mock_run.return_value = subprocess.CompletedProcess(
            args=["helm", "version"], returncode=1, stdout="", stderr="boom"
        )

        result = CommandRunner().run(["helm", "version"])

        assert result == CommandResult(success=False, stdout="", stderr="boom", returncode=1)
        assert result.error_output == "boom"

    @patch("subprocess.run", side_effect=FileNotFoundError("helm"))
    def test_missing_binary_is_a_failed_result(self, mock_run: MagicMock) -> None:
        result = CommandRunner().run(["helm", "version"])

        assert not result.success
        assert result.returncode == 127
        assert "command not found" in result.stderr
