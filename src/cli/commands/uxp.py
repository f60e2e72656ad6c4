"""UXP release commands.

This module provides commands for installing, upgrading, uninstalling and
inspecting the Universal Crossplane (UXP) Helm release in a cluster.
"""

from pathlib import Path
from typing import Annotated

import typer

from src.cli.context import CLIContext, get_cli_context
from src.cli.shared.console import with_error_handling
from src.infra.helm import ClusterConnection
from src.installer import (
    CONSTANTS,
    InstallerConfig,
    InstallManager,
    ParameterParser,
    ParseError,
    load_parameters_file,
    new_installer,
)

# ---------------------------------------------------------------------------
# Shared Options
# ---------------------------------------------------------------------------

VersionArgument = Annotated[
    str,
    typer.Argument(help="Chart version (defaults to the latest available)"),
]
NamespaceOption = Annotated[
    str,
    typer.Option(
        "--namespace",
        "-n",
        envvar="UXP_NAMESPACE",
        help="Kubernetes namespace of the release",
    ),
]
RepoOption = Annotated[
    str,
    typer.Option(
        "--repo",
        envvar="UXP_REPO_URL",
        help="Chart repository URL (https:// or oci://)",
    ),
]
ChartOption = Annotated[
    str,
    typer.Option("--chart", help="Chart name, also used as the release name"),
]
CacheDirOption = Annotated[
    Path | None,
    typer.Option(
        "--cache-dir",
        envvar="UXP_CACHE_DIR",
        help="Chart cache directory (default: ~/.cache/uxpctl/charts)",
    ),
]
KubeconfigOption = Annotated[
    Path | None,
    typer.Option(
        "--kubeconfig",
        help="Path to a kubeconfig file (default: Helm's own KUBECONFIG lookup)",
    ),
]
KubeContextOption = Annotated[
    str | None,
    typer.Option("--kube-context", help="Kubeconfig context to use"),
]
UnstableOption = Annotated[
    bool,
    typer.Option("--unstable", help="Allow installing unstable versions"),
]
FileOption = Annotated[
    Path | None,
    typer.Option(
        "--file",
        "-f",
        exists=True,
        dir_okay=False,
        help="YAML file with parameters",
    ),
]
SetOption = Annotated[
    list[str] | None,
    typer.Option(
        "--set",
        help="Set a parameter (e.g., --set args.debug=true); may be repeated",
    ),
]
BundleOption = Annotated[
    Path | None,
    typer.Option(
        "--bundle",
        exists=True,
        dir_okay=False,
        help="Local chart archive to use instead of pulling from the repository",
    ),
]
WaitOption = Annotated[
    bool,
    typer.Option("--wait/--no-wait", help="Wait for resources to be ready"),
]
TimeoutOption = Annotated[
    str,
    typer.Option("--timeout", help="Timeout for Helm operations"),
]


# ---------------------------------------------------------------------------
# Installer Factory
# ---------------------------------------------------------------------------


def _get_installer(
    cli_ctx: CLIContext,
    config: InstallerConfig,
    kubeconfig: Path | None,
    kube_context: str | None,
) -> InstallManager:
    """Build an installer bound to the selected cluster."""
    connection = ClusterConnection(kubeconfig=kubeconfig, kube_context=kube_context)
    return new_installer(config, connection, runner=cli_ctx.runner)


def _parse_parameters(
    file: Path | None, set_values: list[str] | None
) -> dict[str, object]:
    base = load_parameters_file(file)
    try:
        return ParameterParser.from_set_values(base, set_values or []).parse()
    except ParseError as e:
        raise ParseError("unable to parse install parameters", e.message) from e


def _warn_ignored_version(
    cli_ctx: CLIContext, version: str, bundle: Path | None
) -> None:
    if bundle is not None and version:
        cli_ctx.console.warn(
            f"Ignoring version {version}: installing from bundle {bundle}"
        )


# ---------------------------------------------------------------------------
# Typer App
# ---------------------------------------------------------------------------

uxp_app = typer.Typer(
    name="uxp",
    help="Install and manage Universal Crossplane (UXP).",
    no_args_is_help=True,
)


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@uxp_app.command()
@with_error_handling
def install(
    version: VersionArgument = "",
    unstable: UnstableOption = False,
    file: FileOption = None,
    set_values: SetOption = None,
    bundle: BundleOption = None,
    namespace: NamespaceOption = CONSTANTS.DEFAULT_NAMESPACE,
    repo: RepoOption = CONSTANTS.DEFAULT_REPO_URL,
    chart: ChartOption = CONSTANTS.DEFAULT_CHART_NAME,
    cache_dir: CacheDirOption = None,
    kubeconfig: KubeconfigOption = None,
    kube_context: KubeContextOption = None,
    wait: WaitOption = False,
    timeout: TimeoutOption = CONSTANTS.HELM_TIMEOUT,
) -> None:
    """Install UXP into the cluster.

    Fails if a release already exists; use `upgrade` to change versions.

    Examples:
        up uxp install
        up uxp install 1.14.0 --set replicas=2
        up uxp install --unstable -f values.yaml
    """
    cli_ctx = get_cli_context()
    cli_ctx.console.print_header(f"Installing {chart}")
    _warn_ignored_version(cli_ctx, version, bundle)

    params = _parse_parameters(file, set_values)
    config = InstallerConfig(
        chart_name=chart,
        namespace=namespace,
        repo_url=repo,
        unstable=unstable,
        cache_dir=cache_dir,
        chart_file=bundle,
        wait=wait,
        timeout=timeout,
    )
    installer = _get_installer(cli_ctx, config, kubeconfig, kube_context)

    with cli_ctx.console.status(f"[cyan]Installing {chart}...[/cyan]"):
        installer.install(version, params)

    current = installer.get_current_version()
    cli_ctx.console.ok(f"UXP {current} installed in namespace {namespace}")


@uxp_app.command()
@with_error_handling
def upgrade(
    version: VersionArgument = "",
    rollback: Annotated[
        bool,
        typer.Option(
            "--rollback",
            help="Rollback to previously installed version on failed upgrade",
        ),
    ] = False,
    unstable: UnstableOption = False,
    file: FileOption = None,
    set_values: SetOption = None,
    bundle: BundleOption = None,
    namespace: NamespaceOption = CONSTANTS.DEFAULT_NAMESPACE,
    repo: RepoOption = CONSTANTS.DEFAULT_REPO_URL,
    chart: ChartOption = CONSTANTS.DEFAULT_CHART_NAME,
    cache_dir: CacheDirOption = None,
    kubeconfig: KubeconfigOption = None,
    kube_context: KubeContextOption = None,
    wait: WaitOption = False,
    timeout: TimeoutOption = CONSTANTS.HELM_TIMEOUT,
) -> None:
    """Upgrade the installed UXP release.

    Examples:
        up uxp upgrade 1.15.0
        up uxp upgrade --rollback --wait
    """
    cli_ctx = get_cli_context()
    cli_ctx.console.print_header(f"Upgrading {chart}")
    _warn_ignored_version(cli_ctx, version, bundle)

    params = _parse_parameters(file, set_values)
    config = InstallerConfig(
        chart_name=chart,
        namespace=namespace,
        repo_url=repo,
        unstable=unstable,
        rollback_on_error=rollback,
        cache_dir=cache_dir,
        chart_file=bundle,
        wait=wait,
        timeout=timeout,
    )
    installer = _get_installer(cli_ctx, config, kubeconfig, kube_context)

    with cli_ctx.console.status(f"[cyan]Upgrading {chart}...[/cyan]"):
        installer.upgrade(version, params)

    current = installer.get_current_version()
    cli_ctx.console.ok(f"UXP upgraded to {current}")


@uxp_app.command()
@with_error_handling
def uninstall(
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Skip confirmation prompt"),
    ] = False,
    no_hooks: Annotated[
        bool,
        typer.Option("--no-hooks", help="Skip chart uninstall hooks"),
    ] = False,
    namespace: NamespaceOption = CONSTANTS.DEFAULT_NAMESPACE,
    chart: ChartOption = CONSTANTS.DEFAULT_CHART_NAME,
    kubeconfig: KubeconfigOption = None,
    kube_context: KubeContextOption = None,
    wait: WaitOption = False,
    timeout: TimeoutOption = CONSTANTS.HELM_TIMEOUT,
) -> None:
    """Uninstall UXP from the cluster.

    Examples:
        up uxp uninstall
        up uxp uninstall -y --wait
    """
    cli_ctx = get_cli_context()
    if not cli_ctx.console.confirm_action(
        f"Uninstall {chart}",
        f"The release will be removed from namespace '{namespace}'.",
        force=yes,
    ):
        cli_ctx.console.print("[dim]Uninstall cancelled.[/dim]")
        raise typer.Exit(0)

    config = InstallerConfig(
        chart_name=chart,
        namespace=namespace,
        wait=wait,
        timeout=timeout,
        disable_hooks=no_hooks,
    )
    installer = _get_installer(cli_ctx, config, kubeconfig, kube_context)

    with cli_ctx.console.status(f"[cyan]Uninstalling {chart}...[/cyan]"):
        installer.uninstall()

    cli_ctx.console.ok(f"UXP uninstalled from namespace {namespace}")


@uxp_app.command()
@with_error_handling
def version(
    namespace: NamespaceOption = CONSTANTS.DEFAULT_NAMESPACE,
    chart: ChartOption = CONSTANTS.DEFAULT_CHART_NAME,
    kubeconfig: KubeconfigOption = None,
    kube_context: KubeContextOption = None,
) -> None:
    """Print the installed UXP version."""
    cli_ctx = get_cli_context()
    config = InstallerConfig(chart_name=chart, namespace=namespace)
    installer = _get_installer(cli_ctx, config, kubeconfig, kube_context)
    cli_ctx.console.print(installer.get_current_version())
