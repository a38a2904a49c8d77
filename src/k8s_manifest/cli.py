"""Command line entry point for manifest reconciliation."""
from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import NoReturn, Optional

import typer
import yaml as pyyaml
from kubernetes.client import ApiException
from rich import print as rich_print
from rich.logging import RichHandler
from rich.markup import escape

from .config import ManifestConfig
from .document import decode_manifest
from .errors import KubeManifestError, ManifestParseError
from .identity import ResourceIdentity
from .kube import ClusterClient, KubernetesClusterClient
from .namespace import NamespacePolicy, apply_namespace
from .reconciler import Reconciler

app = typer.Typer(help="Apply single Kubernetes manifests and wait for them to settle.")

# Config files fail with pydantic ValidationError (a ValueError) or PyYAML errors.
_HANDLED_ERRORS = (KubeManifestError, ApiException, ValueError, OSError, pyyaml.YAMLError)


def _configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(rich_tracebacks=True, log_time_format="%X")],
    )


def _load_config(
    config_path: Optional[Path],
    kube_context: Optional[str],
    kubeconfig: Optional[Path],
) -> ManifestConfig:
    manifest_config = ManifestConfig.from_file(config_path) if config_path else ManifestConfig()
    if kube_context:
        manifest_config.context.context = kube_context
    if kubeconfig:
        manifest_config.context.kubeconfig = str(kubeconfig)
    return manifest_config


def _create_client(manifest_config: ManifestConfig) -> ClusterClient:
    return KubernetesClusterClient(manifest_config.context)


def _read_manifest(path: Path) -> str:
    try:
        if str(path) == "-":
            return sys.stdin.read()
        return path.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        raise ManifestParseError(f"Manifest is not valid UTF-8 ({path}): {exc}") from exc


def _fail(exc: Exception) -> NoReturn:
    if isinstance(exc, ApiException):
        message = f"Kubernetes API error ({exc.status}): {exc.reason}"
    else:
        message = str(exc)
    rich_print(f"[red]{escape(message)}[/red]")
    raise typer.Exit(code=1)


ConfigOption = typer.Option(None, "--config", help="Path to a configuration file.")
ContextOption = typer.Option(None, "--context", help="Override kubeconfig context.")
KubeconfigOption = typer.Option(None, help="Path to kubeconfig file.")
TimeoutOption = typer.Option(None, help="Seconds to wait for the resource to settle.")
VerboseOption = typer.Option(False, "--verbose", help="Enable debug logging.")


@app.command("apply")
def apply_manifest(
    manifest: Path = typer.Argument(..., help="Manifest file to create, or '-' for stdin."),
    namespace: str = typer.Option("", help="Namespace to use when the manifest sets none."),
    timeout: Optional[float] = TimeoutOption,
    wait: Optional[bool] = typer.Option(None, "--wait/--no-wait", help="Wait until the resource is ready."),
    annotate: Optional[bool] = typer.Option(
        None,
        "--annotate/--no-annotate",
        help="Record the manifest in the last-applied annotation.",
    ),
    strict_namespace: bool = typer.Option(False, help="Fail instead of using the default namespace."),
    config_path: Optional[Path] = ConfigOption,
    kube_context: Optional[str] = ContextOption,
    kubeconfig: Optional[Path] = KubeconfigOption,
    verbose: bool = VerboseOption,
) -> None:
    """Create the resource described by a manifest and print its ID."""

    _configure_logging(verbose)
    try:
        manifest_config = _load_config(config_path, kube_context, kubeconfig)
        settings = manifest_config.settings
        if wait is not None:
            settings.wait_for_ready = wait
        if annotate is not None:
            settings.annotate_last_applied = annotate
        if strict_namespace:
            settings.namespace_policy = NamespacePolicy.STRICT
        reconciler = Reconciler(_create_client(manifest_config), settings)
        result = reconciler.create(_read_manifest(manifest), namespace=namespace, timeout=timeout)
    except _HANDLED_ERRORS as exc:
        _fail(exc)
    rich_print(f"[green]Created {result.object.describe()}.[/green]")
    typer.echo(result.identifier)


@app.command("get")
def get_resource(
    identifier: str = typer.Argument(..., help="ID printed by 'apply'."),
    output: str = typer.Option("yaml", "--output", "-o", help="Output format: yaml or json."),
    config_path: Optional[Path] = ConfigOption,
    kube_context: Optional[str] = ContextOption,
    kubeconfig: Optional[Path] = KubeconfigOption,
    verbose: bool = VerboseOption,
) -> None:
    """Print the live state of a resource."""

    _configure_logging(verbose)
    if output not in ("yaml", "json"):
        raise typer.BadParameter("Output format must be 'yaml' or 'json'.", param_hint="--output")
    try:
        manifest_config = _load_config(config_path, kube_context, kubeconfig)
        obj = Reconciler(_create_client(manifest_config), manifest_config.settings).read(identifier)
    except _HANDLED_ERRORS as exc:
        _fail(exc)
    if output == "json":
        typer.echo(json.dumps(obj.document, indent=2, default=str))
    else:
        typer.echo(pyyaml.safe_dump(obj.document, sort_keys=False), nl=False)


@app.command("update")
def update_resource(
    identifier: str = typer.Argument(..., help="ID printed by 'apply'."),
    manifest: Path = typer.Argument(..., help="Manifest file with the new content, or '-' for stdin."),
    timeout: Optional[float] = TimeoutOption,
    wait: Optional[bool] = typer.Option(None, "--wait/--no-wait", help="Wait until the resource is ready."),
    config_path: Optional[Path] = ConfigOption,
    kube_context: Optional[str] = ContextOption,
    kubeconfig: Optional[Path] = KubeconfigOption,
    verbose: bool = VerboseOption,
) -> None:
    """Replace a resource with new manifest content."""

    _configure_logging(verbose)
    try:
        manifest_config = _load_config(config_path, kube_context, kubeconfig)
        if wait is not None:
            manifest_config.settings.wait_for_ready = wait
        reconciler = Reconciler(_create_client(manifest_config), manifest_config.settings)
        result = reconciler.update(identifier, _read_manifest(manifest), timeout=timeout)
    except _HANDLED_ERRORS as exc:
        _fail(exc)
    rich_print(f"[green]Updated {result.object.describe()}.[/green]")
    typer.echo(result.identifier)


@app.command("delete")
def delete_resource(
    identifier: str = typer.Argument(..., help="ID printed by 'apply'."),
    timeout: Optional[float] = TimeoutOption,
    config_path: Optional[Path] = ConfigOption,
    kube_context: Optional[str] = ContextOption,
    kubeconfig: Optional[Path] = KubeconfigOption,
    verbose: bool = VerboseOption,
) -> None:
    """Delete a resource and wait until it is gone."""

    _configure_logging(verbose)
    try:
        manifest_config = _load_config(config_path, kube_context, kubeconfig)
        Reconciler(_create_client(manifest_config), manifest_config.settings).delete(identifier, timeout=timeout)
    except _HANDLED_ERRORS as exc:
        _fail(exc)
    rich_print(f"[green]Deleted {identifier}.[/green]")


@app.command("id")
def show_identifier(
    manifest: Path = typer.Argument(..., help="Manifest file, or '-' for stdin."),
    namespace: str = typer.Option("", help="Namespace to use when the manifest sets none."),
    strict_namespace: bool = typer.Option(False, help="Fail instead of using the default namespace."),
) -> None:
    """Print the ID a manifest would get, without contacting the cluster."""

    policy = NamespacePolicy.STRICT if strict_namespace else NamespacePolicy.PERMISSIVE
    try:
        obj = decode_manifest(_read_manifest(manifest))
        if obj is None:
            rich_print("[yellow]Manifest does not contain any object.[/yellow]")
            raise typer.Exit(code=1)
        apply_namespace(obj, namespace, policy)
        typer.echo(ResourceIdentity.from_object(obj).encode())
    except _HANDLED_ERRORS as exc:
        _fail(exc)


def main() -> None:  # pragma: no cover - console script
    app()
