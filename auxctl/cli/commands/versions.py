"""
Native Click implementation of the versions command.

Usage:
    auxctl versions list SERVICE_ID [--mode docker|native] [--all-platforms]
    auxctl versions use SERVICE_ID TAG [--pull]
    auxctl versions install SERVICE_ID VERSION [--platform P]
"""

from __future__ import annotations

import click

from ...core.models.service import DockerImage, ExecutionMode, NativeDownload
from ...services.discovery import current_platform
from ...services.registry import resolver
from ..context import AuxctlContext
from ..decorators import handle_errors, with_document
from ._async import report, run


def _pick(candidates: list, choice: str, key) -> object | None:
    """Select by 1-based index from `versions list`, or by exact key."""
    if choice.isdigit() and 1 <= int(choice) <= len(candidates):
        return candidates[int(choice) - 1]
    return next((c for c in candidates if key(c) == choice), None)


@click.group("versions", invoke_without_command=True)
@click.pass_context
def versions(ctx: click.Context) -> None:
    """Discover and select service versions.

    Container versions are image tags from the document and from the
    package registry. Native versions are release archives from the
    document and from GitHub releases.

    \b
    Examples:

        auxctl versions list node

        auxctl versions use node v28.0 --pull

        auxctl versions install miner 2
    """
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@versions.command("list")
@click.argument("service_id")
@click.option("--mode", "mode", type=click.Choice(["docker", "native"]), help="Defaults to the service's mode.")
@click.option("--all-platforms", is_flag=True, help="Include native downloads for other platforms.")
@click.pass_obj
@with_document
@handle_errors
def versions_list(ctx: AuxctlContext, service_id: str, mode: str | None, all_platforms: bool) -> None:
    """List available versions."""
    service = ctx.registry.get_service(service_id)
    orchestrator = ctx.orchestrator
    selected = ExecutionMode(mode) if mode else service.mode

    if selected == ExecutionMode.DOCKER:
        images: list[DockerImage] = run(orchestrator.container_versions(service_id))
        if not images:
            click.echo("No container versions found.")
            return
        current = resolver.image_reference(service)
        rows = [
            [str(i), image.reference, image.description or "", "*" if image.reference == current else ""]
            for i, image in enumerate(images, 1)
        ]
        ctx.presenter.print_table(["#", "IMAGE", "DESCRIPTION", "CURRENT"], rows)
        return

    downloads: list[NativeDownload] = run(orchestrator.native_versions(service_id, all_platforms))
    if not downloads:
        click.echo(f"No native versions found for {current_platform()}.")
        return
    rows = [
        [str(i), d.version, d.platform, d.description or d.url]
        for i, d in enumerate(downloads, 1)
    ]
    ctx.presenter.print_table(["#", "VERSION", "PLATFORM", "FILE"], rows)


@versions.command("use")
@click.argument("service_id")
@click.argument("tag")
@click.option("--pull", is_flag=True, help="Pull the image now.")
@click.pass_obj
@with_document
@handle_errors
def versions_use(ctx: AuxctlContext, service_id: str, tag: str, pull: bool) -> None:
    """Use a container image version.

    TAG is a tag or the number shown by `versions list`.
    """
    orchestrator = ctx.orchestrator
    images = run(orchestrator.container_versions(service_id))
    image = _pick(images, tag, lambda c: c.tag)
    if image is None:
        raise click.BadParameter(f"No container version '{tag}' for {service_id}", param_hint="TAG")

    result = run(orchestrator.apply_container_version(service_id, image, pull=pull))
    report(ctx.presenter, result)
    if not result.success:
        raise SystemExit(1)
    click.echo("Restart the service to run the new version.")


@versions.command("install")
@click.argument("service_id")
@click.argument("version")
@click.option("--platform", "platform_id", help="Platform to install (defaults to this host).")
@click.pass_obj
@with_document
@handle_errors
def versions_install(ctx: AuxctlContext, service_id: str, version: str, platform_id: str | None) -> None:
    """Download and install a native release.

    VERSION is a release version or the number shown by `versions list`.
    """
    orchestrator = ctx.orchestrator
    downloads = run(orchestrator.native_versions(service_id, all_platforms=platform_id is not None))
    if platform_id is not None:
        downloads = [d for d in downloads if d.platform == platform_id]
    download = _pick(downloads, version, lambda c: c.version)
    if download is None:
        raise click.BadParameter(f"No native version '{version}' for {service_id}", param_hint="VERSION")

    click.echo(f"Downloading {download.description or download.url}...")
    result = run(orchestrator.install_native_version(service_id, download))
    report(ctx.presenter, result)
    if not result.success:
        raise SystemExit(1)
