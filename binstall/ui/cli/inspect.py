"""
CLI commands for looking at packages without installing them.

list, resolve, verify, platform.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from binstall.core.models.package import PlatformKey
from binstall.ui.cli.install import EXIT_CODES, _load_package


@click.command("list")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
def list_packages(as_json: bool) -> None:
    """List built-in packages and the platforms they ship for."""
    from binstall.core.services.artifact_install import PACKAGES, supported_platforms

    rows = [
        {
            "name": pkg.name,
            "version": pkg.version,
            "description": pkg.description,
            "platforms": supported_platforms(pkg.matrix),
        }
        for pkg in sorted(PACKAGES.values(), key=lambda p: p.name)
    ]

    if as_json:
        click.echo(json.dumps(rows, indent=2))
        return

    for row in rows:
        click.secho(f"📦 {row['name']} {row['version']}", fg="cyan", bold=True)
        if row["description"]:
            click.echo(f"   {row['description']}")
        click.echo(f"   Platforms: {', '.join(row['platforms'])}")


@click.command()
@click.argument("name")
@click.option(
    "--manifest", "-m",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Package manifest YAML (default: built-in table).",
)
@click.option("--os", "os_name", default=None, help="Target OS (default: this host).")
@click.option("--arch", default=None, help="Target architecture (default: this host).")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
def resolve(
    name: str,
    manifest: Path | None,
    os_name: str | None,
    arch: str | None,
    as_json: bool,
) -> None:
    """Show which artifact would be installed for a platform."""
    from binstall.core.services.artifact_install import (
        UnsupportedPlatform,
        detect_platform,
    )
    from binstall.core.services.artifact_install import resolve as resolve_artifact

    package = _load_package(name, manifest)
    if not (os_name and arch):
        host = detect_platform()
        os_name = os_name or host.os
        arch = arch or host.arch

    try:
        descriptor = resolve_artifact(os_name, arch, package.matrix)
    except UnsupportedPlatform as e:
        if as_json:
            click.echo(json.dumps({"ok": False, **e.to_dict(), "supported": e.supported}, indent=2))
        else:
            click.secho(f"❌ {e}", fg="red")
        sys.exit(EXIT_CODES[e.kind])

    if as_json:
        click.echo(json.dumps({"ok": True, **descriptor.model_dump(mode="json")}, indent=2))
        return

    click.secho(f"📦 {package} for {os_name}/{arch}", fg="cyan", bold=True)
    if descriptor.platform != PlatformKey(os=os_name, arch=arch):
        click.secho(f"   ⚠️  via fallback → {descriptor.platform}", fg="yellow")
    click.echo(f"   URL:    {descriptor.url}")
    click.echo(f"   Digest: {descriptor.digest}")
    click.echo(f"   Format: {descriptor.archive_format}")


@click.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("digest")
def verify(file: Path, digest: str) -> None:
    """Check FILE against DIGEST (``sha256:<hex>`` or bare hex)."""
    from binstall.core.services.artifact_install import IntegrityError
    from binstall.core.services.artifact_install import verify as verify_digest

    try:
        actual = verify_digest(file, digest)
    except IntegrityError as e:
        click.secho(f"❌ {file}: {e}", fg="red")
        sys.exit(EXIT_CODES[e.kind])
    click.secho(f"✅ {file}: {actual}", fg="green")


@click.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
def platform(as_json: bool) -> None:
    """Show the platform key detected for this host."""
    from binstall.core.services.artifact_install import detect_platform

    key = detect_platform()
    if as_json:
        click.echo(json.dumps(key.model_dump(), indent=2))
        return
    click.echo(str(key))
