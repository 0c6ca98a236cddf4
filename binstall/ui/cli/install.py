"""
CLI commands for installing packages and re-running their smoke test.

Thin wrappers over ``binstall.core.services.artifact_install``.
"""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path

import click

from binstall.core.config.loader import ConfigError, get_package
from binstall.core.models.package import VersionedPackage

# Exit code per failure kind; 0 means the run reached its final state
EXIT_CODES: dict[str, int] = {
    "config_error": 2,
    "unsupported_platform": 3,
    "network_error": 4,
    "http_status_error": 4,
    "integrity_error": 5,
    "extraction_error": 6,
    "filesystem_error": 7,
    "smoke_test_failed": 8,
    "cancelled": 130,
}


def _load_package(name: str, manifest: Path | None) -> VersionedPackage:
    try:
        return get_package(name, manifest)
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red", err=True)
        sys.exit(EXIT_CODES["config_error"])


def _resolve_prefix(prefix: Path | None) -> Path | None:
    """--prefix, then BINSTALL_PREFIX, else None (installer default chain)."""
    if prefix is not None:
        return prefix
    env_prefix = os.environ.get("BINSTALL_PREFIX")
    return Path(env_prefix).expanduser() if env_prefix else None


def _resolve_timeout(timeout: float | None) -> float:
    from binstall.core.services.artifact_install.data.constants import DEFAULT_FETCH_TIMEOUT

    if timeout is not None:
        return timeout
    raw = os.environ.get("BINSTALL_TIMEOUT")
    if not raw:
        return DEFAULT_FETCH_TIMEOUT
    try:
        value = float(raw)
    except ValueError:
        value = 0.0
    if value <= 0:
        click.secho(f"❌ BINSTALL_TIMEOUT must be a positive number, got {raw!r}", fg="red", err=True)
        sys.exit(EXIT_CODES["config_error"])
    return value


_manifest_option = click.option(
    "--manifest", "-m",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Package manifest YAML (default: built-in table).",
)
_prefix_option = click.option(
    "--prefix", "-p",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Install directory (default: $BINSTALL_PREFIX, /usr/local/bin or ~/.local/bin).",
)


@click.command()
@click.argument("name")
@_manifest_option
@_prefix_option
@click.option("--os", "os_name", default=None, help="Target OS (default: this host).")
@click.option("--arch", default=None, help="Target architecture (default: this host).")
@click.option(
    "--timeout", type=click.FloatRange(min=0, min_open=True), default=None,
    help="Network timeout in seconds (default: $BINSTALL_TIMEOUT or 60).",
)
@click.option(
    "--deadline", type=click.FloatRange(min=0, min_open=True), default=None,
    help="Abort download and extraction after this many seconds.",
)
@click.option("--skip-test", is_flag=True, help="Do not run the post-install smoke test.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
def install(
    name: str,
    manifest: Path | None,
    prefix: Path | None,
    os_name: str | None,
    arch: str | None,
    timeout: float | None,
    deadline: float | None,
    skip_test: bool,
    as_json: bool,
) -> None:
    """Download, verify and install a package's binary."""
    from binstall.core.services.artifact_install import CancelToken, install_package

    package = _load_package(name, manifest)
    outcome = install_package(
        package,
        _resolve_prefix(prefix),
        os_name=os_name,
        arch=arch,
        timeout=_resolve_timeout(timeout),
        cancel=CancelToken(deadline) if deadline else None,
        run_test=not skip_test,
    )

    if as_json:
        click.echo(json.dumps(outcome.to_dict(), indent=2))
    elif outcome.ok:
        assert outcome.installation is not None
        click.secho(f"✅ {package} installed", fg="green", bold=True)
        click.echo(f"   📦 {outcome.descriptor.filename} ({outcome.platform})")
        for path in outcome.installation.installed_files:
            click.echo(f"   → {path}")
        if outcome.last_stage and outcome.last_stage.value == "tested":
            first_line = outcome.smoke_output.strip().splitlines()[:1]
            click.echo(f"   🧪 smoke test passed{': ' + first_line[0] if first_line else ''}")
    else:
        failure = outcome.failure
        assert failure is not None
        reached = outcome.last_stage.value if outcome.last_stage else "nothing"
        colour = "yellow" if failure.kind == "smoke_test_failed" else "red"
        click.secho(f"❌ {package}: {failure.stage} failed ({failure.kind})", fg=colour, bold=True)
        click.echo(f"   Last completed stage: {reached}")
        click.echo(f"   {failure.message}")
        if failure.retryable:
            click.echo("   This failure is transient; retrying may succeed.")
        if outcome.installation is not None:
            click.echo(f"   Installed files were left in place under {outcome.installation.target_dir}")
        if outcome.smoke_output:
            click.echo("   Output:")
            for line in outcome.smoke_output.strip().splitlines()[:20]:
                click.echo(f"     {line}")

    if outcome.failure is not None:
        sys.exit(EXIT_CODES.get(outcome.failure.kind, 1))


@click.command("test")
@click.argument("name")
@_manifest_option
@_prefix_option
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
def smoke_test(name: str, manifest: Path | None, prefix: Path | None, as_json: bool) -> None:
    """Re-run the smoke test against an installed package."""
    from binstall.core.services.artifact_install import (
        SmokeTestFailed,
        default_install_dir,
        run_smoke_test,
    )

    package = _load_package(name, manifest)
    target_dir = _resolve_prefix(prefix) or default_install_dir()
    binary = target_dir / package.primary_binary

    try:
        result = run_smoke_test(binary, package.smoke_test)
    except SmokeTestFailed as e:
        if as_json:
            click.echo(json.dumps({"ok": False, "path": str(binary), **e.to_dict()}, indent=2))
        else:
            click.secho(f"❌ {e}", fg="red")
            if e.output:
                click.echo(e.output.rstrip())
        sys.exit(EXIT_CODES[e.kind])

    if as_json:
        click.echo(json.dumps({"path": str(binary), **result.model_dump()}, indent=2))
        return
    click.secho(f"✅ {binary} {' '.join(package.smoke_test.args)}", fg="green")
    click.echo(result.output.rstrip())
