"""
binstall — CLI entrypoint.

Usage:
    python -m binstall.main --help
    python -m binstall.main install attio --prefix ~/.local/bin
    python -m binstall.main resolve attio --os linux --arch arm64
"""

from __future__ import annotations

import os

import click

from binstall import __version__
from binstall.core.observability.logging_config import resolve_level, setup_logging


@click.group()
@click.version_option(version=__version__, prog_name="binstall")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.pass_context
def cli(ctx: click.Context, verbose: bool, quiet: bool, debug: bool) -> None:
    """binstall — install prebuilt binaries from a verified platform matrix."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug

    # ── Logging setup (once, at process start) ──────────────────
    setup_logging(
        level=resolve_level(
            debug=debug,
            verbose=verbose,
            quiet=quiet,
            env_level=os.environ.get("BINSTALL_LOG_LEVEL"),
        ),
        log_file=os.environ.get("BINSTALL_LOG_FILE"),
        log_file_level=os.environ.get("BINSTALL_LOG_FILE_LEVEL"),
    )


# ── Register command groups ─────────────────────────────────────

from binstall.ui.cli.inspect import list_packages, platform, resolve, verify  # noqa: E402
from binstall.ui.cli.install import install, smoke_test  # noqa: E402

cli.add_command(install)
cli.add_command(smoke_test)
cli.add_command(resolve)
cli.add_command(verify)
cli.add_command(list_packages)
cli.add_command(platform)


def main() -> None:
    """Entry point for the console script."""
    cli(obj={})


if __name__ == "__main__":
    main()
