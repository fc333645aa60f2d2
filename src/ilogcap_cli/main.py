"""ilogcap command-line entry point."""
import logging
import os
from pathlib import Path
from typing import Optional

import click

from capture.exceptions import CaptureError
from capture.libimobiledevice_backend import LibimobiledeviceBackend
from capture.orchestrator import CaptureOrchestrator
from capture.paths import ensure_output_roots
from models.config import (
    DEFAULT_INFO_ROOT,
    DEFAULT_LIVE_ROOT,
    DEFAULT_SNAPSHOT_ROOT,
    OutputConfig,
    ToolsetConfig,
)
from toolset.installer import prepend_to_path

from .commands import devices, info, live, live_verbose, snapshot
from .install import install

# Subcommands that never write capture output.
_NO_OUTPUT_COMMANDS = {"install", "devices"}


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@click.group()
@click.option("--live-root", type=click.Path(file_okay=False, path_type=Path),
              default=DEFAULT_LIVE_ROOT, envvar="ILOGCAP_LIVE_ROOT", show_default=True,
              help="Directory for live syslog sessions")
@click.option("--snapshot-root", type=click.Path(file_okay=False, path_type=Path),
              default=DEFAULT_SNAPSHOT_ROOT, envvar="ILOGCAP_SNAPSHOT_ROOT", show_default=True,
              help="Directory for snapshot bundles")
@click.option("--info-root", type=click.Path(file_okay=False, path_type=Path),
              default=DEFAULT_INFO_ROOT, envvar="ILOGCAP_INFO_ROOT", show_default=True,
              help="Directory for device-info captures")
@click.option("--bin-dir", type=click.Path(file_okay=False, path_type=Path),
              envvar="ILOGCAP_BIN_DIR",
              help="Directory holding the libimobiledevice executables (default: PATH)")
@click.option("--sample-seconds", type=click.FloatRange(min=0), default=5.0, show_default=True,
              help="Syslog sampling window for snapshots")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context,
        live_root: Path,
        snapshot_root: Path,
        info_root: Path,
        bin_dir: Optional[Path],
        sample_seconds: float,
        verbose: bool):
    """
    Capture logs, diagnostics and device info from a connected iOS device.

    Example:
      ilogcap snapshot
    """
    _configure_logging(verbose)
    ctx.ensure_object(dict)

    output = OutputConfig(live_root=live_root, snapshot_root=snapshot_root, info_root=info_root)
    toolset = ToolsetConfig(bin_dir=bin_dir, sample_seconds=sample_seconds)
    if ctx.invoked_subcommand not in _NO_OUTPUT_COMMANDS:
        try:
            ensure_output_roots(output)
        except CaptureError as e:
            raise click.ClickException(str(e))

    if bin_dir:
        os.environ.update(prepend_to_path(bin_dir))

    backend = ctx.obj.get("backend") or LibimobiledeviceBackend(bin_dir)
    ctx.obj["output"] = output
    ctx.obj["toolset"] = toolset
    ctx.obj["orchestrator"] = CaptureOrchestrator(
        backend,
        output,
        toolset,
        console=lambda text: click.echo(text, nl=False),
    )


cli.add_command(live)
cli.add_command(live_verbose)
cli.add_command(snapshot)
cli.add_command(info)
cli.add_command(devices)
cli.add_command(install)


def main():
    cli(obj={})


if __name__ == "__main__":
    main()
