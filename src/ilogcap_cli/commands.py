"""CLI commands for device capture."""
from typing import Callable, Optional

import click

from capture.exceptions import CaptureError, NoDeviceError
from capture.orchestrator import CaptureOrchestrator
from models.session import CaptureSession

NO_DEVICE_MESSAGE = "No device found. Connect and trust the device, then retry."


def _run(ctx: click.Context,
         operation: Callable[[CaptureOrchestrator], CaptureSession]) -> Optional[CaptureSession]:
    orchestrator: CaptureOrchestrator = ctx.obj["orchestrator"]
    try:
        session = operation(orchestrator)
    except NoDeviceError:
        click.echo(NO_DEVICE_MESSAGE)
        return None
    except CaptureError as e:
        raise click.ClickException(str(e))

    for step in session.failures:
        click.echo(f"Warning: {step} did not complete; its output may be empty.", err=True)
    click.echo(f"Logs saved to {session.path}")
    return session


@click.command()
@click.pass_context
def live(ctx: click.Context):
    """Stream the device syslog to a new timestamped log file."""
    _run(ctx, lambda o: o.live())


@click.command("live-verbose")
@click.pass_context
def live_verbose(ctx: click.Context):
    """Stream the device syslog to file and console."""
    _run(ctx, lambda o: o.live(verbose=True))


@click.command()
@click.pass_context
def snapshot(ctx: click.Context):
    """Sample syslog and collect device info, diagnostics and crash reports."""
    _run(ctx, lambda o: o.snapshot())


@click.command()
@click.pass_context
def info(ctx: click.Context):
    """Write device info to a timestamped file."""
    _run(ctx, lambda o: o.device_info())


@click.command()
@click.pass_context
def devices(ctx: click.Context):
    """List connected device identifiers."""
    orchestrator: CaptureOrchestrator = ctx.obj["orchestrator"]
    found = orchestrator.connected_devices()
    if not found:
        click.echo("No device found.")
        return
    for udid in found:
        click.echo(udid)
