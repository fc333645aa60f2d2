"""CLI command for toolset installation."""
from pathlib import Path

import click

from capture.exceptions import InstallError
from toolset.installer import ReleaseAsset, install_toolset, resolve_release

DEFAULT_INSTALL_DIR = Path.home() / ".ilogcap" / "libimobiledevice"


@click.command()
@click.option("--target", type=click.Path(file_okay=False, path_type=Path),
              default=DEFAULT_INSTALL_DIR, show_default=True,
              help="Directory to unpack the toolset into")
@click.option("--url", help="Override the release archive URL")
@click.option("--keep-archive", is_flag=True, help="Keep the downloaded zip")
def install(target: Path, url: str, keep_archive: bool):
    """Download and unpack the libimobiledevice command-line tools."""
    try:
        asset = ReleaseAsset(platform="custom", url=url) if url else resolve_release()
        click.echo(f"Downloading {asset.url}")
        bin_dir = install_toolset(target, asset=asset, keep_archive=keep_archive)
    except InstallError as e:
        raise click.ClickException(str(e))

    click.echo(f"Toolset installed in {bin_dir}")
    click.echo("Add it to PATH or point ilogcap at it:")
    click.echo(f"  export ILOGCAP_BIN_DIR={bin_dir}")
