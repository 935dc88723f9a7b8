"""docker-volume-cvmfs command line.

With no command given, starts the docker volume plugin and listens for
requests on the plugin socket. The other commands implement the
Kubernetes flexvolume driver calls; each prints exactly one JSON status
line on stdout, so logging goes to stderr.
"""

import logging
import sys
from pathlib import Path

import click
import uvicorn
from pydantic import ValidationError

from cvmfs_library.errors import CvmfsError
from cvmfs_library.errors import RepoNotFoundError
from cvmfs_library.services.controller import MountController
from cvmfs_library.services.volume_registry import VolumeRegistry
from cvmfs_library.utils.volume_names import parse_volume_name

from .config.loader import load_config
from .config.loader import save_example_config
from .config.models import Config
from .dependencies import build_controller
from .models import FlexOptions
from .models import FlexStatus

logger = logging.getLogger(__name__)

LOG_FORMAT = "docker-volume-cvmfs: %(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: str) -> None:
    """Configure root logging once, on stderr."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        stream=sys.stderr,
    )


def flex_success(device: str | Path | None = None) -> None:
    """Print a flexvolume success status."""
    status = FlexStatus(status="Success", device=str(device) if device else None)
    click.echo(status.model_dump_json(exclude_none=True))


def flex_error(err: Exception) -> None:
    """Print a flexvolume failure status and exit non-zero."""
    logger.error(f"{err}")
    status = FlexStatus(status="Failure", message=str(err))
    click.echo(status.model_dump_json(exclude_none=True))
    sys.exit(1)


def _controller(ctx: click.Context) -> MountController:
    return build_controller(ctx.obj["config"], mounter=ctx.obj.get("mounter"))


def _parse_options(raw: str | None) -> FlexOptions:
    if not raw:
        raise RepoNotFoundError()
    return FlexOptions.model_validate_json(raw)


@click.group(invoke_without_command=True)
@click.option("--verbose", is_flag=True, help="Be very verbose")
@click.option("--config", "config_file", type=click.Path(path_type=Path), help="Alternative config file to use")
@click.option("--mountpoint", help="Mountpoint to use (default /cvmfs)")
@click.option("--socket", help="Location for the plugin socket")
@click.pass_context
def cli(ctx, verbose: bool, config_file: Path | None, mountpoint: str | None, socket: str | None):
    """A docker volume plugin for cvmfs.

    With no command given, the default is to start the cvmfs docker volume
    plugin and listen for requests. The daemon will by default listen on
    /run/docker/plugins/cvmfs.sock, you can override this with --socket.

    The additional commands exist mostly to support kubernetes volumes via
    the flexvolume plugin.

    More information on CVMFS available at:
    https://cernvm.cern.ch/portal/filesystem
    """
    ctx.ensure_object(dict)

    config: Config = ctx.obj.get("config") or load_config(config_file)
    if mountpoint:
        config.cvmfs.mountpoint = mountpoint
    if socket:
        config.daemon.socket = socket
    if verbose:
        config.daemon.log_level = "DEBUG"
    ctx.obj["config"] = config

    configure_logging(config.daemon.log_level)

    if ctx.invoked_subcommand is None:
        serve(config)


def serve(config: Config) -> None:
    """Run the plugin on the configured unix socket."""
    from .main import create_app

    socket_path = Path(config.daemon.socket)
    socket_path.parent.mkdir(parents=True, exist_ok=True)

    logger.info(f"Listening on {socket_path}")
    uvicorn.run(
        create_app(config),
        uds=str(socket_path),
        log_level=config.daemon.log_level.lower(),
    )


@cli.command()
def init():
    """Init the cvmfs setup."""
    logger.info("init")
    flex_success()


@cli.command()
@click.argument("options", required=False)
@click.pass_context
def attach(ctx, options: str | None):
    """Attach the cvmfs setup.

    OPTIONS is the flexvolume JSON: {"mountpoint": ..., "repository": ...}.
    """
    try:
        flex_options = _parse_options(options)
        if not flex_options.repository:
            raise RepoNotFoundError()
        repo_id = parse_volume_name(flex_options.repository)
        volume_path = _controller(ctx).mount_tag(repo_id.repository, repo_id.tag, repo_id.tag_type)
    except (CvmfsError, ValidationError) as e:
        flex_error(e)
    else:
        flex_success(volume_path)


@cli.command()
@click.argument("options", required=False)
@click.pass_context
def detach(ctx, options: str | None):
    """Detach the cvmfs setup."""
    try:
        flex_options = _parse_options(options)
        if not flex_options.repository:
            raise RepoNotFoundError()
        repo_id = parse_volume_name(flex_options.repository)
        volume_path = _controller(ctx).umount_tag(repo_id.repository, repo_id.tag)
    except (CvmfsError, ValidationError) as e:
        flex_error(e)
    else:
        flex_success(volume_path)


@cli.command()
@click.argument("mount_dir", required=False)
@click.argument("device", required=False)
@click.argument("options", required=False)
@click.pass_context
def mount(ctx, mount_dir: str | None, device: str | None, options: str | None):
    """Bind mount DEVICE (a mounted repository) onto MOUNT_DIR."""
    try:
        if not mount_dir or not device:
            raise RepoNotFoundError()
        target = Path(mount_dir)
        try:
            target.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise CvmfsError(device, f"bind mount failed :: failed to create directory :: {target} :: {e}") from e
        _controller(ctx).mounter.bind(Path(device), target)
    except CvmfsError as e:
        flex_error(e)
    else:
        flex_success()


@cli.command(name="unmount")
@click.argument("repository", required=False)
@click.pass_context
def unmount(ctx, repository: str | None):
    """Unmount the given cvmfs repository."""
    try:
        if not repository:
            raise RepoNotFoundError()
        repo_id = parse_volume_name(repository)
        _controller(ctx).umount_tag(repo_id.repository, repo_id.tag)
    except CvmfsError as e:
        flex_error(e)
    else:
        flex_success()


@cli.command()
@click.pass_context
def volumes(ctx):
    """List registered volumes and their reference counts."""
    config: Config = ctx.obj["config"]
    registry = VolumeRegistry(config.cvmfs.registry_path)
    records = registry.list()
    if not records:
        click.echo("No volumes registered")
        return
    for record in sorted(records, key=lambda r: r.volume_name):
        click.echo(f"{record.volume_name}\t{record.path}\t{record.reference_count}")


@cli.command(name="example-config")
@click.argument("path", type=click.Path(path_type=Path))
def example_config(path: Path):
    """Write an example configuration file to PATH."""
    saved = save_example_config(path)
    click.echo(f"Example configuration written to {saved}")


def main():
    """Entry point for docker-volume-cvmfs."""
    try:
        cli()
    except KeyboardInterrupt:
        click.echo("\nInterrupted", err=True)
        sys.exit(0)
