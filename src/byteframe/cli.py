"""Command-line interface for byteframe.

Typer application with three commands:

    byteframe encode <input_file_or_dir> <output_dir>
    byteframe decode <input_file_or_dir_or_url> <output_dir>
    byteframe inspect <container>

Global options ``--config`` (TOML settings file) and ``--log-level`` apply
to every command. Exit status is 1 on a usage error or a fatal error and 0
otherwise, even when individual directory entries failed.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

import typer

from byteframe.batch import BatchError, run_decode, run_encode
from byteframe.codec import SizeMismatchError
from byteframe.config import LoggingConfig, Settings, load_settings
from byteframe.domain import BatchReport, ChannelMode
from byteframe.fetch import RemoteFetchError
from byteframe.transcode import inspect_container
from byteframe.utils import configure_logging
from byteframe.video import OpenCVBackend

logger = logging.getLogger(__name__)

FATAL_ERRORS = (BatchError, RemoteFetchError, SizeMismatchError, OSError)

# Status Typer uses for a malformed command line
USAGE_EXIT_CODE = 2

app = typer.Typer(
    name="byteframe",
    help="Carry files losslessly inside FFV1 video containers.",
    no_args_is_help=True,
    add_completion=False,
)


@app.callback()
def main_callback(
    ctx: typer.Context,
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to a TOML settings file."),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="DEBUG, INFO, WARNING, ERROR or CRITICAL."),
):
    """Load settings and configure logging for every command."""
    try:
        settings = load_settings(config)
        if log_level is not None:
            settings = settings.model_copy(update={"logging": LoggingConfig(level=log_level, structured=settings.logging.structured)})
    except (FileNotFoundError, ValueError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)

    configure_logging(settings.logging.level, settings.logging.structured)
    logger.debug(f"Loaded settings from {config or 'defaults'}")
    ctx.obj = settings


def _with_codec_overrides(settings: Settings, **overrides) -> Settings:
    updates = {key: value for key, value in overrides.items() if value is not None}
    if not updates:
        return settings
    return settings.model_copy(update={"codec": settings.codec.model_copy(update=updates)})


def _report(report: BatchReport) -> None:
    for item in report.items:
        if not item.success:
            typer.echo(f"Skipped {item.source}: {item.error}", err=True)
    typer.echo(f"{report.operation}: {report.succeeded} succeeded, {report.failed} failed")


@app.command("encode")
def encode(
    ctx: typer.Context,
    input_path: Path = typer.Argument(..., help="File or directory to encode."),
    output_dir: Path = typer.Argument(..., help="Directory receiving the containers."),
    mode: Optional[ChannelMode] = typer.Option(None, "--mode", "-m", case_sensitive=False, help="Bytes per pixel: single (1) or triple (3)."),
    width: Optional[int] = typer.Option(None, "--width", min=1, help="Frame width in pixels."),
    height: Optional[int] = typer.Option(None, "--height", min=1, help="Frame height in pixels."),
    fps: Optional[float] = typer.Option(None, "--fps", min=0.001, help="Container frame rate."),
):
    """Encode a file, or every file of a directory, into video containers."""
    settings = _with_codec_overrides(ctx.obj, mode=mode, width=width, height=height, fps=fps)

    try:
        report = run_encode(input_path, output_dir, settings=settings)
    except FATAL_ERRORS as e:
        typer.echo(f"Encoding failed: {e}", err=True)
        raise typer.Exit(code=1)

    _report(report)


@app.command("decode")
def decode(
    ctx: typer.Context,
    input_path: str = typer.Argument(..., help="Container, directory of containers, or http(s) URL."),
    output_dir: Path = typer.Argument(..., help="Directory receiving the decoded files."),
    mode: Optional[ChannelMode] = typer.Option(None, "--mode", "-m", case_sensitive=False, help="Mode the containers were encoded with."),
    trim_padding: bool = typer.Option(False, "--trim-padding", help="Truncate output to the length recorded in the sidecar manifest."),
):
    """Decode containers (or a remote video) back into files."""
    settings = _with_codec_overrides(ctx.obj, mode=mode)
    if trim_padding:
        settings = settings.model_copy(update={"manifest": settings.manifest.model_copy(update={"trim_padding": True})})

    try:
        report = run_decode(input_path, output_dir, settings=settings)
    except FATAL_ERRORS as e:
        typer.echo(f"Decoding failed: {e}", err=True)
        raise typer.Exit(code=1)

    _report(report)


@app.command("inspect")
def inspect(
    ctx: typer.Context,
    container: Path = typer.Argument(..., help="Container to inspect."),
):
    """Show frame count, geometry and sidecar manifest of a container."""
    settings: Settings = ctx.obj

    try:
        info = inspect_container(container, backend=OpenCVBackend(settings.codec.fourcc))
    except OSError as e:
        typer.echo(f"Inspect failed: {e}", err=True)
        raise typer.Exit(code=1)

    typer.echo(info.model_dump_json(indent=2))


def main() -> None:
    """Console entry point; usage errors exit with status 1."""
    try:
        app()
    except SystemExit as e:
        if e.code == USAGE_EXIT_CODE:
            sys.exit(1)
        raise
