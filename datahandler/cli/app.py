"""Datahandler CLI entry point."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional

import typer

from datahandler import __version__
from datahandler.config import ConfigManager
from datahandler.exceptions import BackendError, ConfigError, UploadError
from datahandler.upload.progress import LoggingProgress, TqdmProgress
from datahandler.uploader import upload_files

app = typer.Typer(add_completion=False, help="Datahandler command line interface.")

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _version_callback(value: bool) -> bool:
    if value:
        typer.echo(__version__)
        raise typer.Exit()
    return value


@app.callback()
def callback(
    version: bool = typer.Option(
        False,
        "--version",
        help="Show the datahandler version and exit.",
        callback=_version_callback,
        is_eager=True,
        is_flag=True,
    ),
) -> None:
    """Handle global CLI option for --version."""
    return None


def _split_paths(values: list[str]) -> list[Path]:
    """Accept both repeated flags and comma separated lists."""
    paths: list[Path] = []
    for value in values:
        paths.extend(Path(item) for item in value.split(",") if item.strip())
    return paths


@app.command("upload")
def upload(
    token: str = typer.Option(..., "--token", "-t", help="upload token"),
    files: list[str] = typer.Option(..., "--files", "-f", help="files to upload"),
    dataset: str = typer.Option(
        ..., "--dataset", "-d", help="dataset to associate the files with"
    ),
    dataset_version: str = typer.Option(
        ...,
        "--datasetversion",
        "-v",
        help="datasetversion to associate the files with",
    ),
    api_url: Optional[str] = typer.Option(
        None, "--api-url", help="base URL of the load service"
    ),
    config_path: Optional[Path] = typer.Option(
        None, "--config", help="yaml configuration file"
    ),
    verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging."),
) -> None:
    """Upload files into object storage and attach them to a dataset version.

    Uploads can only be performed using api tokens. Files are sent through
    presigned links: small files in one PUT, larger files in multiple parts.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO, format=LOG_FORMAT
    )

    progress = TqdmProgress() if sys.stderr.isatty() else LoggingProgress()
    try:
        config = ConfigManager(config_path).resolve_effective_config(
            {"api_url": api_url, "token": token}
        )
        results = upload_files(
            config,
            _split_paths(files),
            dataset,
            dataset_version,
            progress_callbacks=[progress],
        )
    except ConfigError as exc:
        typer.echo(f"Configuration error: {exc}", err=True)
        raise typer.Exit(code=1)
    except (BackendError, UploadError) as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1)
    finally:
        progress.close()

    typer.echo(f"Uploaded {len(results)} file(s) to dataset version {dataset_version}")


def main() -> None:
    """Run the datahandler CLI."""
    app()


if __name__ == "__main__":
    main()
