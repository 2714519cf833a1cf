"""CLI commands for s3cache.

``restore`` and ``save`` read their settings from the GitHub Actions
environment (``INPUT_*``, ``GITHUB_REPOSITORY``, ``GITHUB_REF_NAME``) and
report results through step outputs and state.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, NoReturn

import typer

from s3cache.actions import CACHE_HIT_STATE, get_state, save_state, set_restore_outputs
from s3cache.config import (
    DEFAULT_PREFIX,
    CacheSettings,
    RepositoryContext,
    log_level_from_env,
)
from s3cache.core.exceptions import CacheMissError, S3CacheError
from s3cache.core.models import CompressionMethod, SaveOutcome
from s3cache.log import configure_logging


if TYPE_CHECKING:
    from s3cache.core.ports import ObjectStorePort, ProgressReporter
    from s3cache.core.services import CacheOrchestrator


app = typer.Typer(
    name="s3cache",
    help="Cache CI build artifacts in S3.",
    no_args_is_help=True,
)


def _fail(error: S3CacheError) -> NoReturn:
    """Print an error with its recovery hint and exit non-zero."""
    typer.echo(f"Error: {error}", err=True)
    if error.recovery_hint:
        typer.echo(f"Hint: {error.recovery_hint}", err=True)
    raise typer.Exit(1) from None


def _create_store(settings: CacheSettings) -> ObjectStorePort:
    from s3cache.adapters.storage import S3ObjectStore

    return S3ObjectStore.from_credentials(settings.credentials, settings.bucket)


def _create_orchestrator(
    settings: CacheSettings,
    context: RepositoryContext,
    progress: ProgressReporter,
) -> CacheOrchestrator:
    from s3cache.adapters.archive import TarArchiveCodec
    from s3cache.core.services import CacheOrchestrator

    return CacheOrchestrator(
        store=_create_store(settings),
        codec=TarArchiveCodec(),
        settings=settings,
        context=context,
        progress=progress,
    )


@contextmanager
def _progress_reporter(enabled: bool) -> Iterator[ProgressReporter]:
    if not enabled:
        from s3cache.core.ports import NullProgressReporter

        yield NullProgressReporter()
        return

    from s3cache.progress import RichProgressReporter

    with RichProgressReporter() as reporter:
        yield reporter


@app.command()
def restore(
    destination: Path | None = typer.Option(
        None,
        "--destination",
        "-d",
        help="Directory to unpack into. Defaults to the current directory.",
    ),
    log_level: str | None = typer.Option(
        None, "--log-level", help="Log level (DEBUG, INFO, WARNING)."
    ),
    no_progress: bool = typer.Option(
        False, "--no-progress", help="Disable the transfer progress bar."
    ),
) -> None:
    """Restore a cache entry by key, falling back to restore keys."""
    try:
        configure_logging(log_level or log_level_from_env())
        settings = CacheSettings.from_env()
        context = RepositoryContext.from_env()
        with _progress_reporter(not no_progress) as progress:
            result = _create_orchestrator(settings, context, progress).restore(
                destination
            )

        set_restore_outputs(result)
        if result.exact_match:
            save_state(CACHE_HIT_STATE, "true")
        if not result.cache_hit and settings.fail_on_miss:
            raise CacheMissError(settings.key)
    except S3CacheError as e:
        _fail(e)

    if result.cache_hit:
        typer.echo(f"Cache restored from key: {result.matched_key}")
    else:
        typer.echo(f"Cache not found for key: {result.primary_key}")


@app.command()
def save(
    force: bool = typer.Option(
        False, "--force", help="Save even if the restore step hit the exact key."
    ),
    log_level: str | None = typer.Option(
        None, "--log-level", help="Log level (DEBUG, INFO, WARNING)."
    ),
    no_progress: bool = typer.Option(
        False, "--no-progress", help="Disable the transfer progress bar."
    ),
) -> None:
    """Archive the configured paths and upload them unless already cached."""
    try:
        configure_logging(log_level or log_level_from_env())
    except S3CacheError as e:
        _fail(e)

    if get_state(CACHE_HIT_STATE) == "true" and not force:
        typer.echo("Cache was restored successfully, skipping save.")
        return

    try:
        settings = CacheSettings.from_env()
        context = RepositoryContext.from_env()
        with _progress_reporter(not no_progress) as progress:
            result = _create_orchestrator(settings, context, progress).save()
    except S3CacheError as e:
        _fail(e)

    if result.outcome is SaveOutcome.SAVED:
        typer.echo(f"Cache saved with key: {result.primary_key}")
    elif result.outcome is SaveOutcome.ALREADY_CACHED:
        typer.echo(f"Cache already exists for key: {result.primary_key}, skipping save.")
    else:
        typer.echo("No valid cache paths found, skipping save.")


@app.command()
def resolve(
    key: str = typer.Argument(help="Cache key to resolve."),
    repository: str = typer.Option(
        ...,
        "--repository",
        "-r",
        envvar="GITHUB_REPOSITORY",
        help="Repository identifier (owner/name).",
    ),
    ref: str = typer.Option(
        ..., "--ref", envvar="GITHUB_REF_NAME", help="Branch or tag name."
    ),
    prefix: str = typer.Option(DEFAULT_PREFIX, "--prefix", "-p", help="Key prefix."),
    method: str = typer.Option(
        "gzip", "--method", "-m", help="Compression method (gzip or zstd)."
    ),
    bucket: str | None = typer.Option(
        None, "--bucket", "-b", help="Print a full s3:// URI for this bucket."
    ),
) -> None:
    """Print the object key a cache key resolves to."""
    from s3cache.core.keys import resolve_location

    try:
        location = resolve_location(
            prefix, repository, ref, key, CompressionMethod.parse(method)
        )
    except S3CacheError as e:
        _fail(e)

    typer.echo(location.uri(bucket) if bucket else location.object_key)


def main() -> None:
    """Entry point for the CLI."""
    app()
