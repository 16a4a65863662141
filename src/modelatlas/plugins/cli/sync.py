"""
CLI command: sync

Synchronizes the catalog from the local catalog and provider APIs.
"""

import logging
from pathlib import Path
from typing import Optional

import click

from modelatlas.catalog.changeset import ProviderChangeset
from modelatlas.catalog.persistence import load_catalog, save_catalog
from modelatlas.errors import ConfigurationError, ProviderNotFoundError, SyncCancelledError
from modelatlas.merge.strategies import MergeStrategy
from modelatlas.settings import settings
from modelatlas.sync import FetchStatus, Synchronizer, SyncOptions

# Configure module-level logger
logger = logging.getLogger("modelatlas.cli.sync")

STATUS_MARKERS = {
    FetchStatus.SUCCESS: "✓",
    FetchStatus.FAILED: "✗",
    FetchStatus.SKIPPED: "-",
    FetchStatus.CANCELLED: "!",
}


def echo_changeset(changeset: ProviderChangeset) -> None:
    click.echo(f"{changeset.provider_id}: {changeset}")
    for model in changeset.added:
        click.echo(f"  + {model.id}")
    for update in changeset.updated:
        click.echo(f"  ~ {update.model_id}")
        for change in update.changes:
            click.echo(f"      {change}")
    for model in changeset.removed:
        click.echo(f"  - {model.id}")


@click.command("sync")
@click.argument("provider", type=click.STRING, required=False)
@click.option(
    "--catalog",
    "catalog_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Local catalog YAML (defaults to MODELATLAS_CATALOG_PATH)",
)
@click.option(
    "--output",
    "output_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Write the merged catalog YAML here",
)
@click.option(
    "--strategy",
    type=click.Choice([s.value for s in MergeStrategy]),
    default=None,
    help="Catalog merge strategy",
)
@click.option("--timeout", type=float, default=None, help="Run deadline in seconds")
@click.option("--no-local", is_flag=True, help="Do not use the local catalog source")
@click.option("--no-api", is_flag=True, help="Do not query provider APIs")
@click.option("--strict", is_flag=True, help="Fail on any error or cancellation")
@click.option("--seed", is_flag=True, help="Start from the local catalog")
@click.option("--fresh", is_flag=True, help="Report every model as added")
@click.option("--dry-run", is_flag=True, help="Show changes without writing the catalog")
def cli(
    provider: Optional[str],
    catalog_path: Optional[Path],
    output_path: Optional[Path],
    strategy: Optional[str],
    timeout: Optional[float],
    no_local: bool,
    no_api: bool,
    strict: bool,
    seed: bool,
    fresh: bool,
    dry_run: bool,
) -> None:
    """
    Synchronize PROVIDER, or every known provider when omitted.
    """
    catalog_path = catalog_path or settings.catalog_path
    output_path = output_path or settings.output_path

    local_catalog = None
    if catalog_path is not None:
        try:
            local_catalog = load_catalog(catalog_path)
        except (FileNotFoundError, ConfigurationError) as e:
            logger.error("Failed to load catalog: %s", e)
            click.echo(f"Error: {e}")
            raise click.Abort()

    options = SyncOptions(
        provider_id=provider,
        disable_local_catalog=no_local,
        disable_provider_api=no_api,
        merge_strategy=MergeStrategy(strategy) if strategy else None,
        timeout=timeout,
        strict=strict,
        seed_from_local=seed,
        fresh=fresh,
    )

    try:
        result = Synchronizer(local_catalog=local_catalog).synchronize(options=options)
    except ProviderNotFoundError as e:
        click.echo(f"Error: {e}")
        raise click.Abort()
    except SyncCancelledError as e:
        click.echo(f"✗ {e}")
        raise click.Abort()

    for outcome in result.outcomes:
        marker = STATUS_MARKERS[outcome.status]
        label = f"{outcome.provider_id} [{outcome.source_name}]"
        if outcome.status is FetchStatus.SUCCESS:
            click.echo(f"{marker} {label}: {len(outcome.models)} models")
        elif outcome.error is not None:
            click.echo(f"{marker} {label}: {outcome.error}")
        else:
            click.echo(f"{marker} {label}: {outcome.status}")

    for changeset in result.changesets.values():
        if changeset.has_changes:
            echo_changeset(changeset)

    click.echo()
    click.echo(result.summary())

    if output_path is not None:
        if dry_run:
            click.echo(f"Dry run: {output_path} not written")
        else:
            save_catalog(result.catalog, output_path)
            click.echo(f"Catalog written to {output_path}")

    if strict and not result.ok:
        click.echo("Synchronization finished with errors")
        raise click.Abort()
