"""
CLI command: providers

Lists catalog providers, whether a client is registered for them and which
credentials are missing.
"""

import logging
import os
from pathlib import Path
from typing import Optional

import click

from modelatlas.catalog.persistence import load_catalog
from modelatlas.errors import ConfigurationError
from modelatlas.settings import settings
from modelatlas.sources.registry import default_client_registry

# Configure module-level logger
logger = logging.getLogger("modelatlas.cli.providers")


@click.command("providers")
@click.option(
    "--catalog",
    "catalog_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Local catalog YAML (defaults to MODELATLAS_CATALOG_PATH)",
)
def cli(catalog_path: Optional[Path]) -> None:
    """
    Show providers from the catalog and their credential status.
    """
    catalog_path = catalog_path or settings.catalog_path
    if catalog_path is None:
        click.echo("Error: no catalog given; use --catalog or MODELATLAS_CATALOG_PATH")
        raise click.Abort()

    try:
        catalog = load_catalog(catalog_path)
    except (FileNotFoundError, ConfigurationError) as e:
        logger.error("Failed to load catalog: %s", e)
        click.echo(f"Error: {e}")
        raise click.Abort()

    providers = catalog.providers()
    if not providers:
        click.echo("No providers in catalog")
        return

    for provider in providers:
        loaded = provider.with_credentials(os.environ)
        client = "client" if default_client_registry.has(provider.id) else "no client"
        missing = loaded.missing_config_keys()
        status = f"missing {', '.join(missing)}" if missing else "ready"
        models = len(catalog.models(provider.id))
        click.echo(f"{provider.id}: {models} models, {client}, {status}")
