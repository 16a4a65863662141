"""
CLI command: sources

Lists registered sources with their priorities and field authorities.
"""

import logging

import click

from modelatlas.sources.registry import build_default_registry

# Configure module-level logger
logger = logging.getLogger("modelatlas.cli.sources")


@click.command("sources")
def cli() -> None:
    """
    Show registered sources in enumeration order.
    """
    registry = build_default_registry()
    for source in registry.sources():
        click.echo(f"{source.source_type} ({source.name}), priority {source.priority}")
        authorities = source.field_authorities()
        if not authorities:
            click.echo("  authoritative for: -")
            continue
        click.echo("  authoritative for:")
        for authority in authorities:
            click.echo(f"    - {authority.field_path}")
