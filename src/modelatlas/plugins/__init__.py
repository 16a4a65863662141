"""CLI plugins and extensions."""
