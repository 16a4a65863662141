"""Click commands auto-loaded by modelatlas.cli."""
