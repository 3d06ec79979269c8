"""Command-line interface for jsondoc."""
