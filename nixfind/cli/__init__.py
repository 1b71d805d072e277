"""Command-line interface for nixfind."""
