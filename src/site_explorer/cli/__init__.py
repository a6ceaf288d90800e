"""Command-line interface for site-explorer."""
