"""Command-line entry points for gridconv."""
