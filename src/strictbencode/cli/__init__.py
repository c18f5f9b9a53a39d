"""Command-line interface for strictbencode."""
