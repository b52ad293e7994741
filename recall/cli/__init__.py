"""Command-line interface for recall-core."""
