"""Command-line interface for sit."""
