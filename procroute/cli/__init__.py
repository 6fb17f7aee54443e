"""Command-line interface for procroute."""
