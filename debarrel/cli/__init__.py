"""Command line interface for debarrel."""
