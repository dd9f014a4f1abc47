"""Command line interface for sqlcopy."""
