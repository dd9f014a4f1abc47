"""Utility modules for sqlcopy."""
