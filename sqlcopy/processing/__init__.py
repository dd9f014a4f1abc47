"""Batching rows into INSERT statements and running datasets."""
