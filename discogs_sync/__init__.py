"""Reconcile a Discogs collection folder against a desired-state file."""

__version__ = "1.0.0"
