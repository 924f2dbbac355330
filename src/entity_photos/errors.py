"""Exceptions raised across the photo pipeline."""


class MigrationJobError(RuntimeError):
    """A migration job could not start because infrastructure is unavailable."""
