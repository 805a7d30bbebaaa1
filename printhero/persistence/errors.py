"""
Errors raised by the PrintHero configuration store.

A store failure during ``WatchRegistry.start()`` is the one error that is
allowed to reach the caller; everything else is logged where it happens.
"""


class PersistenceError(Exception):
    """Base exception for configuration store operations."""

    pass


class SchemaError(PersistenceError):
    """The database was written by a newer PrintHero or a migration failed."""

    pass


class LoadError(PersistenceError):
    """A stored row could not be turned back into a model."""

    pass


class SaveError(PersistenceError):
    """A folder, job or setting could not be written."""

    pass
