"""
Persistence layer for PrintHero state.

SQLite-backed storage for monitored folders, the print job log and settings.
"""

from .manager import PersistenceManager
from .errors import PersistenceError, SchemaError, LoadError, SaveError

__all__ = ["PersistenceManager", "PersistenceError", "SchemaError", "LoadError", "SaveError"]
