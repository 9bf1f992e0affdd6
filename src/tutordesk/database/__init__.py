"""Database layer for tutordesk application."""

from tutordesk.database.base import Database
from tutordesk.database.factories import create_sqlite_database

__all__ = ["Database", "create_sqlite_database"]
