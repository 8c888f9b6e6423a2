"""SQLite persistence."""

from .database import Database

__all__ = ["Database"]
