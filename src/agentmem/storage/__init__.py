"""Persistence layer."""

from .database import Database
from .schema import sanitize_project_id, project_table_names

__all__ = ["Database", "sanitize_project_id", "project_table_names"]
