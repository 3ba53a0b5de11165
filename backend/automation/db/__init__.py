"""Database module."""

from automation.db.database import close_database, get_db, init_database
from automation.db.workflow_store import WorkflowStore, workflow_store

__all__ = ["get_db", "init_database", "close_database", "workflow_store", "WorkflowStore"]
