"""Factory functions for creating database and attachment store instances."""

import os
from pathlib import Path
from typing import Optional

from ridetrack.database.sqlalchemy_db import SQLAlchemyDatabase
from ridetrack.storage.filesystem import FilesystemAttachmentStore


def _default_data_dir() -> Path:
    data_dir = Path.home() / ".ridetrack"
    data_dir.mkdir(exist_ok=True)
    return data_dir


def create_sqlite_database(database_path: Optional[str] = None) -> SQLAlchemyDatabase:
    """Create a SQLite database instance.

    Args:
        database_path: Path to SQLite database file. If None, checks RIDETRACK_DB_PATH
            environment variable, then defaults to ~/.ridetrack/ridetrack.db

    Returns:
        SQLAlchemyDatabase instance configured for SQLite
    """
    if database_path is None:
        database_path = os.environ.get("RIDETRACK_DB_PATH")

    if database_path is None:
        database_path = str(_default_data_dir() / "ridetrack.db")

    database_url = f"sqlite:///{database_path}"
    return SQLAlchemyDatabase(database_url)


def create_attachment_store(root: Optional[str] = None) -> FilesystemAttachmentStore:
    """Create a filesystem attachment store.

    Args:
        root: Directory holding the Images/ and Thumbnails/ trees. If None,
            checks RIDETRACK_DATA_DIR environment variable, then defaults to
            ~/.ridetrack

    Returns:
        FilesystemAttachmentStore rooted at the resolved directory
    """
    if root is None:
        root = os.environ.get("RIDETRACK_DATA_DIR")

    if root is None:
        return FilesystemAttachmentStore(_default_data_dir())

    return FilesystemAttachmentStore(Path(root))
