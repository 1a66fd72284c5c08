"""Backup and restore domain service."""

import logging
import threading
from pathlib import Path
from typing import Optional

from ridetrack.database.base import Database
from ridetrack.domain.backup_codec import Bundle, load_backup, write_backup
from ridetrack.domain.entities import LocalDataset
from ridetrack.domain.reconciliation import ReconciliationEngine, RestorePolicy, RestoreResult
from ridetrack.storage.base import AttachmentStore

logger = logging.getLogger(__name__)


class BackupRestoreService:
    """Service for creating backups and restoring them into the local data."""

    def __init__(self, db: Database, store: AttachmentStore, app_version: str = "1.0"):
        """Initialize backup/restore service.

        Args:
            db: Database instance holding the local dataset
            store: Attachment store holding the local image files
            app_version: Version recorded in created backups
        """
        self.db = db
        self.store = store
        self.app_version = app_version
        self.engine = ReconciliationEngine(store)
        self._restore_lock = threading.Lock()

    def load_backup(self, path: str | Path) -> Bundle:
        """Load a backup bundle without touching local data.

        Args:
            path: Path to a ``.zip`` backup or a legacy ``.json`` backup

        Returns:
            Loaded Bundle. The caller must close it when done.

        Raises:
            FileNotFoundError: If the backup file doesn't exist
            BundleLoadError: If the backup cannot be decoded
        """
        return load_backup(path)

    def restore_from_backup(
        self, bundle: Bundle, dataset: LocalDataset, policy: RestorePolicy | str
    ) -> RestoreResult:
        """Reconcile a loaded bundle into a dataset under the given policy.

        Only one restore runs at a time per service instance.

        Note:
            Under ``merge``, transactions of a statement period that already
            exists locally are never updated.
        """
        with self._restore_lock:
            return self.engine.restore(bundle, dataset, policy)

    def restore_file(self, path: str | Path, policy: RestorePolicy | str) -> RestoreResult:
        """Restore a backup file into the persisted local dataset.

        The persisted dataset is loaded, reconciled and saved back in one
        transaction. The bundle's temporary files are removed afterwards.

        Args:
            path: Path to the backup file
            policy: Restore policy

        Returns:
            RestoreResult with per-entity counts and warnings

        Raises:
            FileNotFoundError: If the backup file doesn't exist
            BundleLoadError: If the backup cannot be decoded
        """
        policy = RestorePolicy(policy)
        with self.load_backup(path) as bundle:
            dataset = self.db.load_dataset()
            result = self.restore_from_backup(bundle, dataset, policy)
            self.db.save_dataset(dataset)
        logger.info("Saved restored data from %s", Path(path).name)
        return result

    def create_backup(
        self, destination_dir: str | Path, include_images: bool = True
    ) -> Path:
        """Write a backup archive of the persisted local dataset.

        Args:
            destination_dir: Directory to write the archive into
            include_images: Whether to include image files

        Returns:
            Path to the created archive
        """
        dataset = self.db.load_dataset()
        store: Optional[AttachmentStore] = self.store if include_images else None
        return write_backup(
            dataset,
            destination_dir,
            store=store,
            include_images=include_images,
            app_version=self.app_version,
        )
