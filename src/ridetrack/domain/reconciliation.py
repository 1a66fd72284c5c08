"""Reconciliation of a backup bundle with the local dataset.

The engine applies one of three restore policies to every entity class:

================  ==========================  ===========================
Policy            Shifts / expenses (by id)   Transactions (by period)
================  ==========================  ===========================
Replace-All       delete all, insert all      delete all, insert all
Add-Missing       insert new, skip existing   insert new periods, skip known
Merge             insert new, update existing insert new periods, skip known
================  ==========================  ===========================

Merge deliberately never updates transactions of a statement period that
already exists locally: once a period has been imported, its transactions
are treated as immutable historical facts. Shifts and expenses, by
contrast, are overwritten field by field.

Image files follow the records. An attachment is kept on a restored record
only if its file exists in the attachment store afterwards; attachments that
cannot be extracted are dropped and reported as warnings instead of failing
the restore.
"""

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from typing import Optional, Sequence, TypeVar
from uuid import UUID

from ridetrack.domain.backup_codec import Bundle
from ridetrack.domain.entities import (
    AttachmentParentKind,
    Expense,
    LocalDataset,
    Shift,
    UberTransaction,
)
from ridetrack.domain.errors import AttachmentStoreError
from ridetrack.domain.identity import Classification, resolve_identities
from ridetrack.domain.preferences import apply_preferences_snapshot
from ridetrack.storage.base import AttachmentStore

logger = logging.getLogger(__name__)

R = TypeVar("R", Shift, Expense)


class RestorePolicy(str, Enum):
    """User-selectable reconciliation policy."""

    REPLACE_ALL = "replace-all"
    ADD_MISSING = "add-missing"
    MERGE = "merge"

    @property
    def description(self) -> str:
        return {
            RestorePolicy.REPLACE_ALL: "Delete all current data, then restore from backup",
            RestorePolicy.ADD_MISSING: "Add only records that don't exist in current data",
            RestorePolicy.MERGE: "Update existing records and add new ones",
        }[self]


class RecordAction(Enum):
    """What the engine does with one incoming record."""

    INSERT = "insert"
    UPDATE = "update"
    SKIP = "skip"


# Replace-All classifies against an already-cleared dataset, so only NEW occurs.
ACTIONS: dict[tuple[RestorePolicy, Classification], RecordAction] = {
    (RestorePolicy.REPLACE_ALL, Classification.NEW): RecordAction.INSERT,
    (RestorePolicy.ADD_MISSING, Classification.NEW): RecordAction.INSERT,
    (RestorePolicy.ADD_MISSING, Classification.DUPLICATE_BY_ID): RecordAction.SKIP,
    (RestorePolicy.ADD_MISSING, Classification.DUPLICATE_BY_PERIOD): RecordAction.SKIP,
    (RestorePolicy.MERGE, Classification.NEW): RecordAction.INSERT,
    (RestorePolicy.MERGE, Classification.DUPLICATE_BY_ID): RecordAction.UPDATE,
    (RestorePolicy.MERGE, Classification.DUPLICATE_BY_PERIOD): RecordAction.SKIP,
}


@dataclass(frozen=True)
class AttachmentIOWarning:
    """Non-fatal failure to extract or delete one attachment file."""

    kind: AttachmentParentKind
    parent_id: UUID
    filename: Optional[str]
    operation: str
    message: str

    def __str__(self) -> str:
        target = self.filename if self.filename is not None else "all images"
        return (
            f"Could not {self.operation} {target} for {self.kind.value[:-1]} "
            f"{self.parent_id}: {self.message}"
        )


@dataclass
class RestoreResult:
    """Counts of what a restore did, plus attachment warnings."""

    shifts_added: int = 0
    shifts_updated: int = 0
    shifts_skipped: int = 0
    expenses_added: int = 0
    expenses_updated: int = 0
    expenses_skipped: int = 0
    transactions_added: int = 0
    transactions_updated: int = 0
    transactions_skipped: int = 0
    warnings: list[AttachmentIOWarning] = field(default_factory=list)


@dataclass
class _Counts:
    added: int = 0
    updated: int = 0
    skipped: int = 0


class ReconciliationEngine:
    """Applies a restore policy to a local dataset and its attachment store.

    The engine mutates only the ``LocalDataset`` passed to :meth:`restore`
    and the files of the injected store. Callers must not run two restores
    against the same dataset concurrently.
    """

    def __init__(self, store: AttachmentStore):
        """Initialize reconciliation engine.

        Args:
            store: Attachment store holding the local image files
        """
        self.store = store

    def restore(
        self, bundle: Bundle, dataset: LocalDataset, policy: RestorePolicy | str
    ) -> RestoreResult:
        """Reconcile a loaded bundle into the local dataset.

        Collections absent from the bundle (``None``) leave the matching local
        collection untouched under Add-Missing and Merge. Replace-All still
        clears local expenses when the bundle has none, while absent
        transactions are left alone under every policy. Preferences are always
        overwritten from the bundle.

        Note:
            Under Merge, transactions of a statement period that already
            exists locally are skipped, never updated, unlike shifts and
            expenses which are overwritten.

        Args:
            bundle: Successfully loaded bundle
            dataset: Local dataset, updated in place at the end of the call
            policy: Restore policy

        Returns:
            RestoreResult with per-entity counts and attachment warnings
        """
        policy = RestorePolicy(policy)
        result = RestoreResult()
        source_dir = bundle.source_dir

        logger.info(
            "Restoring backup (%s): %d shifts, %d expenses, %s transactions",
            policy.value,
            len(bundle.shifts),
            len(bundle.expenses or []),
            "no" if bundle.transactions is None else len(bundle.transactions),
        )

        local_shifts = list(dataset.shifts)
        local_expenses = list(dataset.expenses)
        local_transactions = list(dataset.transactions) if bundle.transactions is not None else []

        if policy is RestorePolicy.REPLACE_ALL:
            # All deletions complete before any insertion starts
            self._clear_images(AttachmentParentKind.SHIFT, local_shifts, result.warnings)
            local_shifts = []
            self._clear_images(AttachmentParentKind.EXPENSE, local_expenses, result.warnings)
            local_expenses = []
            local_transactions = []

        resolution = resolve_identities(
            bundle.shifts,
            bundle.expenses,
            bundle.transactions,
            LocalDataset(
                shifts=local_shifts,
                expenses=local_expenses,
                transactions=local_transactions,
            ),
        )

        shifts, counts = self._reconcile_records(
            AttachmentParentKind.SHIFT,
            bundle.shifts,
            local_shifts,
            resolution.shifts,
            policy,
            source_dir,
            result.warnings,
        )
        result.shifts_added, result.shifts_updated, result.shifts_skipped = (
            counts.added,
            counts.updated,
            counts.skipped,
        )

        expenses = None
        if bundle.expenses is not None:
            expenses, counts = self._reconcile_records(
                AttachmentParentKind.EXPENSE,
                bundle.expenses,
                local_expenses,
                resolution.expenses,
                policy,
                source_dir,
                result.warnings,
            )
            result.expenses_added, result.expenses_updated, result.expenses_skipped = (
                counts.added,
                counts.updated,
                counts.skipped,
            )

        transactions = None
        if bundle.transactions is not None:
            transactions, counts = self._reconcile_transactions(
                bundle.transactions, local_transactions, resolution.transactions, policy
            )
            (
                result.transactions_added,
                result.transactions_updated,
                result.transactions_skipped,
            ) = (counts.added, counts.updated, counts.skipped)

        # Commit
        dataset.shifts = shifts
        if expenses is not None:
            dataset.expenses = expenses
        elif policy is RestorePolicy.REPLACE_ALL:
            dataset.expenses = []
        if transactions is not None:
            dataset.transactions = transactions
        dataset.preferences = apply_preferences_snapshot(dataset.preferences, bundle.preferences)

        logger.info(
            "Restore completed: policy=%s, shifts added=%d updated=%d skipped=%d, "
            "expenses added=%d updated=%d skipped=%d, "
            "transactions added=%d updated=%d skipped=%d, warnings=%d",
            policy.value,
            result.shifts_added,
            result.shifts_updated,
            result.shifts_skipped,
            result.expenses_added,
            result.expenses_updated,
            result.expenses_skipped,
            result.transactions_added,
            result.transactions_updated,
            result.transactions_skipped,
            len(result.warnings),
        )
        return result

    def _warn(
        self,
        warnings: list[AttachmentIOWarning],
        kind: AttachmentParentKind,
        parent_id: UUID,
        filename: Optional[str],
        operation: str,
        message: str,
    ) -> None:
        warning = AttachmentIOWarning(
            kind=kind,
            parent_id=parent_id,
            filename=filename,
            operation=operation,
            message=message,
        )
        logger.warning("%s", warning)
        warnings.append(warning)

    def _clear_images(
        self,
        kind: AttachmentParentKind,
        local: Sequence[Shift | Expense],
        warnings: list[AttachmentIOWarning],
    ) -> None:
        """Delete the images of every local record and every orphaned folder."""
        parent_ids = {record.id for record in local}
        parent_ids.update(self.store.list_parents(kind))
        for parent_id in sorted(parent_ids, key=str):
            try:
                self.store.delete_all(kind, parent_id)
            except OSError as e:
                self._warn(warnings, kind, parent_id, None, "delete", str(e))

    def _reconcile_records(
        self,
        kind: AttachmentParentKind,
        incoming: Sequence[R],
        local: Sequence[R],
        classifications: dict[UUID, Classification],
        policy: RestorePolicy,
        source_dir: Optional[Path],
        warnings: list[AttachmentIOWarning],
    ) -> tuple[list[R], _Counts]:
        records = list(local)
        positions = {record.id: i for i, record in enumerate(records)}
        counts = _Counts()

        for record in incoming:
            action = ACTIONS[(policy, classifications[record.id])]

            if action is RecordAction.SKIP:
                logger.debug("Skipping existing %s %s", kind.value[:-1], record.id)
                counts.skipped += 1
                continue

            if action is RecordAction.UPDATE:
                position = positions[record.id]
                self._prune_stale_images(kind, records[position], record, warnings)
                records[position] = self._restore_attachments(kind, record, source_dir, warnings)
                logger.debug("Updated %s %s", kind.value[:-1], record.id)
                counts.updated += 1
                continue

            restored = self._restore_attachments(kind, record, source_dir, warnings)
            if record.id in positions:
                # Repeated id within the incoming records
                records[positions[record.id]] = restored
                continue
            positions[record.id] = len(records)
            records.append(restored)
            logger.debug("Added %s %s", kind.value[:-1], record.id)
            counts.added += 1

        return records, counts

    def _reconcile_transactions(
        self,
        incoming: Sequence[UberTransaction],
        local: Sequence[UberTransaction],
        classifications: dict[UUID, Classification],
        policy: RestorePolicy,
    ) -> tuple[list[UberTransaction], _Counts]:
        transactions = list(local)
        positions = {transaction.id: i for i, transaction in enumerate(transactions)}
        counts = _Counts()
        skipped_periods: set[str] = set()

        for transaction in incoming:
            action = ACTIONS[(policy, classifications[transaction.id])]

            if action is RecordAction.SKIP:
                skipped_periods.add(transaction.statement_period)
                counts.skipped += 1
                continue

            if transaction.id in positions:
                # Same UUID under a different period: keep ids unique
                transactions[positions[transaction.id]] = transaction
            else:
                positions[transaction.id] = len(transactions)
                transactions.append(transaction)
            counts.added += 1

        for period in sorted(skipped_periods):
            logger.debug("Statement period '%s' already imported; kept local transactions", period)

        return transactions, counts

    def _prune_stale_images(
        self,
        kind: AttachmentParentKind,
        previous: Shift | Expense,
        incoming: Shift | Expense,
        warnings: list[AttachmentIOWarning],
    ) -> None:
        """Delete local image files the updated record no longer references."""
        wanted = {attachment.filename for attachment in incoming.image_attachments}
        stale = {attachment.filename for attachment in previous.image_attachments}
        stale.update(self.store.list_files(kind, previous.id))

        for filename in sorted(stale - wanted):
            try:
                self.store.delete(kind, previous.id, filename)
            except (OSError, AttachmentStoreError) as e:
                self._warn(warnings, kind, previous.id, filename, "delete", str(e))

    def _restore_attachments(
        self,
        kind: AttachmentParentKind,
        record: R,
        source_dir: Optional[Path],
        warnings: list[AttachmentIOWarning],
    ) -> R:
        """Extract a record's images, dropping attachments whose file is missing."""
        kept = []
        for attachment in record.image_attachments:
            try:
                present = self.store.extract(
                    source_dir, kind, record.id, attachment.filename
                ) or self.store.exists(kind, record.id, attachment.filename)
                reason = "backup contains no images" if source_dir is None else "image not found in backup"
            except (OSError, AttachmentStoreError) as e:
                present = False
                reason = str(e)

            if present:
                kept.append(attachment)
            else:
                self._warn(warnings, kind, record.id, attachment.filename, "extract", reason)

        if len(kept) == len(record.image_attachments):
            return record
        return replace(record, image_attachments=tuple(kept))
