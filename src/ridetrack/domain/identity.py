"""Classification of incoming backup records against the local dataset.

Shifts and expenses are identified by their UUID. Transactions are
identified by their statement period: once a period exists locally, every
incoming transaction from that period is a duplicate, whatever its UUID.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Optional
from uuid import UUID

from ridetrack.domain.entities import Expense, LocalDataset, Shift, UberTransaction


class Classification(str, Enum):
    """How an incoming record relates to the local dataset."""

    NEW = "new"
    DUPLICATE_BY_ID = "duplicate_by_id"
    DUPLICATE_BY_PERIOD = "duplicate_by_period"


@dataclass(frozen=True)
class IdentityResolution:
    """Classification of every bundle record, keyed per entity class."""

    shifts: dict[UUID, Classification] = field(default_factory=dict)
    expenses: dict[UUID, Classification] = field(default_factory=dict)
    transactions: dict[UUID, Classification] = field(default_factory=dict)
    known_periods: frozenset[str] = frozenset()


def classify_by_id(
    incoming: Iterable[Shift | Expense], local: Iterable[Shift | Expense]
) -> dict[UUID, Classification]:
    """Classify ID-keyed records as NEW or DUPLICATE_BY_ID."""
    local_ids = {record.id for record in local}
    return {
        record.id: (
            Classification.DUPLICATE_BY_ID if record.id in local_ids else Classification.NEW
        )
        for record in incoming
    }


def known_statement_periods(local: Iterable[UberTransaction]) -> frozenset[str]:
    """Return the statement periods present in the local transactions."""
    return frozenset(transaction.statement_period for transaction in local)


def classify_by_period(
    incoming: Iterable[UberTransaction], known_periods: frozenset[str]
) -> dict[UUID, Classification]:
    """Classify transactions as NEW or DUPLICATE_BY_PERIOD.

    ``known_periods`` must be computed once per restore so that every
    transaction of a period gets the same classification.
    """
    return {
        transaction.id: (
            Classification.DUPLICATE_BY_PERIOD
            if transaction.statement_period in known_periods
            else Classification.NEW
        )
        for transaction in incoming
    }


def resolve_identities(
    shifts: Iterable[Shift],
    expenses: Optional[Iterable[Expense]],
    transactions: Optional[Iterable[UberTransaction]],
    dataset: LocalDataset,
) -> IdentityResolution:
    """Classify all bundle records against the current local dataset.

    Args:
        shifts: Bundle shifts
        expenses: Bundle expenses, or None if the bundle has none
        transactions: Bundle transactions, or None if the bundle has none
        dataset: Local dataset before any mutation

    Returns:
        IdentityResolution for the whole restore
    """
    periods = known_statement_periods(dataset.transactions)
    return IdentityResolution(
        shifts=classify_by_id(shifts, dataset.shifts),
        expenses=classify_by_id(expenses or [], dataset.expenses),
        transactions=classify_by_period(transactions or [], periods),
        known_periods=periods,
    )
