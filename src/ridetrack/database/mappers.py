"""Mapper functions to convert between domain models and SQLAlchemy models.

SQLite drops timezone information, so datetimes are stored as naive UTC and
marked as UTC again when read back.
"""

from datetime import UTC, datetime
from typing import Optional
from uuid import UUID

from ridetrack.domain import entities as domain
from ridetrack.database.models import (
    Expense as ORMExpense,
    ExpenseAttachment as ORMExpenseAttachment,
    Preferences as ORMPreferences,
    Shift as ORMShift,
    ShiftAttachment as ORMShiftAttachment,
    UberTransaction as ORMUberTransaction,
)

SHIFT_FIELDS = (
    "start_mileage",
    "start_tank_reading",
    "has_full_tank_at_start",
    "device_id",
    "is_deleted",
    "end_mileage",
    "end_tank_reading",
    "did_refuel_at_end",
    "refuel_gallons",
    "refuel_cost",
    "trips",
    "net_fare",
    "tips",
    "promotions",
    "tolls",
    "tolls_reimbursed",
    "parking_fees",
    "misc_fees",
    "gas_price",
    "standard_mileage_rate",
)

PREFERENCE_FIELDS = (
    "tank_capacity",
    "gas_price",
    "standard_mileage_rate",
    "week_start_day",
    "date_format",
    "time_format",
    "time_zone_identifier",
    "tip_deduction_enabled",
    "effective_personal_tax_rate",
    "incremental_sync_enabled",
    "sync_frequency",
)


def _to_db(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    if value.tzinfo is None:
        return value
    return value.astimezone(UTC).replace(tzinfo=None)


def _from_db(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def _uuid(value: Optional[str]) -> Optional[UUID]:
    return None if value is None else UUID(value)


def _attachment_to_domain(
    orm_attachment: ORMShiftAttachment | ORMExpenseAttachment,
) -> domain.ImageAttachment:
    return domain.ImageAttachment(
        id=UUID(orm_attachment.id),
        filename=orm_attachment.filename,
        type=orm_attachment.type,
        description=orm_attachment.description,
        date_attached=_from_db(orm_attachment.date_attached),
    )


def _attachment_columns(attachment: domain.ImageAttachment, position: int) -> dict:
    return dict(
        id=str(attachment.id),
        position=position,
        filename=attachment.filename,
        type=attachment.type,
        description=attachment.description,
        date_attached=_to_db(attachment.date_attached),
    )


def shift_to_domain(orm_shift: ORMShift) -> domain.Shift:
    """Convert SQLAlchemy Shift model to domain Shift entity."""
    return domain.Shift(
        id=UUID(orm_shift.id),
        created_date=_from_db(orm_shift.created_date),
        modified_date=_from_db(orm_shift.modified_date),
        start_date=_from_db(orm_shift.start_date),
        end_date=_from_db(orm_shift.end_date),
        image_attachments=tuple(_attachment_to_domain(a) for a in orm_shift.image_attachments),
        **{name: getattr(orm_shift, name) for name in SHIFT_FIELDS},
    )


def shift_to_orm(shift: domain.Shift, position: int = 0) -> ORMShift:
    """Convert domain Shift entity to SQLAlchemy Shift model."""
    return ORMShift(
        id=str(shift.id),
        position=position,
        created_date=_to_db(shift.created_date),
        modified_date=_to_db(shift.modified_date),
        start_date=_to_db(shift.start_date),
        end_date=_to_db(shift.end_date),
        image_attachments=[
            ORMShiftAttachment(**_attachment_columns(a, i))
            for i, a in enumerate(shift.image_attachments)
        ],
        **{name: getattr(shift, name) for name in SHIFT_FIELDS},
    )


def expense_to_domain(orm_expense: ORMExpense) -> domain.Expense:
    """Convert SQLAlchemy Expense model to domain Expense entity."""
    return domain.Expense(
        id=UUID(orm_expense.id),
        created_date=_from_db(orm_expense.created_date),
        modified_date=_from_db(orm_expense.modified_date),
        device_id=orm_expense.device_id,
        is_deleted=orm_expense.is_deleted,
        date=_from_db(orm_expense.date),
        category=domain.ExpenseCategory(orm_expense.category),
        description=orm_expense.description,
        amount=orm_expense.amount,
        image_attachments=tuple(_attachment_to_domain(a) for a in orm_expense.image_attachments),
    )


def expense_to_orm(expense: domain.Expense, position: int = 0) -> ORMExpense:
    """Convert domain Expense entity to SQLAlchemy Expense model."""
    return ORMExpense(
        id=str(expense.id),
        position=position,
        created_date=_to_db(expense.created_date),
        modified_date=_to_db(expense.modified_date),
        device_id=expense.device_id,
        is_deleted=expense.is_deleted,
        date=_to_db(expense.date),
        category=expense.category.value,
        description=expense.description,
        amount=expense.amount,
        image_attachments=[
            ORMExpenseAttachment(**_attachment_columns(a, i))
            for i, a in enumerate(expense.image_attachments)
        ],
    )


def transaction_to_domain(orm_transaction: ORMUberTransaction) -> domain.UberTransaction:
    """Convert SQLAlchemy UberTransaction model to domain UberTransaction entity."""
    return domain.UberTransaction(
        id=UUID(orm_transaction.id),
        transaction_date=_from_db(orm_transaction.transaction_date),
        event_date=_from_db(orm_transaction.event_date),
        event_type=orm_transaction.event_type,
        amount=orm_transaction.amount,
        tolls_reimbursed=orm_transaction.tolls_reimbursed,
        needs_manual_verification=orm_transaction.needs_manual_verification,
        statement_period=orm_transaction.statement_period,
        shift_id=_uuid(orm_transaction.shift_id),
        import_date=_from_db(orm_transaction.import_date),
        source_row=orm_transaction.source_row,
    )


def transaction_to_orm(
    transaction: domain.UberTransaction, position: int = 0
) -> ORMUberTransaction:
    """Convert domain UberTransaction entity to SQLAlchemy UberTransaction model."""
    return ORMUberTransaction(
        id=str(transaction.id),
        position=position,
        transaction_date=_to_db(transaction.transaction_date),
        event_date=_to_db(transaction.event_date),
        event_type=transaction.event_type,
        amount=transaction.amount,
        tolls_reimbursed=transaction.tolls_reimbursed,
        needs_manual_verification=transaction.needs_manual_verification,
        statement_period=transaction.statement_period,
        shift_id=None if transaction.shift_id is None else str(transaction.shift_id),
        import_date=_to_db(transaction.import_date),
        source_row=transaction.source_row,
    )


def preferences_to_domain(orm_preferences: ORMPreferences) -> domain.Preferences:
    """Convert SQLAlchemy Preferences model to domain Preferences entity."""
    return domain.Preferences(
        last_incremental_sync_date=_from_db(orm_preferences.last_incremental_sync_date),
        **{name: getattr(orm_preferences, name) for name in PREFERENCE_FIELDS},
    )


def apply_preferences_to_orm(
    preferences: domain.Preferences, orm_preferences: ORMPreferences
) -> None:
    """Copy domain Preferences values onto an existing SQLAlchemy row."""
    for name in PREFERENCE_FIELDS:
        setattr(orm_preferences, name, getattr(preferences, name))
    orm_preferences.last_incremental_sync_date = _to_db(preferences.last_incremental_sync_date)
