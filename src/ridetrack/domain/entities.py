"""Domain model entities for ridetrack.

These are pure data classes representing the tracked records, independent of
both the database schema and the backup manifest schema. Records are
immutable; reconciliation replaces a record wholesale instead of editing it.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import UUID


class AttachmentParentKind(str, Enum):
    """Entity category an image attachment belongs to.

    The value is the folder name used by the attachment store and the
    backup image tree.
    """

    SHIFT = "shifts"
    EXPENSE = "expenses"


class ExpenseCategory(str, Enum):
    """Expense category."""

    VEHICLE = "Vehicle"
    EQUIPMENT = "Equipment"
    SUPPLIES = "Supplies"
    AMENITIES = "Amenities"


ATTACHMENT_TYPES = (
    "Receipt",
    "App Screenshot",
    "Gas Pump",
    "Dashboard",
    "Vehicle Damage",
    "Cleaning Required",
    "Maintenance",
    "Imported Toll Summary",
    "Imported Uber Transactions",
    "Other",
)


@dataclass(frozen=True)
class ImageAttachment:
    """Image attached to a shift or expense."""

    id: UUID
    filename: str
    type: str
    date_attached: datetime
    description: Optional[str] = None


@dataclass(frozen=True)
class Shift:
    """Rideshare shift domain entity."""

    id: UUID
    start_date: datetime
    start_mileage: float
    start_tank_reading: float
    has_full_tank_at_start: bool
    created_date: datetime
    modified_date: datetime
    device_id: str = "unknown"
    is_deleted: bool = False
    end_date: Optional[datetime] = None
    end_mileage: Optional[float] = None
    end_tank_reading: Optional[float] = None
    did_refuel_at_end: Optional[bool] = None
    refuel_gallons: Optional[float] = None
    refuel_cost: Optional[float] = None
    trips: Optional[int] = None
    net_fare: Optional[float] = None
    tips: Optional[float] = None
    promotions: Optional[float] = None
    tolls: Optional[float] = None
    tolls_reimbursed: Optional[float] = None
    parking_fees: Optional[float] = None
    misc_fees: Optional[float] = None
    gas_price: Optional[float] = None
    standard_mileage_rate: Optional[float] = None
    image_attachments: tuple[ImageAttachment, ...] = ()


@dataclass(frozen=True)
class Expense:
    """Business expense domain entity."""

    id: UUID
    date: datetime
    category: ExpenseCategory
    description: str
    amount: float
    created_date: datetime
    modified_date: datetime
    device_id: str = "unknown"
    is_deleted: bool = False
    image_attachments: tuple[ImageAttachment, ...] = ()


@dataclass(frozen=True)
class UberTransaction:
    """Earnings event imported from a statement.

    Transactions are deduplicated by ``statement_period``, not by ``id``:
    all transactions of one period are restored or skipped together.
    """

    id: UUID
    transaction_date: datetime
    event_type: str
    amount: float
    statement_period: str
    import_date: datetime
    event_date: Optional[datetime] = None
    tolls_reimbursed: Optional[float] = None
    needs_manual_verification: bool = False
    shift_id: Optional[UUID] = None
    source_row: int = 0


@dataclass(frozen=True)
class PreferencesSnapshot:
    """Preference values as stored in a backup.

    Optional fields are absent in backups made by older app versions.
    """

    tank_capacity: float
    gas_price: float
    standard_mileage_rate: float
    week_start_day: int
    date_format: str
    time_format: str
    time_zone_identifier: str
    tip_deduction_enabled: Optional[bool] = None
    effective_personal_tax_rate: Optional[float] = None
    incremental_sync_enabled: Optional[bool] = None
    sync_frequency: Optional[str] = None
    last_incremental_sync_date: Optional[datetime] = None


@dataclass(frozen=True)
class Preferences:
    """Local application preferences."""

    tank_capacity: float = 14.3
    gas_price: float = 3.50
    standard_mileage_rate: float = 0.70
    week_start_day: int = 2
    date_format: str = "M/d/yyyy"
    time_format: str = "h:mm a"
    time_zone_identifier: str = "UTC"
    tip_deduction_enabled: bool = True
    effective_personal_tax_rate: float = 22.0
    incremental_sync_enabled: bool = False
    sync_frequency: str = "Immediate"
    last_incremental_sync_date: Optional[datetime] = None

    def to_snapshot(self) -> PreferencesSnapshot:
        """Return the backup representation of these preferences."""
        return PreferencesSnapshot(
            tank_capacity=self.tank_capacity,
            gas_price=self.gas_price,
            standard_mileage_rate=self.standard_mileage_rate,
            week_start_day=self.week_start_day,
            date_format=self.date_format,
            time_format=self.time_format,
            time_zone_identifier=self.time_zone_identifier,
            tip_deduction_enabled=self.tip_deduction_enabled,
            effective_personal_tax_rate=self.effective_personal_tax_rate,
            incremental_sync_enabled=self.incremental_sync_enabled,
            sync_frequency=self.sync_frequency,
            last_incremental_sync_date=self.last_incremental_sync_date,
        )


@dataclass
class LocalDataset:
    """The running local dataset a restore reconciles into.

    Owned exclusively by the reconciliation engine for the duration of a
    restore call.
    """

    shifts: list[Shift] = field(default_factory=list)
    expenses: list[Expense] = field(default_factory=list)
    transactions: list[UberTransaction] = field(default_factory=list)
    preferences: Preferences = field(default_factory=Preferences)
