"""Wire schema for the backup manifest (``backup.json``).

The pydantic models mirror the JSON layout written by the app (camelCase
keys) and validate it. Conversion functions map between these models and the
domain entities, so the domain layer never depends on the wire format.
"""

from datetime import datetime
from typing import Annotated, Any, Optional
from uuid import UUID

from pydantic import (
    AliasChoices,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    PlainSerializer,
    field_validator,
)
from pydantic.alias_generators import to_camel

from ridetrack.domain.entities import (
    ATTACHMENT_TYPES,
    Expense,
    ExpenseCategory,
    ImageAttachment,
    PreferencesSnapshot,
    Shift,
    UberTransaction,
)
from ridetrack.utils.date_parser import format_timestamp, parse_timestamp

Timestamp = Annotated[
    datetime,
    BeforeValidator(parse_timestamp),
    PlainSerializer(format_timestamp, return_type=str),
]


class _WireModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class ImageAttachmentModel(_WireModel):
    id: UUID
    filename: str
    type: str = "Other"
    description: Optional[str] = None
    date_attached: Timestamp = Field(
        alias="dateAttached",
        validation_alias=AliasChoices("dateAttached", "createdDate", "date_attached"),
    )

    @field_validator("type")
    @classmethod
    def normalize_type(cls, v: str) -> str:
        """Unknown attachment types from newer app versions become 'Other'."""
        return v if v in ATTACHMENT_TYPES else "Other"


class ShiftModel(_WireModel):
    id: UUID
    created_date: Optional[Timestamp] = None
    modified_date: Optional[Timestamp] = None
    device_id: Optional[str] = Field(default=None, alias="deviceID")
    is_deleted: Optional[bool] = None

    start_date: Timestamp
    start_mileage: float
    start_tank_reading: float
    has_full_tank_at_start: bool

    end_date: Optional[Timestamp] = None
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

    image_attachments: list[ImageAttachmentModel] = Field(default_factory=list)


class ExpenseModel(_WireModel):
    id: UUID
    created_date: Optional[Timestamp] = None
    modified_date: Optional[Timestamp] = None
    device_id: Optional[str] = Field(default=None, alias="deviceID")
    is_deleted: Optional[bool] = None

    date: Timestamp
    category: ExpenseCategory
    description: str
    amount: float
    image_attachments: list[ImageAttachmentModel] = Field(default_factory=list)


class UberTransactionModel(_WireModel):
    id: UUID
    transaction_date: Timestamp
    event_date: Optional[Timestamp] = None
    event_type: str
    amount: float
    tolls_reimbursed: Optional[float] = None
    needs_manual_verification: bool = False
    statement_period: str
    shift_id: Optional[UUID] = Field(default=None, alias="shiftID")
    import_date: Timestamp
    source_row: int = 0


class PreferencesModel(_WireModel):
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
    last_incremental_sync_date: Optional[Timestamp] = None


class ManifestModel(_WireModel):
    shifts: Optional[list[ShiftModel]] = None
    expenses: Optional[list[ExpenseModel]] = None
    uber_transactions: Optional[list[UberTransactionModel]] = None
    preferences: PreferencesModel
    export_date: Timestamp
    app_version: str = "unknown"


# Model -> domain


def attachments_from_models(models: list[ImageAttachmentModel]) -> tuple[ImageAttachment, ...]:
    """Convert attachment models, keeping the first entry per filename."""
    seen: set[str] = set()
    attachments = []
    for model in models:
        if model.filename in seen:
            continue
        seen.add(model.filename)
        attachments.append(
            ImageAttachment(
                id=model.id,
                filename=model.filename,
                type=model.type,
                date_attached=model.date_attached,
                description=model.description,
            )
        )
    return tuple(attachments)


def shift_from_model(model: ShiftModel) -> Shift:
    """Convert a manifest shift to a domain Shift.

    Sync metadata missing from older backups falls back to the shift's own
    dates, as the app does when decoding.
    """
    return Shift(
        id=model.id,
        created_date=model.created_date or model.start_date,
        modified_date=model.modified_date or model.end_date or model.start_date,
        device_id=model.device_id or "unknown",
        is_deleted=bool(model.is_deleted),
        start_date=model.start_date,
        start_mileage=model.start_mileage,
        start_tank_reading=model.start_tank_reading,
        has_full_tank_at_start=model.has_full_tank_at_start,
        end_date=model.end_date,
        end_mileage=model.end_mileage,
        end_tank_reading=model.end_tank_reading,
        did_refuel_at_end=model.did_refuel_at_end,
        refuel_gallons=model.refuel_gallons,
        refuel_cost=model.refuel_cost,
        trips=model.trips,
        net_fare=model.net_fare,
        tips=model.tips,
        promotions=model.promotions,
        tolls=model.tolls,
        tolls_reimbursed=model.tolls_reimbursed,
        parking_fees=model.parking_fees,
        misc_fees=model.misc_fees,
        gas_price=model.gas_price,
        standard_mileage_rate=model.standard_mileage_rate,
        image_attachments=attachments_from_models(model.image_attachments),
    )


def expense_from_model(model: ExpenseModel) -> Expense:
    """Convert a manifest expense to a domain Expense."""
    return Expense(
        id=model.id,
        created_date=model.created_date or model.date,
        modified_date=model.modified_date or model.date,
        device_id=model.device_id or "unknown",
        is_deleted=bool(model.is_deleted),
        date=model.date,
        category=model.category,
        description=model.description,
        amount=model.amount,
        image_attachments=attachments_from_models(model.image_attachments),
    )


def transaction_from_model(model: UberTransactionModel) -> UberTransaction:
    """Convert a manifest transaction to a domain UberTransaction."""
    return UberTransaction(
        id=model.id,
        transaction_date=model.transaction_date,
        event_date=model.event_date,
        event_type=model.event_type,
        amount=model.amount,
        tolls_reimbursed=model.tolls_reimbursed,
        needs_manual_verification=model.needs_manual_verification,
        statement_period=model.statement_period,
        shift_id=model.shift_id,
        import_date=model.import_date,
        source_row=model.source_row,
    )


def preferences_from_model(model: PreferencesModel) -> PreferencesSnapshot:
    """Convert manifest preferences to a domain PreferencesSnapshot."""
    return PreferencesSnapshot(
        tank_capacity=model.tank_capacity,
        gas_price=model.gas_price,
        standard_mileage_rate=model.standard_mileage_rate,
        week_start_day=model.week_start_day,
        date_format=model.date_format,
        time_format=model.time_format,
        time_zone_identifier=model.time_zone_identifier,
        tip_deduction_enabled=model.tip_deduction_enabled,
        effective_personal_tax_rate=model.effective_personal_tax_rate,
        incremental_sync_enabled=model.incremental_sync_enabled,
        sync_frequency=model.sync_frequency,
        last_incremental_sync_date=model.last_incremental_sync_date,
    )


# Domain -> model


def _attachment_to_model(attachment: ImageAttachment) -> ImageAttachmentModel:
    return ImageAttachmentModel(
        id=attachment.id,
        filename=attachment.filename,
        type=attachment.type,
        description=attachment.description,
        date_attached=attachment.date_attached,
    )


def _fields_of(entity: Any, exclude: tuple[str, ...] = ()) -> dict[str, Any]:
    return {
        name: getattr(entity, name)
        for name in entity.__dataclass_fields__
        if name not in exclude
    }


def shift_to_model(shift: Shift) -> ShiftModel:
    """Convert a domain Shift to its manifest model."""
    return ShiftModel(
        **_fields_of(shift, exclude=("image_attachments",)),
        image_attachments=[_attachment_to_model(a) for a in shift.image_attachments],
    )


def expense_to_model(expense: Expense) -> ExpenseModel:
    """Convert a domain Expense to its manifest model."""
    return ExpenseModel(
        **_fields_of(expense, exclude=("image_attachments",)),
        image_attachments=[_attachment_to_model(a) for a in expense.image_attachments],
    )


def transaction_to_model(transaction: UberTransaction) -> UberTransactionModel:
    """Convert a domain UberTransaction to its manifest model."""
    return UberTransactionModel(**_fields_of(transaction))


def preferences_to_model(snapshot: PreferencesSnapshot) -> PreferencesModel:
    """Convert a domain PreferencesSnapshot to its manifest model."""
    return PreferencesModel(**_fields_of(snapshot))
