"""SQLAlchemy models for ridetrack database."""

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    create_engine,
)
from sqlalchemy.orm import Session, declarative_base, relationship, sessionmaker

Base = declarative_base()

# UUIDs are stored as their canonical string form. ``position`` keeps the
# dataset order, which restores preserve.


class Shift(Base):
    """Shift model."""

    __tablename__ = "shifts"

    id = Column(String(36), primary_key=True)
    position = Column(Integer, nullable=False, default=0)
    created_date = Column(DateTime(timezone=True), nullable=False)
    modified_date = Column(DateTime(timezone=True), nullable=False)
    device_id = Column(String, nullable=False, default="unknown")
    is_deleted = Column(Boolean, nullable=False, default=False)

    start_date = Column(DateTime(timezone=True), nullable=False)
    start_mileage = Column(Float, nullable=False)
    start_tank_reading = Column(Float, nullable=False)
    has_full_tank_at_start = Column(Boolean, nullable=False)

    end_date = Column(DateTime(timezone=True), nullable=True)
    end_mileage = Column(Float, nullable=True)
    end_tank_reading = Column(Float, nullable=True)
    did_refuel_at_end = Column(Boolean, nullable=True)
    refuel_gallons = Column(Float, nullable=True)
    refuel_cost = Column(Float, nullable=True)

    trips = Column(Integer, nullable=True)
    net_fare = Column(Float, nullable=True)
    tips = Column(Float, nullable=True)
    promotions = Column(Float, nullable=True)
    tolls = Column(Float, nullable=True)
    tolls_reimbursed = Column(Float, nullable=True)
    parking_fees = Column(Float, nullable=True)
    misc_fees = Column(Float, nullable=True)

    gas_price = Column(Float, nullable=True)
    standard_mileage_rate = Column(Float, nullable=True)

    # Relationships
    image_attachments = relationship(
        "ShiftAttachment",
        back_populates="shift",
        cascade="all, delete-orphan",
        order_by="ShiftAttachment.position",
    )


class Expense(Base):
    """Business expense model."""

    __tablename__ = "expenses"

    id = Column(String(36), primary_key=True)
    position = Column(Integer, nullable=False, default=0)
    created_date = Column(DateTime(timezone=True), nullable=False)
    modified_date = Column(DateTime(timezone=True), nullable=False)
    device_id = Column(String, nullable=False, default="unknown")
    is_deleted = Column(Boolean, nullable=False, default=False)

    date = Column(DateTime(timezone=True), nullable=False)
    category = Column(String, nullable=False)
    description = Column(String, nullable=False)
    amount = Column(Float, nullable=False)

    # Relationships
    image_attachments = relationship(
        "ExpenseAttachment",
        back_populates="expense",
        cascade="all, delete-orphan",
        order_by="ExpenseAttachment.position",
    )


class ShiftAttachment(Base):
    """Image attachment metadata of a shift."""

    __tablename__ = "shift_attachments"

    row_id = Column(Integer, primary_key=True)
    id = Column(String(36), nullable=False)
    shift_id = Column(String(36), ForeignKey("shifts.id"), nullable=False)
    position = Column(Integer, nullable=False, default=0)
    filename = Column(String, nullable=False)
    type = Column(String, nullable=False, default="Other")
    description = Column(String, nullable=True)
    date_attached = Column(DateTime(timezone=True), nullable=False)

    # Relationships
    shift = relationship("Shift", back_populates="image_attachments")


class ExpenseAttachment(Base):
    """Image attachment metadata of an expense."""

    __tablename__ = "expense_attachments"

    row_id = Column(Integer, primary_key=True)
    id = Column(String(36), nullable=False)
    expense_id = Column(String(36), ForeignKey("expenses.id"), nullable=False)
    position = Column(Integer, nullable=False, default=0)
    filename = Column(String, nullable=False)
    type = Column(String, nullable=False, default="Other")
    description = Column(String, nullable=True)
    date_attached = Column(DateTime(timezone=True), nullable=False)

    # Relationships
    expense = relationship("Expense", back_populates="image_attachments")


class UberTransaction(Base):
    """Imported earnings event model."""

    __tablename__ = "uber_transactions"

    id = Column(String(36), primary_key=True)
    position = Column(Integer, nullable=False, default=0)
    transaction_date = Column(DateTime(timezone=True), nullable=False)
    event_date = Column(DateTime(timezone=True), nullable=True)
    event_type = Column(String, nullable=False)
    amount = Column(Float, nullable=False)
    tolls_reimbursed = Column(Float, nullable=True)
    needs_manual_verification = Column(Boolean, nullable=False, default=False)
    statement_period = Column(String, nullable=False, index=True)
    shift_id = Column(String(36), nullable=True)
    import_date = Column(DateTime(timezone=True), nullable=False)
    source_row = Column(Integer, nullable=False, default=0)


class Preferences(Base):
    """Application preferences, stored as a single row."""

    __tablename__ = "preferences"

    id = Column(Integer, primary_key=True)
    tank_capacity = Column(Float, nullable=False)
    gas_price = Column(Float, nullable=False)
    standard_mileage_rate = Column(Float, nullable=False)
    week_start_day = Column(Integer, nullable=False)
    date_format = Column(String, nullable=False)
    time_format = Column(String, nullable=False)
    time_zone_identifier = Column(String, nullable=False)
    tip_deduction_enabled = Column(Boolean, nullable=False)
    effective_personal_tax_rate = Column(Float, nullable=False)
    incremental_sync_enabled = Column(Boolean, nullable=False)
    sync_frequency = Column(String, nullable=False)
    last_incremental_sync_date = Column(DateTime(timezone=True), nullable=True)


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    engine = create_engine(database_url, echo=False)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)
