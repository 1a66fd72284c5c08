"""Tests for domain entities."""

import pytest
from dataclasses import FrozenInstanceError

from ridetrack.domain.entities import (
    AttachmentParentKind,
    ExpenseCategory,
    LocalDataset,
    Preferences,
)
from conftest import make_attachment, make_expense, make_shift, make_transaction


class TestShift:
    """Tests for Shift entity."""

    def test_defaults(self):
        """Test optional shift fields default to empty."""
        shift = make_shift()
        assert shift.is_deleted is False
        assert shift.refuel_gallons is None
        assert shift.image_attachments == ()

    def test_shift_immutability(self):
        """Test that Shift entities are immutable."""
        shift = make_shift()
        with pytest.raises(FrozenInstanceError):
            shift.tips = 10.0

    def test_shift_with_attachments(self):
        """Test a shift carrying image attachments."""
        shift = make_shift(image_attachments=(make_attachment("a.jpg"), make_attachment("b.jpg")))
        assert [a.filename for a in shift.image_attachments] == ["a.jpg", "b.jpg"]


class TestExpense:
    """Tests for Expense entity."""

    def test_create_expense(self):
        """Test creating an Expense entity."""
        expense = make_expense(category=ExpenseCategory.SUPPLIES, amount=12.5)
        assert expense.category is ExpenseCategory.SUPPLIES
        assert expense.amount == 12.5
        assert expense.device_id == "unknown"

    def test_category_values(self):
        """Test expense category wire values."""
        assert ExpenseCategory("Vehicle") is ExpenseCategory.VEHICLE
        assert [c.value for c in ExpenseCategory] == [
            "Vehicle",
            "Equipment",
            "Supplies",
            "Amenities",
        ]


class TestUberTransaction:
    """Tests for UberTransaction entity."""

    def test_create_transaction(self):
        """Test creating an UberTransaction entity."""
        transaction = make_transaction("Period A", amount=-2.5)
        assert transaction.statement_period == "Period A"
        assert transaction.amount == -2.5
        assert transaction.shift_id is None
        assert transaction.needs_manual_verification is False


class TestPreferences:
    """Tests for local Preferences."""

    def test_defaults(self):
        """Test the application's default preferences."""
        prefs = Preferences()
        assert prefs.tank_capacity == 14.3
        assert prefs.gas_price == 3.50
        assert prefs.standard_mileage_rate == 0.70
        assert prefs.week_start_day == 2
        assert prefs.date_format == "M/d/yyyy"
        assert prefs.time_format == "h:mm a"
        assert prefs.tip_deduction_enabled is True
        assert prefs.effective_personal_tax_rate == 22.0
        assert prefs.incremental_sync_enabled is False
        assert prefs.sync_frequency == "Immediate"
        assert prefs.last_incremental_sync_date is None

    def test_to_snapshot(self):
        """Test converting preferences to their backup form."""
        snapshot = Preferences(gas_price=4.10, sync_frequency="Weekly").to_snapshot()
        assert snapshot.gas_price == 4.10
        assert snapshot.sync_frequency == "Weekly"
        assert snapshot.tip_deduction_enabled is True


def test_attachment_parent_kind_folder_names():
    """Test that parent kinds map to store folder names."""
    assert AttachmentParentKind.SHIFT.value == "shifts"
    assert AttachmentParentKind.EXPENSE.value == "expenses"


def test_local_dataset_defaults_are_independent():
    """Test that each dataset gets its own lists."""
    first = LocalDataset()
    second = LocalDataset()
    first.shifts.append(make_shift())
    assert second.shifts == []
    assert second.preferences == Preferences()
