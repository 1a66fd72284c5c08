"""Tests for applying backed-up preferences."""

from datetime import datetime, timezone

from ridetrack.domain.entities import Preferences
from ridetrack.domain.preferences import apply_preferences_snapshot
from conftest import make_snapshot


def test_required_fields_overwritten():
    """Test that required snapshot fields replace local values."""
    result = apply_preferences_snapshot(Preferences(), make_snapshot())

    assert result.tank_capacity == 16.0
    assert result.gas_price == 3.89
    assert result.standard_mileage_rate == 0.67
    assert result.week_start_day == 1
    assert result.date_format == "yyyy-MM-dd"
    assert result.time_format == "HH:mm"
    assert result.time_zone_identifier == "America/Chicago"


def test_optional_fields_overwritten_when_present():
    """Test that optional fields in the snapshot are applied."""
    sync_date = datetime(2025, 9, 1, tzinfo=timezone.utc)
    result = apply_preferences_snapshot(
        Preferences(), make_snapshot(last_incremental_sync_date=sync_date)
    )

    assert result.tip_deduction_enabled is False
    assert result.effective_personal_tax_rate == 18.5
    assert result.incremental_sync_enabled is True
    assert result.sync_frequency == "Daily"
    assert result.last_incremental_sync_date == sync_date


def test_absent_optional_fields_keep_current():
    """Test backups from older versions without tax and sync settings."""
    current = Preferences(
        tip_deduction_enabled=False,
        effective_personal_tax_rate=30.0,
        incremental_sync_enabled=True,
        sync_frequency="Weekly",
    )
    snapshot = make_snapshot(
        tip_deduction_enabled=None,
        effective_personal_tax_rate=None,
        incremental_sync_enabled=None,
        sync_frequency=None,
    )

    result = apply_preferences_snapshot(current, snapshot)

    assert result.tip_deduction_enabled is False
    assert result.effective_personal_tax_rate == 30.0
    assert result.incremental_sync_enabled is True
    assert result.sync_frequency == "Weekly"
    assert result.gas_price == 3.89


def test_current_preferences_not_mutated():
    """Test that the input preferences object is left as it was."""
    current = Preferences()
    apply_preferences_snapshot(current, make_snapshot())
    assert current == Preferences()
