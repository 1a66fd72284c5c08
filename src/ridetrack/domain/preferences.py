"""Applying backed-up preferences to the local preferences."""

import logging

from ridetrack.domain.entities import Preferences, PreferencesSnapshot

logger = logging.getLogger(__name__)


def apply_preferences_snapshot(current: Preferences, snapshot: PreferencesSnapshot) -> Preferences:
    """Overwrite local preferences with the values from a backup.

    The snapshot is applied as a single unit. Fields that older backups do
    not carry (tax and sync settings) keep their current local value.

    Args:
        current: Local preferences before the restore
        snapshot: Preferences stored in the backup

    Returns:
        New local preferences
    """

    def _or_current(value, fallback):
        return fallback if value is None else value

    restored = Preferences(
        tank_capacity=snapshot.tank_capacity,
        gas_price=snapshot.gas_price,
        standard_mileage_rate=snapshot.standard_mileage_rate,
        week_start_day=snapshot.week_start_day,
        date_format=snapshot.date_format,
        time_format=snapshot.time_format,
        time_zone_identifier=snapshot.time_zone_identifier,
        tip_deduction_enabled=_or_current(
            snapshot.tip_deduction_enabled, current.tip_deduction_enabled
        ),
        effective_personal_tax_rate=_or_current(
            snapshot.effective_personal_tax_rate, current.effective_personal_tax_rate
        ),
        incremental_sync_enabled=_or_current(
            snapshot.incremental_sync_enabled, current.incremental_sync_enabled
        ),
        sync_frequency=_or_current(snapshot.sync_frequency, current.sync_frequency),
        last_incremental_sync_date=_or_current(
            snapshot.last_incremental_sync_date, current.last_incremental_sync_date
        ),
    )
    logger.debug("Restored preferences from backup")
    return restored
