"""Shared pytest fixtures for ridetrack tests."""

import json
import os
import tempfile
import zipfile
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Optional
from uuid import UUID, uuid4

import pytest

from ridetrack.database.factories import create_sqlite_database
from ridetrack.domain.backup_codec import Bundle
from ridetrack.domain.entities import (
    Expense,
    ExpenseCategory,
    ImageAttachment,
    LocalDataset,
    PreferencesSnapshot,
    Shift,
    UberTransaction,
)
from ridetrack.storage.filesystem import FilesystemAttachmentStore

BASE_TIME = datetime(2025, 3, 1, 9, 0, tzinfo=timezone.utc)


def make_attachment(filename: str = "receipt.jpg", **overrides) -> ImageAttachment:
    """Build an ImageAttachment with sensible defaults."""
    values = dict(
        id=uuid4(),
        filename=filename,
        type="Receipt",
        date_attached=BASE_TIME,
        description=None,
    )
    values.update(overrides)
    return ImageAttachment(**values)


def make_shift(id: Optional[UUID] = None, **overrides) -> Shift:
    """Build a Shift with sensible defaults."""
    values = dict(
        id=id or uuid4(),
        start_date=BASE_TIME,
        start_mileage=1000.0,
        start_tank_reading=8.0,
        has_full_tank_at_start=True,
        created_date=BASE_TIME,
        modified_date=BASE_TIME,
        device_id="test-device",
        end_date=BASE_TIME + timedelta(hours=6),
        end_mileage=1120.0,
        trips=12,
        net_fare=150.25,
        tips=30.0,
    )
    values.update(overrides)
    return Shift(**values)


def make_expense(id: Optional[UUID] = None, **overrides) -> Expense:
    """Build an Expense with sensible defaults."""
    values = dict(
        id=id or uuid4(),
        date=BASE_TIME,
        category=ExpenseCategory.VEHICLE,
        description="Oil change",
        amount=49.99,
        created_date=BASE_TIME,
        modified_date=BASE_TIME,
    )
    values.update(overrides)
    return Expense(**values)


def make_transaction(
    statement_period: str = "Feb 24, 2025 - Mar 3, 2025", id: Optional[UUID] = None, **overrides
) -> UberTransaction:
    """Build an UberTransaction with sensible defaults."""
    values = dict(
        id=id or uuid4(),
        transaction_date=BASE_TIME,
        event_type="Tip",
        amount=5.0,
        statement_period=statement_period,
        import_date=BASE_TIME + timedelta(days=7),
    )
    values.update(overrides)
    return UberTransaction(**values)


def make_snapshot(**overrides) -> PreferencesSnapshot:
    """Build a PreferencesSnapshot that differs from the local defaults."""
    values = dict(
        tank_capacity=16.0,
        gas_price=3.89,
        standard_mileage_rate=0.67,
        week_start_day=1,
        date_format="yyyy-MM-dd",
        time_format="HH:mm",
        time_zone_identifier="America/Chicago",
        tip_deduction_enabled=False,
        effective_personal_tax_rate=18.5,
        incremental_sync_enabled=True,
        sync_frequency="Daily",
    )
    values.update(overrides)
    return PreferencesSnapshot(**values)


def make_bundle(
    shifts=(),
    expenses=(),
    transactions=(),
    preferences: Optional[PreferencesSnapshot] = None,
    source_dir: Optional[Path] = None,
) -> Bundle:
    """Build an in-memory Bundle. Pass None for expenses/transactions to omit them."""
    return Bundle(
        shifts=list(shifts),
        expenses=None if expenses is None else list(expenses),
        transactions=None if transactions is None else list(transactions),
        preferences=preferences or make_snapshot(),
        export_date=BASE_TIME + timedelta(days=30),
        app_version="1.0",
        source_dir=source_dir,
    )


def add_bundle_image(
    source_dir: Path,
    kind: str,
    parent_id: UUID,
    filename: str,
    data: bytes = b"image-bytes",
    thumbnail: Optional[bytes] = b"thumb-bytes",
) -> None:
    """Place an image (and thumbnail) in an extracted bundle folder."""
    image_dir = source_dir / "Images" / kind / str(parent_id).upper()
    image_dir.mkdir(parents=True, exist_ok=True)
    (image_dir / filename).write_bytes(data)
    if thumbnail is not None:
        thumb_dir = source_dir / "Thumbnails" / kind / str(parent_id).upper()
        thumb_dir.mkdir(parents=True, exist_ok=True)
        (thumb_dir / filename).write_bytes(thumbnail)


def manifest_dict(**overrides) -> dict:
    """Return a minimal valid backup.json payload."""
    payload = {
        "shifts": [],
        "expenses": [],
        "uberTransactions": [],
        "preferences": {
            "tankCapacity": 15.0,
            "gasPrice": 3.25,
            "standardMileageRate": 0.7,
            "weekStartDay": 2,
            "dateFormat": "M/d/yyyy",
            "timeFormat": "h:mm a",
            "timeZoneIdentifier": "America/New_York",
        },
        "exportDate": "2025-10-18T14:30:00Z",
        "appVersion": "1.2",
    }
    payload.update(overrides)
    return payload


def write_zip(path: Path, entries: dict[str, bytes]) -> Path:
    """Write a zip archive with the given member names and contents."""
    with zipfile.ZipFile(path, "w") as archive:
        for name, data in entries.items():
            archive.writestr(name, data)
    return path


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    # Create a temporary file for the database
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    # Create database
    db = create_sqlite_database(database_path=db_path)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    # Cleanup
    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def store(tmp_path):
    """Create an attachment store in a temporary directory."""
    return FilesystemAttachmentStore(tmp_path / "store")


@pytest.fixture
def bundle_dir(tmp_path):
    """Return an empty extracted-bundle folder."""
    directory = tmp_path / "bundle" / "RideshareBackup_TEST"
    directory.mkdir(parents=True)
    return directory


@pytest.fixture
def dataset():
    """Create an empty local dataset."""
    return LocalDataset()


@pytest.fixture
def manifest_payload():
    """Return a minimal valid manifest payload."""
    return manifest_dict()


@pytest.fixture
def legacy_backup_file(tmp_path):
    """Write a legacy manifest-only backup file."""
    payload = manifest_dict(
        shifts=[
            {
                "id": "6F1D6D2C-6C53-4F7B-9A4E-3B1E2C0D9A11",
                "startDate": "2025-01-05T08:00:00Z",
                "startMileage": 500,
                "startTankReading": 6,
                "hasFullTankAtStart": False,
                "endDate": "2025-01-05T14:00:00Z",
            }
        ],
    )
    del payload["uberTransactions"]
    path = tmp_path / "legacy_backup.json"
    path.write_text(json.dumps(payload))
    return path


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()
