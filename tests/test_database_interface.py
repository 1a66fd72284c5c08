"""Tests for Database interface returning domain models."""

import pytest
from datetime import datetime, timezone

from ridetrack.database.factories import create_attachment_store, create_sqlite_database
from ridetrack.domain import entities
from ridetrack.storage.filesystem import FilesystemAttachmentStore
from conftest import make_attachment, make_expense, make_shift, make_transaction


class TestDatabaseInterface:
    """Tests to verify Database interface returns domain models."""

    def test_add_and_list_shifts(self, temp_db):
        """Test that list_shifts returns domain Shift entities in order."""
        first = make_shift(image_attachments=(make_attachment("a.jpg"), make_attachment("b.jpg")))
        second = make_shift(refuel_gallons=9.5, did_refuel_at_end=True)
        temp_db.add_shift(first)
        temp_db.add_shift(second)

        shifts = temp_db.list_shifts()

        assert shifts == [first, second]
        assert isinstance(shifts[0], entities.Shift)
        assert [a.filename for a in shifts[0].image_attachments] == ["a.jpg", "b.jpg"]
        assert shifts[0].start_date.tzinfo is not None

    def test_add_duplicate_shift(self, temp_db):
        """Test that adding a shift twice is rejected."""
        shift = make_shift()
        temp_db.add_shift(shift)
        with pytest.raises(ValueError, match="already exists"):
            temp_db.add_shift(shift)

    def test_add_and_list_expenses(self, temp_db):
        """Test that list_expenses returns domain Expense entities."""
        expense = make_expense(
            category=entities.ExpenseCategory.EQUIPMENT,
            image_attachments=(make_attachment("r.jpg", description="Phone mount"),),
        )
        temp_db.add_expense(expense)

        expenses = temp_db.list_expenses()

        assert expenses == [expense]
        assert expenses[0].category is entities.ExpenseCategory.EQUIPMENT

    def test_add_transactions_skips_known_ids(self, temp_db):
        """Test adding transactions skips ids that are already stored."""
        p1 = make_transaction("P1", shift_id=make_shift().id)
        p2 = make_transaction("P2")

        assert temp_db.add_transactions([p1, p2]) == 2
        assert temp_db.add_transactions([p1]) == 0

        assert temp_db.list_transactions() == [p1, p2]

    def test_preferences_default(self, temp_db):
        """Test that get_preferences returns defaults on a fresh database."""
        assert temp_db.get_preferences() == entities.Preferences()

    def test_save_preferences(self, temp_db):
        """Test saving and reading back preferences."""
        prefs = entities.Preferences(
            gas_price=4.19,
            sync_frequency="Daily",
            last_incremental_sync_date=datetime(2025, 5, 1, 8, tzinfo=timezone.utc),
        )
        temp_db.save_preferences(prefs)
        temp_db.save_preferences(prefs)

        assert temp_db.get_preferences() == prefs


class TestDatasetPersistence:
    """Tests for loading and saving whole datasets."""

    def test_load_empty(self, temp_db):
        """Test loading a fresh database."""
        dataset = temp_db.load_dataset()
        assert dataset == entities.LocalDataset()

    def test_save_replaces_all_rows(self, temp_db):
        """Test that save_dataset replaces stored records."""
        temp_db.add_shift(make_shift(image_attachments=(make_attachment("old.jpg"),)))
        temp_db.add_expense(make_expense(image_attachments=(make_attachment("old.jpg"),)))
        temp_db.add_transactions([make_transaction("P0")])

        dataset = entities.LocalDataset(
            shifts=[make_shift(), make_shift(image_attachments=(make_attachment("x.jpg"),))],
            expenses=[make_expense()],
            transactions=[make_transaction("P1"), make_transaction("P1")],
            preferences=entities.Preferences(tank_capacity=18.0),
        )
        temp_db.save_dataset(dataset)

        assert temp_db.load_dataset() == dataset

    def test_save_reloaded_dataset(self, temp_db):
        """Test saving a dataset that was loaded from the same session."""
        shift = make_shift(image_attachments=(make_attachment("a.jpg"),))
        temp_db.add_shift(shift)

        dataset = temp_db.load_dataset()
        dataset.shifts.append(make_shift())
        temp_db.save_dataset(dataset)

        assert temp_db.list_shifts() == dataset.shifts

    def test_persists_across_connections(self, temp_db):
        """Test that a saved dataset is visible to a new database instance."""
        dataset = entities.LocalDataset(shifts=[make_shift()], transactions=[make_transaction()])
        temp_db.save_dataset(dataset)

        other = create_sqlite_database(database_path=temp_db.database_path)
        try:
            assert other.load_dataset() == dataset
        finally:
            other.disconnect()


class TestFactories:
    """Tests for the configuration of database and store factories."""

    def test_database_path_from_env(self, tmp_path, monkeypatch):
        """Test that RIDETRACK_DB_PATH selects the database file."""
        db_path = tmp_path / "env.db"
        monkeypatch.setenv("RIDETRACK_DB_PATH", str(db_path))

        db = create_sqlite_database()

        assert db.database_url == f"sqlite:///{db_path}"
        db.disconnect()

    def test_store_root_from_argument(self, tmp_path):
        """Test creating a store with an explicit root."""
        store = create_attachment_store(str(tmp_path / "data"))
        assert isinstance(store, FilesystemAttachmentStore)
        assert store.root == tmp_path / "data"

    def test_store_root_from_env(self, tmp_path, monkeypatch):
        """Test that RIDETRACK_DATA_DIR selects the store root."""
        monkeypatch.setenv("RIDETRACK_DATA_DIR", str(tmp_path))
        assert create_attachment_store().images_dir == tmp_path / "Images"
