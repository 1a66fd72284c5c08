"""Integration tests for end-to-end workflows."""

from ridetrack.cli.main import cli
from ridetrack.database.factories import create_attachment_store, create_sqlite_database
from ridetrack.domain.entities import AttachmentParentKind, Preferences
from conftest import make_attachment, make_expense, make_shift, make_transaction


def test_move_data_to_new_device(cli_runner, temp_db, tmp_path):
    """Test workflow: populate → backup → restore on an empty install → merge again."""
    old_data = tmp_path / "old"
    new_data = tmp_path / "new"
    new_db_path = tmp_path / "new.db"

    # Step 1: Populate the old install
    shift = make_shift(image_attachments=(make_attachment("dash.jpg"),))
    expense = make_expense(image_attachments=(make_attachment("receipt.jpg"),))
    temp_db.add_shift(shift)
    temp_db.add_expense(expense)
    temp_db.add_transactions([make_transaction("P1"), make_transaction("P2")])
    temp_db.save_preferences(Preferences(tank_capacity=20.0, sync_frequency="Weekly"))
    old_store = create_attachment_store(str(old_data))
    old_store.write(AttachmentParentKind.SHIFT, shift.id, "dash.jpg", b"dash", thumbnail=b"t1")
    old_store.write(AttachmentParentKind.EXPENSE, expense.id, "receipt.jpg", b"receipt")

    # Step 2: Create a backup
    result = cli_runner.invoke(
        cli,
        [
            "--db-path",
            temp_db.database_path,
            "--data-dir",
            str(old_data),
            "backup",
            "create",
            str(tmp_path / "backups"),
        ],
    )
    assert result.exit_code == 0
    archive = next((tmp_path / "backups").glob("*.zip"))

    # Step 3: Restore on the new install
    new_args = ["--db-path", str(new_db_path), "--data-dir", str(new_data)]
    result = cli_runner.invoke(
        cli, [*new_args, "backup", "restore", str(archive), "--policy", "add-missing", "--yes"]
    )
    assert result.exit_code == 0
    assert "Warnings" not in result.output

    new_db = create_sqlite_database(database_path=str(new_db_path))
    try:
        restored = new_db.load_dataset()
        assert restored == temp_db.load_dataset()
        assert restored.preferences.sync_frequency == "Weekly"
    finally:
        new_db.disconnect()

    new_store = create_attachment_store(str(new_data))
    assert new_store.image_path(AttachmentParentKind.SHIFT, shift.id, "dash.jpg").read_bytes() == b"dash"
    assert new_store.thumbnail_path(AttachmentParentKind.SHIFT, shift.id, "dash.jpg").read_bytes() == b"t1"
    assert new_store.exists(AttachmentParentKind.EXPENSE, expense.id, "receipt.jpg")

    # Step 4: Restoring the same backup again with merge adds nothing
    result = cli_runner.invoke(
        cli, [*new_args, "backup", "restore", str(archive), "--policy", "merge", "--yes"]
    )
    assert result.exit_code == 0
    assert "Shifts:       0 added, 1 updated, 0 skipped" in result.output
    assert "Expenses:     0 added, 1 updated, 0 skipped" in result.output
    assert "Transactions: 0 added, 0 updated, 2 skipped" in result.output
