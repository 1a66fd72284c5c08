"""Backup and restore commands."""

import click

from ridetrack.cli.error_handling import handle_domain_error
from ridetrack.domain.backup_restore import BackupRestoreService
from ridetrack.domain.errors import DomainError
from ridetrack.domain.reconciliation import RestorePolicy, RestoreResult


def _plural(count: int, noun: str) -> str:
    return f"{count} {noun}{'s' if count != 1 else ''}"


def _print_result(result: RestoreResult) -> None:
    click.echo("\nRestore complete:")
    click.echo(
        f"  Shifts:       {result.shifts_added} added, {result.shifts_updated} updated, "
        f"{result.shifts_skipped} skipped"
    )
    click.echo(
        f"  Expenses:     {result.expenses_added} added, {result.expenses_updated} updated, "
        f"{result.expenses_skipped} skipped"
    )
    click.echo(
        f"  Transactions: {result.transactions_added} added, "
        f"{result.transactions_updated} updated, {result.transactions_skipped} skipped"
    )
    if result.warnings:
        click.echo(f"  Warnings: {len(result.warnings)}")
        for warning in result.warnings:
            click.echo(f"    {warning}", err=True)


@click.group()
def backup_group():
    """Create and restore backups."""
    pass


@backup_group.command("create")
@click.argument("destination_dir", type=click.Path(file_okay=False))
@click.option("--no-images", is_flag=True, help="Leave image attachments out of the backup")
@click.pass_context
def create_backup(ctx, destination_dir: str, no_images: bool):
    """Write a backup archive into DESTINATION_DIR.

    Examples:
        ridetrack backup create ~/Backups
        ridetrack backup create ~/Backups --no-images
    """
    service = BackupRestoreService(ctx.obj["db"], ctx.obj["store"])

    try:
        archive_path = service.create_backup(destination_dir, include_images=not no_images)
    except (DomainError, OSError) as e:
        handle_domain_error(ctx, e)
        return

    click.echo(f"Created backup {archive_path}")


@backup_group.command("inspect")
@click.argument("backup_file", type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def inspect_backup(ctx, backup_file: str):
    """Show what a backup file contains without restoring it."""
    service = BackupRestoreService(ctx.obj["db"], ctx.obj["store"])

    try:
        bundle = service.load_backup(backup_file)
    except (DomainError, OSError) as e:
        handle_domain_error(ctx, e)
        return

    with bundle:
        click.echo(f"\nBackup: {backup_file}")
        click.echo("-" * 60)
        click.echo(f"Format:       {'legacy (no images)' if bundle.is_legacy else 'archive'}")
        click.echo(f"Exported:     {bundle.export_date.isoformat()}")
        click.echo(f"App version:  {bundle.app_version}")
        click.echo(f"Shifts:       {len(bundle.shifts)}")
        if bundle.expenses is None:
            click.echo("Expenses:     not included")
        else:
            click.echo(f"Expenses:     {len(bundle.expenses)}")
        if bundle.transactions is None:
            click.echo("Transactions: not included")
        else:
            periods = sorted({t.statement_period for t in bundle.transactions})
            click.echo(
                f"Transactions: {len(bundle.transactions)} "
                f"({_plural(len(periods), 'statement period')})"
            )
        click.echo(f"Images:       {'yes' if bundle.has_images else 'no'}")


@backup_group.command("restore")
@click.argument("backup_file", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--policy",
    type=click.Choice([p.value for p in RestorePolicy]),
    default=RestorePolicy.MERGE.value,
    show_default=True,
    help="How backup records are reconciled with existing data",
)
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def restore_backup(ctx, backup_file: str, policy: str, yes: bool):
    """Restore BACKUP_FILE into the local data.

    \b
    Policies:
      replace-all  Delete all current data, then restore from backup
      add-missing  Add only records that don't exist in current data
      merge        Update existing records and add new ones

    Under merge, Uber transactions of a statement period that already exists
    locally are kept as they are.

    Examples:
        ridetrack backup restore backup.zip --policy add-missing
        ridetrack backup restore backup.zip --policy replace-all --yes
    """
    restore_policy = RestorePolicy(policy)
    service = BackupRestoreService(ctx.obj["db"], ctx.obj["store"])

    if not yes:
        if restore_policy is RestorePolicy.REPLACE_ALL:
            prompt = (
                "This deletes all current shifts, expenses and images, and all "
                "transactions if the backup includes any. Continue?"
            )
        else:
            prompt = f"Restore '{backup_file}' using policy '{restore_policy.value}'?"
        if not click.confirm(prompt):
            click.echo("Restore cancelled.")
            return

    try:
        result = service.restore_file(backup_file, restore_policy)
    except (DomainError, OSError) as e:
        handle_domain_error(ctx, e)
        return

    _print_result(result)


def register_commands(cli):
    """Register backup commands with main CLI."""
    cli.add_command(backup_group, name="backup")
