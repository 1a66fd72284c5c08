"""Main CLI entry point."""

import logging

import click
from ridetrack.database.factories import create_attachment_store, create_sqlite_database

# Import and register all commands at module level
from ridetrack.cli.commands import backup


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides RIDETRACK_DB_PATH environment variable)",
    envvar="RIDETRACK_DB_PATH",
)
@click.option(
    "--data-dir",
    type=click.Path(file_okay=False),
    help="Directory holding image attachments (overrides RIDETRACK_DATA_DIR environment variable)",
    envvar="RIDETRACK_DATA_DIR",
)
@click.option("--verbose", "-v", is_flag=True, help="Show debug log output")
@click.pass_context
def cli(ctx, db_path: str | None, data_dir: str | None, verbose: bool):
    """Ridetrack - Rideshare shift and expense tracking.

    Create backups of your shifts, expenses, imported Uber transactions and
    images, and restore them with a choice of reconciliation policy.
    """
    ctx.ensure_object(dict)

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        db = create_sqlite_database(database_path=db_path)
        db.connect()
        db.initialize_schema()
        ctx.obj["db"] = db
        ctx.obj["store"] = create_attachment_store(root=data_dir)
        ctx.call_on_close(db.disconnect)


# Register all commands
backup.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
