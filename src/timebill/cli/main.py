"""Main CLI entry point."""

import click
from timebill.database.factories import create_database
from timebill.domain.time_entry import DEFAULT_CLASSIFY_RETRIES
from timebill.logging import setup_logging

# Import and register all commands at module level
from timebill.cli.commands import (
    customer,
    agreement,
    timebank,
    entry,
    billing,
)


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides TIMEBILL_DB_PATH environment variable)",
    envvar="TIMEBILL_DB_PATH",
)
@click.option(
    "--db-url",
    help="SQLAlchemy database URL, used when no --db-path is given",
    envvar="TIMEBILL_DATABASE_URL",
)
@click.option(
    "--user",
    help="Acting user ID, stamped on created entries and exports",
    envvar="TIMEBILL_USER",
)
@click.option(
    "--log-level",
    help="Log level (DEBUG, INFO, WARNING, ERROR)",
    envvar="TIMEBILL_LOG_LEVEL",
)
@click.option(
    "--classify-retries",
    type=click.IntRange(min=1),
    default=DEFAULT_CLASSIFY_RETRIES,
    show_default=True,
    envvar="TIMEBILL_CLASSIFY_RETRIES",
    help="Attempts at classifying an entry while its time bank is being written",
)
@click.pass_context
def cli(ctx, db_path: str | None, db_url: str | None, user: str | None, log_level: str | None, classify_retries: int):
    """Timebill - billing and time-bank accounting.

    Record work time against customer agreements, follow time-bank
    balances, and group unexported time into invoice batches.
    """
    ctx.ensure_object(dict)
    setup_logging(log_level)

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        db = create_database(database_path=db_path, database_url=db_url)
        db.connect()
        db.initialize_schema()
        ctx.obj["db"] = db
        ctx.obj["user"] = user
        ctx.obj["classify_retries"] = classify_retries
        ctx.call_on_close(db.disconnect)


# Register all commands
customer.register_commands(cli)
agreement.register_commands(cli)
timebank.register_commands(cli)
entry.register_commands(cli)
billing.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
