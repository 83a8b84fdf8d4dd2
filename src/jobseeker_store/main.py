"""
Command-line entry point for the job seeker store.
"""

import argparse
import asyncio
import logging
import sys

from jobseeker_store.config import get_settings
from jobseeker_store.db import Database, JobSeekerStore
from jobseeker_store.exceptions import JobSeekerStoreError


def setup_logging() -> None:
    """Configure application logging."""
    settings = get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)],
    )


def build_parser() -> argparse.ArgumentParser:
    """Build the command-line parser."""
    parser = argparse.ArgumentParser(prog="jobseeker-store")
    parser.add_argument(
        "--database-url",
        default=None,
        help="SQLAlchemy async URL (defaults to JOBSEEKER_DATABASE_URL)",
    )
    commands = parser.add_subparsers(dest="command", required=True)
    commands.add_parser("init-db", help="Create the job seeker tables")
    commands.add_parser("count", help="Print how many job seekers are stored")
    exists_email = commands.add_parser("exists-email", help="Check whether an email is stored")
    exists_email.add_argument("email")
    return parser


async def run_command(argv: list[str] | None = None) -> str:
    """
    Run one CLI command and return the text to print.
    """
    args = build_parser().parse_args(argv)
    settings = get_settings()
    logger = logging.getLogger(__name__)

    database = Database(args.database_url or settings.database_url, echo=settings.database_echo)
    store = JobSeekerStore.from_settings(database, settings)
    try:
        if args.command == "init-db":
            await database.create_tables()
            return "ok"
        if args.command == "count":
            return str(await store.count())
        logger.debug(f"Looking up email {args.email!r}")
        return "true" if await store.exists_by_email(args.email) else "false"
    finally:
        await database.dispose()


def main() -> None:
    """Main entry point for the application."""
    setup_logging()

    try:
        print(asyncio.run(run_command(sys.argv[1:])))
    except KeyboardInterrupt:
        sys.exit(130)
    except JobSeekerStoreError as e:
        logging.error(f"jobseeker-store: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
