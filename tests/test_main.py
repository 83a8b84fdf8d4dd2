"""
Tests for the command-line entry point.
"""

import pytest

from jobseeker_store import main as cli
from jobseeker_store.db import Database, JobSeekerStore
from jobseeker_store.schemas import JobSeeker


def test_parser_requires_command() -> None:
    with pytest.raises(SystemExit):
        cli.build_parser().parse_args([])


def test_parser_exists_email() -> None:
    args = cli.build_parser().parse_args(["--database-url", "sqlite+aiosqlite://", "exists-email", "a@b.com"])

    assert args.command == "exists-email"
    assert args.email == "a@b.com"
    assert args.database_url == "sqlite+aiosqlite://"


@pytest.mark.asyncio
async def test_init_count_and_exists(database_url: str) -> None:
    """Test the CLI commands against a fresh database file."""
    assert await cli.run_command(["--database-url", database_url, "init-db"]) == "ok"
    assert await cli.run_command(["--database-url", database_url, "count"]) == "0"

    database = Database(database_url)
    try:
        await JobSeekerStore(database).save(JobSeeker(email="cli@example.com"))
    finally:
        await database.dispose()

    assert await cli.run_command(["--database-url", database_url, "count"]) == "1"
    assert await cli.run_command(["--database-url", database_url, "exists-email", "cli@example.com"]) == "true"
    assert await cli.run_command(["--database-url", database_url, "exists-email", "CLI@example.com"]) == "false"


# aiosqlite's connect thread may report back after asyncio.run closed its loop.
@pytest.mark.filterwarnings("ignore::pytest.PytestUnhandledThreadExceptionWarning")
def test_main_exits_nonzero_on_storage_error(monkeypatch, tmp_path, capsys) -> None:
    url = f"sqlite+aiosqlite:///{tmp_path / 'missing' / 'x.db'}"
    monkeypatch.setattr(cli.sys, "argv", ["jobseeker-store", "--database-url", url, "count"])

    with pytest.raises(SystemExit) as exc_info:
        cli.main()

    assert exc_info.value.code == 1
    assert capsys.readouterr().out == ""
