"""Tests for the seedkeep command-line interface."""

from unittest.mock import patch

import pytest
from click.testing import CliRunner

from seedkeep.cli import cli
from seedkeep.core.config import Settings
from seedkeep.infrastructure.auth.jwt_service import jwt_service

HEADER = "box_number,shelf_code,type,area_planted,year,season,location,description,pedigree,weight,remarks"
ROW = "4,B2,white,LBTR,2021,wet,Cold room,Parent line,P1 x P2,3.5,"


@pytest.fixture
def settings(tmp_path):
    return Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path}/cli.db",
        environment="testing",
        log_format="console",
        log_level="ERROR",
    )


@pytest.fixture
def runner(settings):
    with patch("seedkeep.cli.get_settings", return_value=settings):
        yield CliRunner()


def test_issue_token(runner):
    result = runner.invoke(cli, ["issue-token", "--user-id", "uid-1", "--email", "tech@example.com"])

    assert result.exit_code == 0
    payload = jwt_service.verify_token(result.output.strip())
    assert payload["sub"] == "uid-1"


def test_issue_token_refused_in_production(tmp_path):
    production = Settings(environment="production", database_url=f"sqlite+aiosqlite:///{tmp_path}/p.db")
    with patch("seedkeep.cli.get_settings", return_value=production):
        result = CliRunner().invoke(cli, ["issue-token", "--user-id", "u", "--email", "e@example.com"])
    assert result.exit_code == 1


def test_serve_rejects_workers_with_sqlite(runner):
    result = runner.invoke(cli, ["serve", "--workers", "2"])
    assert result.exit_code == 1
    assert "SQLite does not support multiple worker processes" in result.output


def test_serve_runs_uvicorn(runner):
    with patch("uvicorn.run") as mock_run:
        result = runner.invoke(cli, ["serve", "--port", "9001"])

    assert result.exit_code == 0
    assert mock_run.call_args.args[0] == "seedkeep.infrastructure.api.app:app"
    assert mock_run.call_args.kwargs["port"] == 9001


def test_init_db_with_admin(runner):
    result = runner.invoke(cli, ["init-db", "--admin-id", "uid-a", "--admin-email", "admin@example.com"])
    assert result.exit_code == 0
    assert "Administrator admin@example.com is approved." in result.output


def test_init_db_needs_both_admin_options(runner):
    result = runner.invoke(cli, ["init-db", "--admin-id", "uid-a"])
    assert result.exit_code == 2


def test_import_dry_run(runner, tmp_path):
    path = tmp_path / "seeds.csv"
    path.write_text(f"{HEADER}\n{ROW}\n{ROW}\n")

    result = runner.invoke(cli, ["import", str(path), "--actor", "tech@example.com", "--dry-run"])

    assert result.exit_code == 0
    assert "2 rows are valid." in result.output


def test_import_blocked_by_errors(runner, tmp_path):
    path = tmp_path / "seeds.csv"
    path.write_text(f"{HEADER}\n{ROW}\nx,,white,LBTR,2021,wet,Cold room,Parent line,P1 x P2,1,\n")

    result = runner.invoke(cli, ["import", str(path), "--actor", "tech@example.com"])

    assert result.exit_code == 1
    assert "row 3:" in result.output
    assert "nothing was imported" in result.output


def test_import_corrupt_workbook(runner, tmp_path):
    path = tmp_path / "inventory.xlsx"
    path.write_bytes(b"this is not a zip file")

    result = runner.invoke(cli, ["import", str(path), "--actor", "tech@example.com"])

    assert result.exit_code == 2
    assert "Could not read workbook" in result.output


def test_import_then_export(runner, tmp_path):
    path = tmp_path / "seeds.csv"
    path.write_text(f"{HEADER}\n{ROW}\n")
    out = tmp_path / "out"

    imported = runner.invoke(cli, ["import", str(path), "--actor", "tech@example.com"])
    assert imported.exit_code == 0
    assert "Imported 1 inventory entries from seeds.csv." in imported.output

    exported = runner.invoke(cli, ["export", "--format", "csv", "--output-dir", str(out)])
    assert exported.exit_code == 0
    files = list(out.iterdir())
    assert len(files) == 1
    assert files[0].name.startswith("inventory-export-")
    assert files[0].read_text().splitlines()[1].startswith("4,B2,white")


def test_export_with_nothing_to_export(runner, tmp_path):
    result = runner.invoke(cli, ["export", "--output-dir", str(tmp_path / "out")])
    assert result.exit_code == 0
    assert "No data to export." in result.output


def test_export_bad_filters(runner):
    result = runner.invoke(cli, ["export", "--filters", "{oops"])
    assert result.exit_code == 2


def test_history_of_unknown_record(runner):
    result = runner.invoke(cli, ["history", "nope"])
    assert result.exit_code == 0
    assert "No history." in result.output
