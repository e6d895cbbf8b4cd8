#!/usr/bin/env python3
"""
Integration tests for the database CLI (chronicledb).

Runs the commands end to end against a temporary SQLite file.
"""
import json

import pytest
from click.testing import CliRunner

from chronicle.database.cli import cli

pytestmark = pytest.mark.integration


class TestDatabaseCLI:
    """Test database CLI commands with a temporary database."""

    @pytest.fixture
    def runner(self):
        """Create Click test runner."""
        return CliRunner()

    @pytest.fixture
    def test_dirs(self, tmp_path):
        """Temporary database, log and upload locations."""
        return {
            "db_path": tmp_path / "test.db",
            "log_dir": tmp_path / "logs",
            "uploads_dir": tmp_path / "uploads",
            "tmp": tmp_path,
        }

    def invoke_cli(self, runner, test_dirs, args, **kwargs):
        """Helper to invoke CLI with test configuration."""
        base_args = [
            "--db-path", str(test_dirs["db_path"]),
            "--log-dir", str(test_dirs["log_dir"]),
            "--uploads-dir", str(test_dirs["uploads_dir"]),
        ]
        return runner.invoke(cli, base_args + args, **kwargs)

    def create_canvas(self, runner, test_dirs, name="Barovia", user="u1"):
        result = self.invoke_cli(runner, test_dirs, ["canvas", "create", name, "--user", user])
        assert result.exit_code == 0, result.output
        return result.output.strip().splitlines()[-1]

    def test_cli_help(self, runner):
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "Chronicle Database Management CLI" in result.output

    def test_init_and_status(self, runner, test_dirs):
        result = self.invoke_cli(runner, test_dirs, ["init"])
        assert result.exit_code == 0, result.output
        assert "Database ready" in result.output
        assert test_dirs["db_path"].exists()

        result = self.invoke_cli(runner, test_dirs, ["status"])
        assert result.exit_code == 0, result.output
        assert "Revision: 3c1f7a9e2b40" in result.output
        assert "up_to_date" in result.output

    def test_canvas_lifecycle(self, runner, test_dirs):
        canvas_id = self.create_canvas(runner, test_dirs)

        result = self.invoke_cli(runner, test_dirs, ["canvas", "list", "--user", "u1"])
        assert f"{canvas_id}  Barovia" in result.output

        result = self.invoke_cli(
            runner, test_dirs, ["canvas", "rename", canvas_id, "Vallaki"]
        )
        assert result.exit_code == 0, result.output

        result = self.invoke_cli(runner, test_dirs, ["canvas", "list", "--user", "u2"])
        assert "No canvases." in result.output

    def test_only_canvas_cannot_be_deleted(self, runner, test_dirs):
        canvas_id = self.create_canvas(runner, test_dirs)

        result = self.invoke_cli(
            runner, test_dirs, ["canvas", "delete", canvas_id, "--user", "u1"]
        )

        assert result.exit_code == 1
        assert "LastCanvasError [LAST_CANVAS]" in result.output
        assert (test_dirs["log_dir"] / "operations" / "errors.log").exists()

    def test_export_then_import(self, runner, test_dirs):
        canvas_id = self.create_canvas(runner, test_dirs)
        archive = test_dirs["tmp"] / "barovia.zip"

        result = self.invoke_cli(runner, test_dirs, ["export", canvas_id, str(archive)])
        assert result.exit_code == 0, result.output
        assert archive.exists()

        result = self.invoke_cli(
            runner, test_dirs, ["import", str(archive), "--user", "u2"]
        )
        assert result.exit_code == 0, result.output
        assert "Imported canvas Barovia" in result.output
        new_id = result.output.strip().splitlines()[-1]
        assert new_id != canvas_id

        result = self.invoke_cli(runner, test_dirs, ["canvas", "list", "--user", "u2"])
        assert new_id in result.output

    def test_import_rejects_garbage(self, runner, test_dirs):
        bogus = test_dirs["tmp"] / "bogus.zip"
        bogus.write_bytes(b"not a zip")

        result = self.invoke_cli(runner, test_dirs, ["import", str(bogus), "--user", "u2"])

        assert result.exit_code == 1
        assert "MALFORMED_ARCHIVE" in result.output

    def test_share_and_copy(self, runner, test_dirs):
        canvas_id = self.create_canvas(runner, test_dirs)

        result = self.invoke_cli(
            runner, test_dirs, ["canvas", "share", canvas_id, "--user", "u1"]
        )
        assert result.exit_code == 0, result.output
        token = result.output.strip().splitlines()[-1]

        result = self.invoke_cli(runner, test_dirs, ["copy", token, "--user", "u3"])
        assert result.exit_code == 0, result.output
        assert "Copied canvas Barovia" in result.output

        result = self.invoke_cli(runner, test_dirs, ["copy", "bogus", "--user", "u3"])
        assert result.exit_code == 1
        assert "NOT_FOUND" in result.output

    def test_timeline_pages(self, runner, test_dirs):
        canvas_id = self.create_canvas(runner, test_dirs)

        result = self.invoke_cli(runner, test_dirs, ["timeline", canvas_id])
        assert result.exit_code == 0, result.output
        assert "(end of feed)" in result.output

        result = self.invoke_cli(runner, test_dirs, ["timeline", canvas_id, "--json"])
        assert json.loads(result.output) == {"entries": [], "nextCursor": None}

        result = self.invoke_cli(runner, test_dirs, ["gallery", canvas_id, "--important-only"])
        assert "(end of feed)" in result.output

    def test_timeline_rejects_bad_cursor(self, runner, test_dirs):
        canvas_id = self.create_canvas(runner, test_dirs)

        result = self.invoke_cli(
            runner, test_dirs, ["timeline", canvas_id, "--cursor", "garbage"]
        )

        assert result.exit_code == 1
        assert "INVALID_CURSOR" in result.output

    def test_days(self, runner, test_dirs):
        canvas_id = self.create_canvas(runner, test_dirs)

        result = self.invoke_cli(
            runner, test_dirs, ["days", canvas_id, "2024-01-01", "2024-01-31"]
        )
        assert result.exit_code == 0, result.output
        assert "No entries." in result.output

        result = self.invoke_cli(
            runner, test_dirs, ["days", canvas_id, "2024-02-01", "2024-01-01"]
        )
        assert result.exit_code == 1
        assert "VALIDATION_ERROR" in result.output

    def test_unknown_canvas(self, runner, test_dirs):
        result = self.invoke_cli(runner, test_dirs, ["timeline", "nope"])
        assert result.exit_code == 1
        assert "NotFound" in result.output
