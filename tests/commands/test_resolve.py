"""Tests for the resolve command."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from netbundle.cli import cli


@pytest.mark.usefixtures("_isolated_project")
class TestResolveCommand:
    def test_local(self, cli_runner: CliRunner, project_root: Path) -> None:
        result = cli_runner.invoke(cli, ["resolve", "./lib/util", "--importer", "index.js"])
        assert result.exit_code == 0, result.output
        assert "namespace: local" in result.output

    def test_quiet_prints_path(self, cli_runner: CliRunner, project_root: Path) -> None:
        result = cli_runner.invoke(cli, ["-q", "resolve", "./lib/util.js"])
        assert result.exit_code == 0, result.output
        assert result.output.strip() == str((project_root / "lib" / "util.js").resolve())

    def test_remote_json(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(
            cli, ["--json", "resolve", "./b.js", "--importer", "https://x/a/index.js"]
        )
        assert result.exit_code == 0
        data = json.loads(result.output)["data"]
        assert data["namespace"] == "remote"
        assert data["path"] == "https://x/a/b.js"

    def test_builtin(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["-q", "resolve", "node:fs"])
        assert result.output.strip() == "node:fs"

    def test_unresolved_exits_1(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["resolve", "./missing.js"])
        assert result.exit_code == 1
        assert "Could not resolve './missing.js'" in result.output
