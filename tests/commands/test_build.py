"""Tests for the build command."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from netbundle.cli import cli
from tests.helpers import FakeWeb, ok, route_cli_through


@pytest.mark.usefixtures("_isolated_project")
class TestBuildCommand:
    def test_build_default_entry(self, cli_runner: CliRunner, project_root: Path) -> None:
        result = cli_runner.invoke(cli, ["build"])
        assert result.exit_code == 0, result.output
        assert "OK" in result.output
        assert "📦" in result.output
        assert (project_root / "netbundle.manifest.json").is_file()

    def test_build_json(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["--json", "build", "--no-write"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["ok"] is True
        assert data["op"] == "build"
        assert data["data"]["module_count"] == 3
        assert data["data"]["externals"] == ["fs"]

    def test_build_quiet_prints_manifest_path(
        self, cli_runner: CliRunner, project_root: Path
    ) -> None:
        result = cli_runner.invoke(cli, ["-q", "build", "-o", "out/graph.json"])
        assert result.exit_code == 0, result.output
        assert result.output.strip() == str(project_root.resolve() / "out" / "graph.json")

    def test_build_remote(
        self, cli_runner: CliRunner, project_root: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        (project_root / "index.js").write_text('import "https://x/a.js";\n')
        web = FakeWeb({"https://x/a.js": ok('import "./b.js";'), "https://x/b.js": ok("")})
        route_cli_through(web, monkeypatch)
        result = cli_runner.invoke(cli, ["--json", "build", "--max-concurrency", "1"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)["data"]
        assert data["remote_count"] == 2
        assert data["network_fetches"] == 2

    def test_build_failure_exits_1(
        self, cli_runner: CliRunner, project_root: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        (project_root / "index.js").write_text('import "https://x/gone.js";\n')
        web = FakeWeb()
        route_cli_through(web, monkeypatch)
        result = cli_runner.invoke(cli, ["build", "--retries", "2"])
        assert result.exit_code == 1
        assert "ERROR" in result.output
        assert "https://x/gone.js" in result.output
        assert web.count("https://x/gone.js") == 2
        assert not (project_root / "netbundle.manifest.json").exists()

    def test_build_uses_config_entry_points(
        self, cli_runner: CliRunner, project_root: Path
    ) -> None:
        (project_root / "netbundle.toml").write_text(
            '[build]\nentry_points = ["lib/util.js"]\noutfile = "dist/m.json"\n'
        )
        result = cli_runner.invoke(cli, ["--json", "build"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)["data"]
        assert data["module_count"] == 2
        assert data["manifest"].endswith("m.json")

    def test_invalid_option(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["build", "--retries", "0"])
        assert result.exit_code == 2

    def test_examples(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["build", "--examples"])
        assert result.exit_code == 0
        assert "netbundle build src/main.js" in result.output
