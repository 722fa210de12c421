"""Shared pytest fixtures for netbundle tests."""

from __future__ import annotations

from pathlib import Path

import pytest
from click.testing import CliRunner

from netbundle.config.settings import NetbundleSettings


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep developer NETBUNDLE_* variables out of every test."""
    import os

    for key in list(os.environ):
        if key.startswith("NETBUNDLE_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def project_root(tmp_path: Path) -> Path:
    """Temporary project with a small local import graph.

    index.js → ./lib/util.js → ./helpers (index.js in a directory),
    plus an import of the ``fs`` built-in.
    """
    (tmp_path / "lib" / "helpers").mkdir(parents=True)
    (tmp_path / "index.js").write_text(
        'import { util } from "./lib/util.js";\nimport fs from "fs";\nutil(fs);\n'
    )
    (tmp_path / "lib" / "util.js").write_text(
        'export { helper } from "./helpers";\nexport const util = (x) => x;\n'
    )
    (tmp_path / "lib" / "helpers" / "index.js").write_text("export const helper = 1;\n")
    return tmp_path


@pytest.fixture
def settings(project_root: Path) -> NetbundleSettings:
    """Settings rooted at the temporary project, inline event dispatch."""
    return NetbundleSettings.from_cli(project_root=project_root, sync=True)


@pytest.fixture
def _isolated_project(project_root: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Change CWD to the temp project so the CLI builds it.

    Use via ``@pytest.mark.usefixtures("_isolated_project")`` on command
    test classes.
    """
    monkeypatch.chdir(project_root)
