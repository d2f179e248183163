"""Fixtures for CLI workflow tests."""

import pytest
from click.testing import CliRunner

from strata.cli.main import cli


@pytest.fixture
def runner(monkeypatch):
    """CliRunner with an author identity in the environment."""
    monkeypatch.setenv('STRATA_USER_NAME', 'Test User')
    monkeypatch.setenv('STRATA_USER_EMAIL', 'test@example.com')
    return CliRunner()


@pytest.fixture
def workspace(runner, tmp_path):
    """Run inside an isolated directory holding a fresh repository."""
    with runner.isolated_filesystem(temp_dir=tmp_path) as path:
        result = runner.invoke(cli, ['init'])
        assert result.exit_code == 0, result.output
        yield path
