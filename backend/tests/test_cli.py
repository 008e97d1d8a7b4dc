"""Tests for tablerest CLI commands."""

import pytest
from click.testing import CliRunner

from tablerest.cli.main import cli


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def seeded_env(monkeypatch, db_path):
    """Point the CLI at the seeded test database."""
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.delenv("TABLEREST_ROLE_ROUTES", raising=False)
    monkeypatch.setenv("TABLEREST_DB_PATH", str(db_path))


class TestInspect:
    def test_shows_columns_and_families(self, runner, seeded_env):
        result = runner.invoke(cli, ["inspect", "actor"])
        assert result.exit_code == 0
        assert "actor (9 columns)" in result.output
        assert "salario" in result.output
        assert "decimal" in result.output

    def test_shows_relations(self, runner, seeded_env):
        result = runner.invoke(cli, ["inspect", "actor"])
        assert "fkidtipoactor -> tipoactor.nombre" in result.output
        assert "fkidcodigo ->" not in result.output

    def test_marks_credential_columns(self, runner, seeded_env):
        result = runner.invoke(cli, ["inspect", "usuario"])
        assert "[credential]" in result.output

    def test_unknown_table(self, runner, seeded_env):
        result = runner.invoke(cli, ["inspect", "no_such_table"])
        assert result.exit_code == 1
        assert "does not exist" in result.output


class TestRoutes:
    def test_admin_routes(self, runner, seeded_env):
        result = runner.invoke(cli, ["routes", "admin"])
        assert result.exit_code == 0
        assert "usuario" in result.output.splitlines()

    def test_unknown_role(self, runner, seeded_env):
        result = runner.invoke(cli, ["routes", "unknown-role"])
        assert result.exit_code == 0
        assert "No routes." in result.output

    def test_routes_from_yaml(self, runner, seeded_env, monkeypatch, tmp_path):
        path = tmp_path / "routes.yaml"
        path.write_text("version: 2\nroles:\n  lector: [menu, actor]\n")
        monkeypatch.setenv("TABLEREST_ROLE_ROUTES", str(path))
        result = runner.invoke(cli, ["routes", "lector"])
        assert result.output.splitlines() == ["menu", "actor"]

    def test_requires_a_role(self, runner):
        result = runner.invoke(cli, ["routes"])
        assert result.exit_code != 0
