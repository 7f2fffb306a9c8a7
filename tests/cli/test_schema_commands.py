"""
Tests for the ``sqlspine`` CLI schema commands.
"""

from __future__ import annotations

import importlib
import json

import pytest
import structlog
from typer.testing import CliRunner

from conftest import RecordingGateway
from sqlspine.cli.app import app
from sqlspine.core.models import Field

runner = CliRunner()

# the package re-exports the Typer app under the same name as this module
app_module = importlib.import_module("sqlspine.cli.app")

MODELS_YAML = """\
models:
  - name: person
    properties:
      name: string
      age: number
"""

PERSON_FIELDS = [
    Field("id", "int(11)", False),
    Field("name", "varchar(255)", True),
    Field("age", "int(11)", True),
]


@pytest.fixture(autouse=True)
def _quiet_logging(monkeypatch):
    monkeypatch.setattr(app_module, "configure_logging", lambda **kwargs: None)
    structlog.configure(logger_factory=structlog.ReturnLoggerFactory())
    yield
    structlog.reset_defaults()


@pytest.fixture
def models_file(tmp_path):
    path = tmp_path / "models.yaml"
    path.write_text(MODELS_YAML)
    return path


@pytest.fixture
def use_gateway(monkeypatch):
    """Route make_gateway() to a RecordingGateway; returns the call log."""
    calls: list[tuple] = []

    def install(gateway: RecordingGateway) -> list[tuple]:
        def factory(database, host):
            calls.append((database, host))
            return gateway

        monkeypatch.setattr("sqlspine.cli.schema.make_gateway", factory)
        return calls

    return install


class TestVersion:
    def test_version(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert result.stdout.startswith("sqlspine ")


class TestShowSql:
    def test_json(self, models_file):
        result = runner.invoke(app, ["show-sql", str(models_file), "--json"])
        assert result.exit_code == 0
        (plan,) = json.loads(result.stdout)
        assert plan["table"] == "person"
        assert plan["create"] is True
        assert plan["sql"].startswith("CREATE TABLE `person` (\n  `id` INT(11) NOT NULL AUTO_INCREMENT PRIMARY KEY")

    def test_table_output(self, models_file):
        result = runner.invoke(app, ["show-sql", str(models_file)])
        assert result.exit_code == 0
        assert "person" in result.stdout
        assert "CREATE TABLE" in result.stdout

    def test_bad_model_file(self, tmp_path):
        path = tmp_path / "models.yaml"
        path.write_text("models:\n  - properties: {}\n")
        result = runner.invoke(app, ["show-sql", str(path)])
        assert result.exit_code == 1
        assert "CONFIG" in result.output


class TestMigrate:
    def test_creates_missing_table(self, models_file, use_gateway):
        gateway = RecordingGateway()
        use_gateway(gateway)
        result = runner.invoke(app, ["migrate", str(models_file), "--json"])
        assert result.exit_code == 0
        assert gateway.statements[0].startswith("CREATE TABLE `person`")
        assert gateway.entered and gateway.exited

    def test_check_flag_runs_nothing(self, models_file, use_gateway):
        gateway = RecordingGateway()
        use_gateway(gateway)
        result = runner.invoke(app, ["migrate", str(models_file), "--check", "--json"])
        assert result.exit_code == 0
        assert gateway.statements == []
        assert json.loads(result.stdout)[0]["changes_required"] is True

    def test_connection_options(self, models_file, use_gateway):
        calls = use_gateway(RecordingGateway())
        runner.invoke(app, ["migrate", str(models_file), "-d", "shop", "--host", "db.internal"])
        assert calls == [("shop", "db.internal")]


class TestCheck:
    def test_exit_code_two_when_changes_required(self, models_file, use_gateway):
        use_gateway(RecordingGateway())
        result = runner.invoke(app, ["check", str(models_file), "--json"])
        assert result.exit_code == 2

    def test_exit_code_zero_when_in_sync(self, models_file, use_gateway):
        gateway = RecordingGateway(fields={"person": PERSON_FIELDS})
        use_gateway(gateway)
        result = runner.invoke(app, ["check", str(models_file), "--json"])
        assert result.exit_code == 0
        assert json.loads(result.stdout)[0]["statements"] == []
        assert gateway.statements == []
