"""
CLI utility helpers: model loading, gateway construction, plan output.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from pathlib import Path
from typing import Any, NoReturn

import typer
import yaml
from rich.console import Console
from rich.syntax import Syntax
from rich.table import Table

from sqlspine.core.adapters import MySQLGateway
from sqlspine.core.differ import MigrationPlan
from sqlspine.core.errors import ConfigError, SqlSpineError
from sqlspine.core.models import ModelSchema
from sqlspine.core.settings import MySQLSettings

console = Console()
err_console = Console(stderr=True)


# ── Model loading ────────────────────────────────────────────────────────


def load_models(path: Path) -> list[ModelSchema]:
    """Read model definitions from a YAML or JSON file.

    Accepted shapes: ``{"models": [...]}``, a list of model mappings, or a
    mapping of model name → definition.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read model file {path}: {e}", cause=e) from e

    try:
        if path.suffix.lower() == ".json":
            data = json.loads(text)
        else:
            data = yaml.safe_load(text)
    except (ValueError, yaml.YAMLError) as e:
        raise ConfigError(f"Cannot parse model file {path}: {e}", cause=e) from e

    if isinstance(data, Mapping) and "models" in data:
        data = data["models"]
    if isinstance(data, Mapping):
        data = [{"name": name, **(spec or {})} for name, spec in data.items()]
    if not isinstance(data, list) or not data:
        raise ConfigError(f"No model definitions found in {path}")
    return [ModelSchema.from_dict(entry) for entry in data]


# ── Gateway ──────────────────────────────────────────────────────────────


def make_gateway(database: str | None = None, host: str | None = None) -> MySQLGateway:
    """Gateway from ``SQLSPINE_MYSQL_*`` settings plus command-line overrides."""
    overrides: dict[str, Any] = {}
    if database:
        overrides["database"] = database
    if host:
        overrides["host"] = host
    return MySQLGateway(MySQLSettings(**overrides))


# ── Output helpers ───────────────────────────────────────────────────────


def fail(error: SqlSpineError) -> NoReturn:
    """Print a sqlspine error and exit with status 1."""
    err_console.print(f"[bold red]Error[/bold red] ({error.category.value}): {error.message}")
    raise typer.Exit(code=1)


def output_plans(plans: list[MigrationPlan], *, as_json: bool = False, show_sql: bool = True) -> None:
    """Render migration plans as JSON or as a summary table plus SQL."""
    if as_json:
        console.print_json(json.dumps([p.to_dict() for p in plans], default=str))
        return

    table = Table(title="Migration Plan", show_lines=False, pad_edge=False)
    table.add_column("table")
    table.add_column("action")
    table.add_column("statements", justify="right")
    for plan in plans:
        if plan.create:
            action = "[green]create[/green]"
        elif plan.changes_required:
            action = "[yellow]alter[/yellow]"
        else:
            action = "[dim]up to date[/dim]"
        table.add_row(plan.table, action, str(len(plan.statements)))
    console.print(table)

    if show_sql:
        for plan in plans:
            if plan.sql:
                console.print(Syntax(plan.sql + ";", "sql", word_wrap=True))
